import math

from pydantic import BaseModel, validator
from typing import List, Optional, Any
from enum import Enum

# ==================== ENUMS ====================

class ProgressStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

class CompletionPolicy(str, Enum):
    CONTAINMENT = "containment"
    LESSON_COUNT = "lesson_count"

# ==================== COURSE MODELS ====================

MAX_PRICE_DIGITS = 9


def _at_least_two_chars(v: str) -> str:
    v = (v or "").strip()
    if len(v) < 2:
        raise ValueError("must be at least 2 characters")
    return v


def _valid_price(v: float) -> float:
    if v is None or not math.isfinite(v) or v <= 0:
        raise ValueError("price must be a positive number")
    digits = "".join(ch for ch in f"{v:f}".rstrip("0") if ch.isdigit())
    if len(digits) > MAX_PRICE_DIGITS:
        raise ValueError(f"price cannot exceed {MAX_PRICE_DIGITS} digits")
    return v


class CourseCreate(BaseModel):
    title: str
    description: str
    thumbnail: str
    instructor: str
    category: str
    price: float
    level: Optional[str] = None
    duration: Optional[str] = None
    is_published: bool = True

    @validator("title", "description", "thumbnail", "instructor", "category")
    def validate_text(cls, v):
        return _at_least_two_chars(v)

    @validator("price")
    def validate_price(cls, v):
        return _valid_price(v)


class CourseUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    instructor: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = None
    level: Optional[str] = None
    duration: Optional[str] = None

    # Only fields present in the body reach these; an explicit null is rejected
    @validator("title", "description", "thumbnail", "instructor", "category")
    def validate_text(cls, v):
        return _at_least_two_chars(v)

    @validator("price")
    def validate_price(cls, v):
        return _valid_price(v)

# ==================== LESSON / SECTION MODELS ====================

class LessonCreate(BaseModel):
    title: str
    video_url: Optional[str] = None
    content: Optional[str] = None
    duration: Optional[str] = None
    resources: List[str] = []

    @validator("title")
    def validate_title(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Lesson title is required")
        return v


class LessonUpdate(BaseModel):
    title: Optional[str] = None
    video_url: Optional[str] = None
    content: Optional[str] = None
    duration: Optional[str] = None
    resources: Optional[List[str]] = None


class SectionCreate(BaseModel):
    title: str

    @validator("title")
    def validate_title(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Section title is required")
        return v


class SectionUpdate(BaseModel):
    title: Optional[str] = None

# ==================== QUIZ MODELS ====================

class QuizQuestion(BaseModel):
    question: str
    options: List[str]
    correct_index: int

    @validator("options")
    def validate_options(cls, v):
        if len(v) < 2:
            raise ValueError("A question needs at least 2 options")
        return v

    @validator("correct_index")
    def validate_correct_index(cls, v, values):
        options = values.get("options")
        if options is not None and not 0 <= v < len(options):
            raise ValueError("correct_index must point at one of the options")
        return v


class QuizSave(BaseModel):
    questions: List[QuizQuestion] = []


class QuizSubmission(BaseModel):
    # Raw values; anything that is not an exact option index just scores 0
    answers: List[Any] = []

# ==================== ENROLLMENT MODELS ====================

class EnrollmentCreate(BaseModel):
    course_id: str


class PaymentProof(BaseModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class EnrollmentVerify(PaymentProof):
    course_id: str


class PaymentOrderResponse(BaseModel):
    order_id: str
    amount: int
    currency: str
    key: str
    course_id: str
