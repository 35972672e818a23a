from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from datetime import datetime
from typing import List, Optional
import logging
import uuid

from learnhub.courses.models import ProgressStatus

logger = logging.getLogger(__name__)

# ==================== HELPERS ====================

def serialize_mongo(doc: Optional[dict]) -> Optional[dict]:
    if doc is None:
        return None
    doc = dict(doc)
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc

def serialize_many(docs: List[dict]) -> List[dict]:
    return [serialize_mongo(doc) for doc in docs]

def generate_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12].upper()}"

def course_lesson_ids(course: dict) -> List[str]:
    """Lesson ids of a course, top-level lessons first, then section lessons"""
    ids = [lesson["lesson_id"] for lesson in course.get("lessons", [])]
    for section in course.get("sections", []):
        ids.extend(lesson["lesson_id"] for lesson in section.get("lessons", []))
    return ids

def course_summary(course: dict) -> dict:
    return {
        "course_id": course["course_id"],
        "title": course["title"],
        "description": course.get("description"),
        "thumbnail": course.get("thumbnail"),
        "instructor": course.get("instructor"),
        "category": course.get("category"),
        "price": course.get("price"),
        "level": course.get("level"),
        "lesson_count": len(course_lesson_ids(course)),
    }

def public_course(course: dict) -> dict:
    """Published view of a course: answer keys never leave the server"""
    course = serialize_mongo(course)
    course["quiz"] = [
        {k: v for k, v in q.items() if k != "correct_index"}
        for q in course.get("quiz", [])
    ]
    return course

# ==================== INDEXES ====================

async def create_indexes(db: AsyncIOMotorDatabase):
    """One enrollment, progress record and certificate per (student, course)"""
    await db.users.create_index("user_id", unique=True)
    await db.users.create_index("email", unique=True)

    await db.courses.create_index("course_id", unique=True)
    await db.courses.create_index("is_published")

    await db.enrollments.create_index("enrollment_id", unique=True)
    await db.enrollments.create_index([("student_id", 1), ("course_id", 1)], unique=True)

    await db.progress.create_index([("student_id", 1), ("course_id", 1)], unique=True)

    await db.certificates.create_index("certificate_id", unique=True)
    await db.certificates.create_index([("student_id", 1), ("course_id", 1)], unique=True)

    logger.info("Database indexes ensured")

# ==================== COURSE CRUD ====================

async def create_course(db: AsyncIOMotorDatabase, course_data: dict, created_by: Optional[str]) -> dict:
    course = {
        "course_id": generate_id("COURSE"),
        "title": course_data["title"],
        "description": course_data["description"],
        "thumbnail": course_data.get("thumbnail"),
        "instructor": course_data.get("instructor"),
        "category": course_data.get("category"),
        "price": course_data["price"],
        "level": course_data.get("level"),
        "duration": course_data.get("duration"),
        "lessons": [],
        "sections": [],
        "quiz": [],
        "is_published": course_data.get("is_published", True),
        "created_by": created_by,
        "stats": {"students": 0, "rating": 0.0},
        "created_at": datetime.utcnow(),
        "updated_at": datetime.utcnow(),
    }
    await db.courses.insert_one(course)
    return course

async def get_course(db: AsyncIOMotorDatabase, course_id: str) -> Optional[dict]:
    return await db.courses.find_one({"course_id": course_id})

async def get_published_course(db: AsyncIOMotorDatabase, course_id: str) -> Optional[dict]:
    """Unpublished courses are invisible outside the admin read path"""
    return await db.courses.find_one({"course_id": course_id, "is_published": True})

async def list_courses(db: AsyncIOMotorDatabase, published_only: bool = True) -> List[dict]:
    query = {"is_published": True} if published_only else {}
    cursor = db.courses.find(query).sort("created_at", -1)
    return await cursor.to_list(length=None)

async def update_course(db: AsyncIOMotorDatabase, course_id: str, updates: dict) -> Optional[dict]:
    updates["updated_at"] = datetime.utcnow()
    return await db.courses.find_one_and_update(
        {"course_id": course_id},
        {"$set": updates},
        return_document=ReturnDocument.AFTER,
    )

async def delete_course(db: AsyncIOMotorDatabase, course_id: str) -> bool:
    result = await db.courses.delete_one({"course_id": course_id})
    return result.deleted_count > 0

async def increment_course_students(db: AsyncIOMotorDatabase, course_id: str):
    await db.courses.update_one(
        {"course_id": course_id},
        {"$inc": {"stats.students": 1}}
    )

# ==================== ENROLLMENT CRUD ====================

async def get_enrollment(db: AsyncIOMotorDatabase, student_id: str, course_id: str) -> Optional[dict]:
    return await db.enrollments.find_one({
        "student_id": student_id,
        "course_id": course_id
    })

async def insert_enrollment(db: AsyncIOMotorDatabase, student_id: str, course_id: str, payment: dict) -> dict:
    """Raises DuplicateKeyError when the pair is already enrolled"""
    enrollment = {
        "enrollment_id": generate_id("ENR"),
        "student_id": student_id,
        "course_id": course_id,
        "payment": payment,
        "created_at": datetime.utcnow(),
    }
    await db.enrollments.insert_one(enrollment)
    return enrollment

async def list_enrollments(db: AsyncIOMotorDatabase, student_id: Optional[str] = None) -> List[dict]:
    query = {"student_id": student_id} if student_id else {}
    cursor = db.enrollments.find(query).sort("created_at", -1)
    return await cursor.to_list(length=None)

# ==================== PROGRESS CRUD ====================

async def ensure_progress(db: AsyncIOMotorDatabase, student_id: str, course_id: str) -> dict:
    """Create the initial progress record unless one already exists"""
    return await db.progress.find_one_and_update(
        {"student_id": student_id, "course_id": course_id},
        {"$setOnInsert": {
            "progress_id": generate_id("PRG"),
            "lessons_completed": [],
            "status": ProgressStatus.IN_PROGRESS.value,
            "score": 0,
            "created_at": datetime.utcnow(),
            "updated_at": datetime.utcnow(),
        }},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )

async def get_progress(db: AsyncIOMotorDatabase, student_id: str, course_id: str) -> Optional[dict]:
    return await db.progress.find_one({
        "student_id": student_id,
        "course_id": course_id
    })

async def add_completed_lesson(db: AsyncIOMotorDatabase, student_id: str, course_id: str, lesson_id: str) -> Optional[dict]:
    return await db.progress.find_one_and_update(
        {"student_id": student_id, "course_id": course_id},
        {
            "$addToSet": {"lessons_completed": lesson_id},
            "$set": {"updated_at": datetime.utcnow()}
        },
        return_document=ReturnDocument.AFTER,
    )

async def mark_progress_completed(db: AsyncIOMotorDatabase, student_id: str, course_id: str) -> Optional[dict]:
    return await db.progress.find_one_and_update(
        {"student_id": student_id, "course_id": course_id},
        {"$set": {
            "status": ProgressStatus.COMPLETED.value,
            "completed_at": datetime.utcnow(),
            "updated_at": datetime.utcnow()
        }},
        return_document=ReturnDocument.AFTER,
    )

async def set_quiz_score(db: AsyncIOMotorDatabase, student_id: str, course_id: str, score: int) -> Optional[dict]:
    return await db.progress.find_one_and_update(
        {"student_id": student_id, "course_id": course_id},
        {"$set": {
            "score": score,
            "quiz_submitted_at": datetime.utcnow(),
            "updated_at": datetime.utcnow()
        }},
        return_document=ReturnDocument.AFTER,
    )

# ==================== CERTIFICATE CRUD ====================

async def get_certificate(db: AsyncIOMotorDatabase, student_id: str, course_id: str) -> Optional[dict]:
    return await db.certificates.find_one({
        "student_id": student_id,
        "course_id": course_id
    })

async def get_certificate_by_id(db: AsyncIOMotorDatabase, certificate_id: str) -> Optional[dict]:
    return await db.certificates.find_one({"certificate_id": certificate_id})

async def insert_certificate(db: AsyncIOMotorDatabase, student_id: str, course_id: str) -> dict:
    """Raises DuplicateKeyError when the pair already holds a certificate"""
    certificate = {
        "certificate_id": generate_id("CERT"),
        "student_id": student_id,
        "course_id": course_id,
        "issued_at": datetime.utcnow(),
    }
    await db.certificates.insert_one(certificate)
    return certificate

async def list_certificates(db: AsyncIOMotorDatabase, student_id: str) -> List[dict]:
    cursor = db.certificates.find({"student_id": student_id}).sort("issued_at", -1)
    return await cursor.to_list(length=None)
