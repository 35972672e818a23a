import io
import logging
from datetime import datetime
from typing import List, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from PIL import Image, ImageDraw, ImageFont
from pymongo.errors import DuplicateKeyError

from learnhub.courses import database as store
from learnhub.courses.models import ProgressStatus
from learnhub.errors import InvalidState, NotFound

logger = logging.getLogger(__name__)

FONT_DIR = "/usr/share/fonts/truetype/dejavu"


async def issue(db: AsyncIOMotorDatabase, student_id: str, course_id: str) -> Tuple[dict, bool]:
    """
    Issue the certificate for a completed course, at most once.
    Returns (certificate, created).
    """
    progress = await store.get_progress(db, student_id, course_id)
    if not progress or progress.get("status") != ProgressStatus.COMPLETED.value:
        raise InvalidState("Course not completed")

    existing = await store.get_certificate(db, student_id, course_id)
    if existing:
        return existing, False

    course = await store.get_course(db, course_id)
    if not course:
        raise NotFound("Course not found")

    try:
        certificate = await store.insert_certificate(db, student_id, course_id)
    except DuplicateKeyError:
        # lost the race to a parallel request; theirs is the certificate
        return await store.get_certificate(db, student_id, course_id), False

    logger.info("Certificate %s issued to %s for %s", certificate["certificate_id"], student_id, course_id)
    return certificate, True


async def list_for_student(db: AsyncIOMotorDatabase, student_id: str) -> List[dict]:
    certificates = await store.list_certificates(db, student_id)

    result = []
    for cert in certificates:
        course = await store.get_course(db, cert["course_id"])
        result.append({
            **store.serialize_mongo(cert),
            "course": store.course_summary(course) if course else None,
        })
    return result


async def verify(db: AsyncIOMotorDatabase, certificate_id: str) -> dict:
    certificate = await store.get_certificate_by_id(db, certificate_id)
    if not certificate:
        return {"valid": False, "message": "Certificate not found"}

    course = await store.get_course(db, certificate["course_id"])
    student = await db.users.find_one({"user_id": certificate["student_id"]})
    return {
        "valid": True,
        "certificate_id": certificate_id,
        "issued_to": student.get("name") if student else None,
        "course_id": certificate["course_id"],
        "course_title": course.get("title") if course else None,
        "issued_at": certificate["issued_at"],
        "message": "Certificate is valid"
    }

# ==================== CERTIFICATE IMAGE ====================

def _load_fonts():
    try:
        return (
            ImageFont.truetype(f"{FONT_DIR}/DejaVuSerif-Bold.ttf", 80),
            ImageFont.truetype(f"{FONT_DIR}/DejaVuSerif.ttf", 40),
            ImageFont.truetype(f"{FONT_DIR}/DejaVuSans.ttf", 28),
        )
    except OSError:
        default = ImageFont.load_default()
        return default, default, default


def render_png(student_name: str, course_title: str, certificate_id: str, issued_at: datetime) -> bytes:
    width, height = 1920, 1080
    img = Image.new("RGB", (width, height), color="white")
    draw = ImageDraw.Draw(img)
    primary_color = (41, 128, 185)
    secondary_color = (52, 73, 94)
    gold_color = (212, 175, 55)

    draw.rectangle([50, 50, width - 50, height - 50], outline=primary_color, width=10)
    draw.rectangle([70, 70, width - 70, height - 70], outline=gold_color, width=3)

    title_font, text_font, small_font = _load_fonts()

    def centered(text, font, y, fill):
        bbox = draw.textbbox((0, 0), text, font=font)
        draw.text(((width - (bbox[2] - bbox[0])) / 2, y), text, fill=fill, font=font)

    centered("CERTIFICATE OF COMPLETION", title_font, 140, primary_color)
    centered("This is to certify that", text_font, 280, secondary_color)
    centered(student_name, title_font, 360, gold_color)
    centered("has successfully completed the course", text_font, 500, secondary_color)
    centered(course_title, title_font, 570, primary_color)
    centered(f"Issued on: {issued_at.strftime('%B %d, %Y')}", small_font, 760, secondary_color)
    centered(f"Certificate ID: {certificate_id}", small_font, 820, secondary_color)
    draw.line([(width // 2 - 200, 930), (width // 2 + 200, 930)], fill=secondary_color, width=2)
    centered("LearnHub LMS", small_font, 945, secondary_color)

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
