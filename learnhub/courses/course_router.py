import logging

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub.auth.auth_utils import Identity, StoredUser, require_admin
from learnhub.courses.database import (
    create_course, delete_course, generate_id, get_course, get_published_course,
    list_courses, public_course, serialize_many, serialize_mongo, update_course
)
from learnhub.courses.models import (
    CourseCreate, CourseUpdate, LessonCreate, LessonUpdate, QuizSave, SectionCreate, SectionUpdate
)
from learnhub.dependencies import get_db
from learnhub.errors import NotFound

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Courses"])

# ==================== HELPERS ====================

async def load_course(db: AsyncIOMotorDatabase, course_id: str) -> dict:
    course = await get_course(db, course_id)
    if not course:
        raise NotFound("Course not found")
    return course


def find_by_id(items: list, key: str, item_id: str, label: str) -> dict:
    for item in items:
        if item.get(key) == item_id:
            return item
    raise NotFound(f"{label} not found")


def new_lesson(data: LessonCreate) -> dict:
    return {"lesson_id": generate_id("LESSON"), **data.dict()}


def apply_lesson_update(lesson: dict, data: LessonUpdate):
    """Blank strings clear optional fields"""
    if data.title is not None:
        lesson["title"] = data.title.strip()
    for field in ("video_url", "content", "duration"):
        value = getattr(data, field)
        if value is not None:
            lesson[field] = value.strip() or None
    if data.resources is not None:
        lesson["resources"] = data.resources

# ==================== CATALOG (PUBLIC) ====================

@router.get("")
async def list_published_courses(db: AsyncIOMotorDatabase = Depends(get_db)):
    courses = await list_courses(db, published_only=True)
    return [
        {k: v for k, v in serialize_mongo(c).items() if k != "quiz"}
        for c in courses
    ]


@router.get("/admin/all", dependencies=[Depends(require_admin)])
async def list_all_courses(db: AsyncIOMotorDatabase = Depends(get_db)):
    return serialize_many(await list_courses(db, published_only=False))


@router.get("/{course_id}")
async def get_published(course_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    course = await get_published_course(db, course_id)
    if not course:
        raise NotFound("Course not found")
    return public_course(course)


@router.get("/{course_id}/admin", dependencies=[Depends(require_admin)])
async def get_for_admin(course_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    return serialize_mongo(await load_course(db, course_id))

# ==================== COURSE CRUD (ADMIN) ====================

@router.post("", status_code=201)
async def create(
    data: CourseCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: Identity = Depends(require_admin)
):
    created_by = admin.user_id if isinstance(admin, StoredUser) else None
    course = await create_course(db, data.dict(), created_by)
    logger.info("Course %s created", course["course_id"])
    return serialize_mongo(course)


@router.put("/{course_id}", dependencies=[Depends(require_admin)])
async def update(course_id: str, data: CourseUpdate, db: AsyncIOMotorDatabase = Depends(get_db)):
    updates = data.dict(exclude_unset=True)
    course = await update_course(db, course_id, updates)
    if not course:
        raise NotFound("Course not found")
    return serialize_mongo(course)


@router.delete("/{course_id}", dependencies=[Depends(require_admin)])
async def delete(course_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    if not await delete_course(db, course_id):
        raise NotFound("Course not found")
    logger.info("Course %s deleted", course_id)
    return {"message": "Course deleted"}


@router.patch("/{course_id}/publish", dependencies=[Depends(require_admin)])
async def publish(course_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    course = await update_course(db, course_id, {"is_published": True})
    if not course:
        raise NotFound("Course not found")
    return serialize_mongo(course)


@router.patch("/{course_id}/unpublish", dependencies=[Depends(require_admin)])
async def unpublish(course_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    course = await update_course(db, course_id, {"is_published": False})
    if not course:
        raise NotFound("Course not found")
    return serialize_mongo(course)

# ==================== LESSONS (ADMIN) ====================

@router.post("/{course_id}/lessons", status_code=201, dependencies=[Depends(require_admin)])
async def add_lesson(course_id: str, data: LessonCreate, db: AsyncIOMotorDatabase = Depends(get_db)):
    course = await load_course(db, course_id)
    lesson = new_lesson(data)
    await update_course(db, course_id, {"lessons": course.get("lessons", []) + [lesson]})
    return lesson


@router.put("/{course_id}/lessons/{lesson_id}", dependencies=[Depends(require_admin)])
async def edit_lesson(course_id: str, lesson_id: str, data: LessonUpdate, db: AsyncIOMotorDatabase = Depends(get_db)):
    course = await load_course(db, course_id)
    lessons = course.get("lessons", [])
    lesson = find_by_id(lessons, "lesson_id", lesson_id, "Lesson")
    apply_lesson_update(lesson, data)
    await update_course(db, course_id, {"lessons": lessons})
    return lesson


@router.delete("/{course_id}/lessons/{lesson_id}", dependencies=[Depends(require_admin)])
async def remove_lesson(course_id: str, lesson_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    course = await load_course(db, course_id)
    lessons = course.get("lessons", [])
    find_by_id(lessons, "lesson_id", lesson_id, "Lesson")
    await update_course(db, course_id, {
        "lessons": [l for l in lessons if l["lesson_id"] != lesson_id]
    })
    return {"message": "Lesson deleted"}

# ==================== SECTIONS (ADMIN) ====================

@router.post("/{course_id}/sections", status_code=201, dependencies=[Depends(require_admin)])
async def add_section(course_id: str, data: SectionCreate, db: AsyncIOMotorDatabase = Depends(get_db)):
    course = await load_course(db, course_id)
    section = {"section_id": generate_id("SEC"), "title": data.title, "lessons": []}
    await update_course(db, course_id, {"sections": course.get("sections", []) + [section]})
    return section


@router.put("/{course_id}/sections/{section_id}", dependencies=[Depends(require_admin)])
async def edit_section(course_id: str, section_id: str, data: SectionUpdate, db: AsyncIOMotorDatabase = Depends(get_db)):
    course = await load_course(db, course_id)
    sections = course.get("sections", [])
    section = find_by_id(sections, "section_id", section_id, "Section")
    if data.title is not None:
        section["title"] = data.title.strip()
    await update_course(db, course_id, {"sections": sections})
    return section


@router.delete("/{course_id}/sections/{section_id}", dependencies=[Depends(require_admin)])
async def remove_section(course_id: str, section_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    course = await load_course(db, course_id)
    sections = course.get("sections", [])
    find_by_id(sections, "section_id", section_id, "Section")
    await update_course(db, course_id, {
        "sections": [s for s in sections if s["section_id"] != section_id]
    })
    return {"message": "Section deleted"}


@router.post("/{course_id}/sections/{section_id}/lessons", status_code=201, dependencies=[Depends(require_admin)])
async def add_section_lesson(course_id: str, section_id: str, data: LessonCreate, db: AsyncIOMotorDatabase = Depends(get_db)):
    course = await load_course(db, course_id)
    sections = course.get("sections", [])
    section = find_by_id(sections, "section_id", section_id, "Section")
    lesson = new_lesson(data)
    section.setdefault("lessons", []).append(lesson)
    await update_course(db, course_id, {"sections": sections})
    return lesson

# ==================== QUIZ (ADMIN) ====================

@router.post("/{course_id}/quiz", status_code=201, dependencies=[Depends(require_admin)])
async def save_quiz(course_id: str, data: QuizSave, db: AsyncIOMotorDatabase = Depends(get_db)):
    """Replace the whole quiz; question order is answer order"""
    await load_course(db, course_id)
    quiz = [{"question_id": generate_id("Q"), **q.dict()} for q in data.questions]
    await update_course(db, course_id, {"quiz": quiz})
    return quiz
