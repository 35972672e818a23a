from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub.auth.auth_utils import StoredUser, get_current_student
from learnhub.courses import progress_service
from learnhub.courses.database import serialize_mongo
from learnhub.courses.models import QuizSubmission
from learnhub.dependencies import get_db

router = APIRouter(tags=["Progress"])


@router.get("/{course_id}")
async def get_course_progress(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    student: StoredUser = Depends(get_current_student)
):
    progress = await progress_service.get_progress(db, student.user_id, course_id)
    return serialize_mongo(progress)


@router.post("/{course_id}/lessons/{lesson_id}/complete")
async def complete_lesson(
    course_id: str,
    lesson_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    student: StoredUser = Depends(get_current_student)
):
    """Mark a lesson done and recompute the course status"""
    progress = await progress_service.complete_lesson(db, student.user_id, course_id, lesson_id)
    return serialize_mongo(progress)


@router.post("/{course_id}/quiz/submit")
async def submit_quiz(
    course_id: str,
    data: QuizSubmission,
    db: AsyncIOMotorDatabase = Depends(get_db),
    student: StoredUser = Depends(get_current_student)
):
    result = await progress_service.submit_quiz(db, student.user_id, course_id, data.answers)
    return {"score": result["score"], "progress": serialize_mongo(result["progress"])}
