"""
Progress tracking: lesson completion, course completion status and quiz score.

Completion is derived from the course's *current* lesson list, so an admin
editing lessons after a student started can change the outcome. Two
policies are supported:

- containment: every current lesson id must be in lessons_completed, and
  only lessons that belong to the course can be completed.
- lesson_count: the count of completed ids must reach the lesson count;
  any lesson id is accepted.

Under both, status only ever moves in_progress -> completed.
"""

import logging
from typing import Any, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub import config
from learnhub.courses import database as store
from learnhub.courses.models import CompletionPolicy, ProgressStatus
from learnhub.errors import NotFound

logger = logging.getLogger(__name__)


def is_course_completed(lessons_completed: List[str], lesson_ids: List[str], policy: CompletionPolicy) -> bool:
    if policy == CompletionPolicy.LESSON_COUNT:
        return len(set(lessons_completed)) >= len(lesson_ids)
    return bool(lesson_ids) and set(lesson_ids) <= set(lessons_completed)


def score_quiz(quiz: List[dict], answers: List[Any]) -> int:
    """One point per position whose answer is numerically the correct option index"""
    score = 0
    for index, question in enumerate(quiz):
        if index >= len(answers):
            break
        submitted = answers[index]
        if isinstance(submitted, float) and submitted.is_integer():
            submitted = int(submitted)
        if isinstance(submitted, bool) or not isinstance(submitted, int):
            continue
        if submitted == question.get("correct_index"):
            score += 1
    return score


async def get_progress(db: AsyncIOMotorDatabase, student_id: str, course_id: str) -> dict:
    progress = await store.get_progress(db, student_id, course_id)
    if not progress:
        raise NotFound("Progress not found")
    return progress


async def complete_lesson(
    db: AsyncIOMotorDatabase,
    student_id: str,
    course_id: str,
    lesson_id: str,
    policy: Optional[CompletionPolicy] = None,
) -> dict:
    policy = CompletionPolicy(policy or config.COMPLETION_POLICY)

    await get_progress(db, student_id, course_id)

    course = await store.get_course(db, course_id)
    if not course:
        raise NotFound("Course not found")

    lesson_ids = store.course_lesson_ids(course)
    if policy == CompletionPolicy.CONTAINMENT and lesson_id not in lesson_ids:
        raise NotFound("Lesson not found")

    progress = await store.add_completed_lesson(db, student_id, course_id, lesson_id)
    if progress is None:
        raise NotFound("Progress not found")

    if (
        progress["status"] != ProgressStatus.COMPLETED.value
        and is_course_completed(progress["lessons_completed"], lesson_ids, policy)
    ):
        progress = await store.mark_progress_completed(db, student_id, course_id)
        logger.info("Student %s completed course %s", student_id, course_id)

    return progress


async def submit_quiz(
    db: AsyncIOMotorDatabase,
    student_id: str,
    course_id: str,
    answers: List[Any],
) -> dict:
    """Score the answers and overwrite the stored score (never cumulative)"""
    course = await store.get_course(db, course_id)
    if not course:
        raise NotFound("Course not found")

    await get_progress(db, student_id, course_id)

    score = score_quiz(course.get("quiz", []), answers)
    progress = await store.set_quiz_score(db, student_id, course_id, score)

    logger.info("Student %s scored %d/%d on %s", student_id, score, len(course.get("quiz", [])), course_id)
    return {"score": score, "progress": progress}
