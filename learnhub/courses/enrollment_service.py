"""
Enrollment / payment workflow.

Per (student, course) the flow is NONE -> PAYMENT_INITIATED -> PAID -> ENROLLED.
Only NONE and ENROLLED live in the database; the middle states belong to the
payment gateway. The unique (student_id, course_id) index on enrollments is
the real guard against duplicates, the reads before each insert only give
callers a friendlier answer.
"""

import logging
from typing import List, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from learnhub.courses import database as store
from learnhub.courses.models import PaymentProof
from learnhub.courses.payments import PaymentGateway, to_minor_units
from learnhub.errors import Conflict, InvalidState, NotFound

logger = logging.getLogger(__name__)


async def initiate(
    db: AsyncIOMotorDatabase,
    gateway: PaymentGateway,
    student_id: str,
    course_id: str,
) -> dict:
    """
    Request a gateway order for a published course the student does not own yet.
    Writes nothing locally.
    """
    course = await store.get_published_course(db, course_id)
    if not course:
        raise NotFound("Course not found")

    if await store.get_enrollment(db, student_id, course_id):
        raise Conflict("Already enrolled")

    amount = to_minor_units(course.get("price") or 0)
    if amount <= 0:
        raise InvalidState("Course price must be greater than zero")

    order = await gateway.create_order(amount, notes={
        "student_id": student_id,
        "course_id": course_id,
    })

    return {
        "order_id": order["id"],
        "amount": order["amount"],
        "currency": order["currency"],
        "key": gateway.key_id,
        "course_id": course_id,
    }


async def confirm(
    db: AsyncIOMotorDatabase,
    gateway: PaymentGateway,
    student_id: str,
    course_id: str,
    proof: PaymentProof,
) -> Tuple[dict, bool]:
    """
    Turn a verified payment into an Enrollment plus its initial Progress.

    Returns (enrollment, created). A retry after a lost response gets the
    existing enrollment back with created=False.
    """
    existing = await store.get_enrollment(db, student_id, course_id)
    if existing:
        await store.ensure_progress(db, student_id, course_id)
        logger.info("Enrollment %s already exists, returning it", existing["enrollment_id"])
        return existing, False

    if not gateway.verify_signature(
        proof.razorpay_order_id,
        proof.razorpay_payment_id,
        proof.razorpay_signature
    ):
        logger.warning("Rejected payment %s for %s/%s: bad signature",
                       proof.razorpay_payment_id, student_id, course_id)
        raise InvalidState("Invalid payment signature")

    course = await store.get_course(db, course_id)
    if not course:
        raise NotFound("Course not found")

    try:
        enrollment = await store.insert_enrollment(db, student_id, course_id, payment={
            "order_id": proof.razorpay_order_id,
            "payment_id": proof.razorpay_payment_id,
        })
    except DuplicateKeyError:
        raise Conflict("Enrollment was created by a concurrent request")

    await store.ensure_progress(db, student_id, course_id)
    await store.increment_course_students(db, course_id)

    logger.info("Student %s enrolled in %s (%s)", student_id, course_id, enrollment["enrollment_id"])
    return enrollment, True


async def list_for_student(db: AsyncIOMotorDatabase, student_id: str) -> List[dict]:
    enrollments = await store.list_enrollments(db, student_id=student_id)

    result = []
    for enr in enrollments:
        course = await store.get_course(db, enr["course_id"])
        if not course:
            continue
        result.append({
            **store.serialize_mongo(enr),
            "course": store.course_summary(course),
        })
    return result


async def list_all(db: AsyncIOMotorDatabase) -> List[dict]:
    """Admin view: every enrollment with its course and student"""
    enrollments = await store.list_enrollments(db)

    result = []
    for enr in enrollments:
        course = await store.get_course(db, enr["course_id"])
        if not course:
            continue
        student = await db.users.find_one({"user_id": enr["student_id"]})
        result.append({
            **store.serialize_mongo(enr),
            "course": store.course_summary(course),
            "student": {
                "user_id": enr["student_id"],
                "name": student.get("name") if student else None,
                "email": student.get("email") if student else None,
            },
        })
    return result
