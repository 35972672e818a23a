from datetime import datetime

import pytest

from learnhub.courses import certificate_service, enrollment_service, progress_service
from learnhub.courses.models import PaymentProof
from learnhub.errors import InvalidState, NotFound
from tests.conftest import make_course


async def complete_course(db, gateway, student, course):
    proof = PaymentProof(
        razorpay_order_id="order_1",
        razorpay_payment_id="pay_1",
        razorpay_signature=gateway.sign("order_1", "pay_1"),
    )
    await enrollment_service.confirm(db, gateway, student["user_id"], course["course_id"], proof)
    for lesson in course["lessons"]:
        await progress_service.complete_lesson(db, student["user_id"], course["course_id"], lesson["lesson_id"])


async def test_issue_requires_completed_progress(db, gateway, student):
    course = await make_course(db)

    with pytest.raises(InvalidState):
        await certificate_service.issue(db, student["user_id"], course["course_id"])


async def test_issue_while_in_progress(db, gateway, student):
    course = await make_course(db)
    proof = PaymentProof(
        razorpay_order_id="order_1",
        razorpay_payment_id="pay_1",
        razorpay_signature=gateway.sign("order_1", "pay_1"),
    )
    await enrollment_service.confirm(db, gateway, student["user_id"], course["course_id"], proof)

    with pytest.raises(InvalidState):
        await certificate_service.issue(db, student["user_id"], course["course_id"])


async def test_issue_once_then_return_same_certificate(db, gateway, student):
    course = await make_course(db)
    await complete_course(db, gateway, student, course)

    first, first_created = await certificate_service.issue(db, student["user_id"], course["course_id"])
    second, second_created = await certificate_service.issue(db, student["user_id"], course["course_id"])

    assert (first_created, second_created) == (True, False)
    assert first["certificate_id"].startswith("CERT_")
    assert second["certificate_id"] == first["certificate_id"]
    assert isinstance(first["issued_at"], datetime)
    assert await db.certificates.count_documents({}) == 1


async def test_issue_for_deleted_course(db, gateway, student):
    course = await make_course(db)
    await complete_course(db, gateway, student, course)
    await db.courses.delete_one({"course_id": course["course_id"]})

    with pytest.raises(NotFound):
        await certificate_service.issue(db, student["user_id"], course["course_id"])


async def test_issue_race_returns_winning_certificate(db, gateway, student, monkeypatch):
    course = await make_course(db)
    await complete_course(db, gateway, student, course)
    await db.certificates.insert_one({
        "certificate_id": "CERT_WINNER",
        "student_id": student["user_id"],
        "course_id": course["course_id"],
        "issued_at": datetime.utcnow(),
    })
    calls = []
    real_get = certificate_service.store.get_certificate

    async def first_read_misses(*args):
        calls.append(args)
        return None if len(calls) == 1 else await real_get(*args)

    monkeypatch.setattr(certificate_service.store, "get_certificate", first_read_misses)

    certificate, created = await certificate_service.issue(db, student["user_id"], course["course_id"])

    assert created is False
    assert certificate["certificate_id"] == "CERT_WINNER"
    assert await db.certificates.count_documents({}) == 1


async def test_list_and_verify(db, gateway, student):
    course = await make_course(db, title="Data Science 101")
    await complete_course(db, gateway, student, course)
    certificate, _ = await certificate_service.issue(db, student["user_id"], course["course_id"])

    listed = await certificate_service.list_for_student(db, student["user_id"])
    assert [c["certificate_id"] for c in listed] == [certificate["certificate_id"]]
    assert listed[0]["course"]["title"] == "Data Science 101"

    verdict = await certificate_service.verify(db, certificate["certificate_id"])
    assert verdict["valid"] is True
    assert verdict["issued_to"] == "Asha Rao"

    assert (await certificate_service.verify(db, "CERT_FAKE"))["valid"] is False


def test_render_png():
    png = certificate_service.render_png("Asha Rao", "Course X", "CERT_ABC", datetime(2026, 1, 15))
    assert png.startswith(b"\x89PNG")
