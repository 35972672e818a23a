import pytest

from learnhub.courses import enrollment_service
from learnhub.courses.models import PaymentProof
from learnhub.errors import Conflict, InvalidState, NotFound, PaymentFailed
from tests.conftest import make_course


def paid_proof(gateway, order_id="order_000001", payment_id="pay_001"):
    return PaymentProof(
        razorpay_order_id=order_id,
        razorpay_payment_id=payment_id,
        razorpay_signature=gateway.sign(order_id, payment_id),
    )


async def test_initiate_returns_gateway_order_in_minor_units(db, gateway, student):
    course = await make_course(db, price=49.99)

    order = await enrollment_service.initiate(db, gateway, student["user_id"], course["course_id"])

    assert order == {
        "order_id": "order_000001",
        "amount": 4999,
        "currency": "INR",
        "key": "rzp_test_key",
        "course_id": course["course_id"],
    }
    assert gateway.orders[0]["notes"] == {"student_id": student["user_id"], "course_id": course["course_id"]}


async def test_initiate_writes_nothing_locally(db, gateway, student):
    course = await make_course(db)

    await enrollment_service.initiate(db, gateway, student["user_id"], course["course_id"])

    assert await db.enrollments.count_documents({}) == 0
    assert await db.progress.count_documents({}) == 0


async def test_initiate_unknown_course(db, gateway, student):
    with pytest.raises(NotFound):
        await enrollment_service.initiate(db, gateway, student["user_id"], "COURSE_MISSING")


async def test_initiate_unpublished_course_is_not_found(db, gateway, admin_user):
    course = await make_course(db, published=False)

    with pytest.raises(NotFound):
        await enrollment_service.initiate(db, gateway, admin_user["user_id"], course["course_id"])


async def test_initiate_when_already_enrolled(db, gateway, student):
    course = await make_course(db)
    await enrollment_service.confirm(db, gateway, student["user_id"], course["course_id"], paid_proof(gateway))

    with pytest.raises(Conflict):
        await enrollment_service.initiate(db, gateway, student["user_id"], course["course_id"])


@pytest.mark.parametrize("price", [0, 0.001, -5])
async def test_initiate_rejects_non_positive_amount(db, gateway, student, price):
    course = await make_course(db, price=price)

    with pytest.raises(InvalidState):
        await enrollment_service.initiate(db, gateway, student["user_id"], course["course_id"])
    assert gateway.orders == []


async def test_initiate_gateway_failure_leaves_state_untouched(db, gateway, student):
    course = await make_course(db)
    gateway.fail_with = "Authentication failed"

    with pytest.raises(PaymentFailed):
        await enrollment_service.initiate(db, gateway, student["user_id"], course["course_id"])
    assert await db.enrollments.count_documents({}) == 0


async def test_confirm_creates_enrollment_and_initial_progress(db, gateway, student):
    course = await make_course(db)

    enrollment, created = await enrollment_service.confirm(
        db, gateway, student["user_id"], course["course_id"], paid_proof(gateway)
    )

    assert created is True
    assert enrollment["student_id"] == student["user_id"]
    assert enrollment["course_id"] == course["course_id"]
    assert enrollment["enrollment_id"].startswith("ENR_")

    progress = await db.progress.find_one({"student_id": student["user_id"], "course_id": course["course_id"]})
    assert progress["status"] == "in_progress"
    assert progress["lessons_completed"] == []
    assert progress["score"] == 0

    course_after = await db.courses.find_one({"course_id": course["course_id"]})
    assert course_after["stats"]["students"] == 1


async def test_confirm_twice_is_idempotent(db, gateway, student):
    course = await make_course(db)
    proof = paid_proof(gateway)

    first, first_created = await enrollment_service.confirm(db, gateway, student["user_id"], course["course_id"], proof)
    second, second_created = await enrollment_service.confirm(db, gateway, student["user_id"], course["course_id"], proof)

    assert (first_created, second_created) == (True, False)
    assert second["enrollment_id"] == first["enrollment_id"]
    assert await db.enrollments.count_documents({}) == 1
    assert await db.progress.count_documents({}) == 1


async def test_confirm_rejects_bad_signature(db, gateway, student):
    course = await make_course(db)
    proof = PaymentProof(
        razorpay_order_id="order_000001",
        razorpay_payment_id="pay_001",
        razorpay_signature="forged",
    )

    with pytest.raises(InvalidState):
        await enrollment_service.confirm(db, gateway, student["user_id"], course["course_id"], proof)
    assert await db.enrollments.count_documents({}) == 0


async def test_confirm_for_deleted_course(db, gateway, student):
    with pytest.raises(NotFound):
        await enrollment_service.confirm(db, gateway, student["user_id"], "COURSE_GONE", paid_proof(gateway))


async def test_confirm_losing_insert_race_is_a_conflict(db, gateway, student, monkeypatch):
    course = await make_course(db)

    # the pre-check misses an enrollment a parallel request already wrote
    await db.enrollments.insert_one({
        "enrollment_id": "ENR_PARALLEL",
        "student_id": student["user_id"],
        "course_id": course["course_id"],
    })

    async def stale_read(*args):
        return None

    monkeypatch.setattr(enrollment_service.store, "get_enrollment", stale_read)
    with pytest.raises(Conflict):
        await enrollment_service.confirm(db, gateway, student["user_id"], course["course_id"], paid_proof(gateway))

    assert await db.enrollments.count_documents({}) == 1


async def test_list_for_student_joins_course_summary(db, gateway, student):
    kept = await make_course(db, title="Kept")
    dropped = await make_course(db, title="Dropped")
    for course in (kept, dropped):
        await enrollment_service.confirm(db, gateway, student["user_id"], course["course_id"], paid_proof(gateway))
    await db.courses.delete_one({"course_id": dropped["course_id"]})

    enrollments = await enrollment_service.list_for_student(db, student["user_id"])

    assert [e["course"]["title"] for e in enrollments] == ["Kept"]
    assert enrollments[0]["course"]["lesson_count"] == 2


async def test_list_all_attaches_student(db, gateway, student):
    course = await make_course(db)
    await enrollment_service.confirm(db, gateway, student["user_id"], course["course_id"], paid_proof(gateway))

    enrollments = await enrollment_service.list_all(db)

    assert len(enrollments) == 1
    assert enrollments[0]["student"] == {
        "user_id": student["user_id"],
        "name": "Asha Rao",
        "email": "asha@learnhub.dev",
    }
