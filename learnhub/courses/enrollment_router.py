from fastapi import APIRouter, Depends, Response
from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub.auth.auth_utils import StoredUser, get_current_student, require_admin
from learnhub.courses import enrollment_service
from learnhub.courses.database import serialize_mongo
from learnhub.courses.models import EnrollmentCreate, EnrollmentVerify, PaymentOrderResponse
from learnhub.courses.payments import PaymentGateway, get_payment_gateway
from learnhub.dependencies import get_db

router = APIRouter(tags=["Enrollments"])


@router.post("", status_code=201, response_model=PaymentOrderResponse)
async def initiate_enrollment(
    data: EnrollmentCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    student: StoredUser = Depends(get_current_student)
):
    """Create a Razorpay order for the course; no enrollment is written yet"""
    return await enrollment_service.initiate(db, gateway, student.user_id, data.course_id)


@router.post("/verify", status_code=201)
async def verify_enrollment(
    data: EnrollmentVerify,
    response: Response,
    db: AsyncIOMotorDatabase = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    student: StoredUser = Depends(get_current_student)
):
    """
    Confirm a paid order and enroll.
    Retrying with the same course returns the existing enrollment with 200.
    """
    enrollment, created = await enrollment_service.confirm(
        db, gateway, student.user_id, data.course_id, data
    )
    if not created:
        response.status_code = 200
    return serialize_mongo(enrollment)


@router.get("/all", dependencies=[Depends(require_admin)])
async def list_all_enrollments(db: AsyncIOMotorDatabase = Depends(get_db)):
    return await enrollment_service.list_all(db)


@router.get("")
async def list_my_enrollments(
    db: AsyncIOMotorDatabase = Depends(get_db),
    student: StoredUser = Depends(get_current_student)
):
    return await enrollment_service.list_for_student(db, student.user_id)
