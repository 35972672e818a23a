from fastapi import APIRouter, Depends, Response
from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub.auth.auth_utils import StoredUser, get_current_student
from learnhub.courses import certificate_service
from learnhub.courses.database import get_certificate, get_course, serialize_mongo
from learnhub.dependencies import get_db
from learnhub.errors import NotFound

router = APIRouter(tags=["Certificates"])


@router.get("/verify/{certificate_id}")
async def verify_certificate(certificate_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    """Public check that a certificate id was issued by us"""
    return await certificate_service.verify(db, certificate_id)


@router.get("")
async def get_my_certificates(
    db: AsyncIOMotorDatabase = Depends(get_db),
    student: StoredUser = Depends(get_current_student)
):
    return await certificate_service.list_for_student(db, student.user_id)


@router.post("/{course_id}", status_code=201)
async def issue_certificate(
    course_id: str,
    response: Response,
    db: AsyncIOMotorDatabase = Depends(get_db),
    student: StoredUser = Depends(get_current_student)
):
    certificate, created = await certificate_service.issue(db, student.user_id, course_id)
    if not created:
        response.status_code = 200
    return serialize_mongo(certificate)


@router.get("/{course_id}/download")
async def download_certificate(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    student: StoredUser = Depends(get_current_student)
):
    certificate = await get_certificate(db, student.user_id, course_id)
    if not certificate:
        raise NotFound("Certificate not found")
    course = await get_course(db, course_id)
    if not course:
        raise NotFound("Course not found")

    png = certificate_service.render_png(
        student_name=student.name,
        course_title=course["title"],
        certificate_id=certificate["certificate_id"],
        issued_at=certificate["issued_at"],
    )
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f"attachment; filename=certificate_{certificate['certificate_id']}.png"}
    )
