import pytest
from httpx import ASGITransport, AsyncClient

from learnhub.auth.auth_utils import create_token, hash_password, stored_user_from_doc
from learnhub.auth.database import create_user
from learnhub.courses import database as store
from learnhub.courses.payments import get_payment_gateway
from learnhub.dependencies import get_db
from learnhub.main import app
from tests.fakes import FakeDatabase, FakeGateway


@pytest.fixture
async def db():
    database = FakeDatabase()
    await store.create_indexes(database)
    return database


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
async def client(db, gateway):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def make_user(db, name="Asha Rao", email="asha@learnhub.dev", password="secret123", role="student"):
    return await create_user(db, name, email, hash_password(password), role=role)


def auth_header(user_doc) -> dict:
    token = create_token(stored_user_from_doc(user_doc))
    return {"Authorization": f"Bearer {token}"}


async def make_course(db, lessons=("Intro", "Deep dive"), quiz=(), price=50, published=True, title="Course X"):
    """Insert a course with lessons and quiz questions given as (options, correct_index)"""
    course = await store.create_course(db, {
        "title": title,
        "description": "A course",
        "thumbnail": "thumb.png",
        "instructor": "Instructor",
        "category": "Programming",
        "price": price,
        "is_published": published,
    }, created_by=None)
    lesson_docs = [
        {"lesson_id": store.generate_id("LESSON"), "title": t, "video_url": None, "content": None}
        for t in lessons
    ]
    quiz_docs = [
        {"question_id": store.generate_id("Q"), "question": f"Q{i}", "options": list(options), "correct_index": correct}
        for i, (options, correct) in enumerate(quiz)
    ]
    return await store.update_course(db, course["course_id"], {"lessons": lesson_docs, "quiz": quiz_docs})


@pytest.fixture
async def student(db):
    return await make_user(db)


@pytest.fixture
async def admin_user(db):
    return await make_user(db, name="Dev Admin", email="ops@learnhub.dev", role="admin")
