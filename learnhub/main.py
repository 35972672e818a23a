import asyncio
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from learnhub import __version__, config
from learnhub.auth.auth_router import router as auth_router
from learnhub.courses.certificate_router import router as certificate_router
from learnhub.courses.course_router import router as course_router
from learnhub.courses.database import create_indexes
from learnhub.courses.enrollment_router import router as enrollment_router
from learnhub.courses.progress_router import router as progress_router
from learnhub.errors import register_error_handlers
from learnhub.system.health_router import router as health_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="LearnHub API", version=__version__)

# MongoDB Configuration
client = AsyncIOMotorClient(
    config.MONGO_URL,
    serverSelectionTimeoutMS=config.MONGO_SERVER_SELECTION_TIMEOUT_MS,
    maxPoolSize=10,
    retryWrites=True,
)
db = client[config.DB_NAME]


def backoff_delay(attempt: int) -> int:
    """Seconds to wait after the zero-based failed attempt: 1, 2, 4, 8, then 10"""
    return min(2 ** attempt, 10)


async def connect_with_retry(retries: int = config.MONGO_CONNECT_RETRIES):
    """Ping MongoDB, backing off exponentially between attempts"""
    for attempt in range(retries):
        try:
            await client.admin.command("ping")
            logger.info("MongoDB connected")
            return
        except PyMongoError as e:
            logger.error("MongoDB connection attempt %d/%d failed: %s", attempt + 1, retries, e)
            if attempt + 1 == retries:
                raise
            delay = backoff_delay(attempt)
            logger.info("Retrying in %ds...", delay)
            await asyncio.sleep(delay)


@app.on_event("startup")
async def startup_event():
    await connect_with_retry()
    await create_indexes(db)


@app.on_event("shutdown")
async def shutdown_event():
    client.close()


app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)

register_error_handlers(app)

# ==================== ROUTER REGISTRATION ====================
app.include_router(health_router)
app.include_router(auth_router, prefix="/auth")
app.include_router(course_router, prefix="/courses")
app.include_router(enrollment_router, prefix="/enrollments")
app.include_router(progress_router, prefix="/progress")
app.include_router(certificate_router, prefix="/certificates")
# ============================================================
