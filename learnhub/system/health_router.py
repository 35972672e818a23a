from datetime import datetime

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from learnhub.dependencies import get_db

router = APIRouter(tags=["System"])


@router.get("/health")
async def health(db: AsyncIOMotorDatabase = Depends(get_db)):
    """Always answers; reports degraded when MongoDB does not respond"""
    try:
        await db.command("ping")
        database = "connected"
    except PyMongoError:
        database = "disconnected"

    return {
        "status": "ok" if database == "connected" else "degraded",
        "database": database,
        "timestamp": datetime.utcnow().isoformat()
    }
