from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import Optional
import uuid


async def get_user_by_email(db: AsyncIOMotorDatabase, email: str) -> Optional[dict]:
    return await db.users.find_one({"email": email.lower()})


async def create_user(db: AsyncIOMotorDatabase, name: str, email: str, password_hash: str, role: str = "student") -> dict:
    """Raises DuplicateKeyError when the email is taken"""
    user = {
        "user_id": f"USR_{uuid.uuid4().hex[:12].upper()}",
        "name": name,
        "email": email.lower(),
        "password_hash": password_hash,
        "role": role,
        "created_at": datetime.utcnow(),
    }
    await db.users.insert_one(user)
    return user


async def set_reset_token(db: AsyncIOMotorDatabase, user_id: str, token: str, expires_at: datetime):
    await db.users.update_one(
        {"user_id": user_id},
        {"$set": {"reset_token": token, "reset_token_expiry": expires_at}}
    )


async def find_by_reset_token(db: AsyncIOMotorDatabase, email: str, token: str) -> Optional[dict]:
    return await db.users.find_one({
        "email": email.lower(),
        "reset_token": token,
        "reset_token_expiry": {"$gt": datetime.utcnow()}
    })


async def update_password(db: AsyncIOMotorDatabase, user_id: str, password_hash: str):
    """Store the new hash and burn the reset token"""
    await db.users.update_one(
        {"user_id": user_id},
        {
            "$set": {"password_hash": password_hash, "updated_at": datetime.utcnow()},
            "$unset": {"reset_token": "", "reset_token_expiry": ""}
        }
    )
