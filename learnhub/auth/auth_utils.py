# learnhub/auth/auth_utils.py
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Union

from fastapi import Depends, Header, HTTPException
from jose import jwt, JWTError
from motor.motor_asyncio import AsyncIOMotorDatabase
from passlib.context import CryptContext

from learnhub import config
from learnhub.dependencies import get_db

ADMIN_SENTINEL_ID = "admin-static"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# ==================== IDENTITY ====================

@dataclass(frozen=True)
class StoredUser:
    """A user record from the users collection"""
    user_id: str
    name: str
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def public(self) -> dict:
        return {"id": self.user_id, "name": self.name, "email": self.email, "role": self.role}


@dataclass(frozen=True)
class ConfiguredAdmin:
    """The super admin from ADMIN_EMAIL / ADMIN_PASSWORD; has no database record"""
    email: str
    name: str = "Administrator"
    role: str = "admin"

    @property
    def is_admin(self) -> bool:
        return True

    @property
    def user_id(self) -> str:
        return ADMIN_SENTINEL_ID

    def public(self) -> dict:
        return {"id": ADMIN_SENTINEL_ID, "name": self.name, "email": self.email, "role": self.role}


Identity = Union[StoredUser, ConfiguredAdmin]


def stored_user_from_doc(doc: dict) -> StoredUser:
    return StoredUser(
        user_id=doc["user_id"],
        name=doc["name"],
        email=doc["email"],
        role=doc.get("role", "student"),
    )

# ==================== PASSWORDS ====================

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def is_configured_admin_login(email: str, password: str) -> bool:
    return email == config.ADMIN_EMAIL.lower() and password == config.ADMIN_PASSWORD

# ==================== TOKENS ====================

def create_token(identity: Identity) -> str:
    payload = {
        "sub": identity.user_id,
        "role": identity.role,
        "exp": datetime.utcnow() + timedelta(days=config.JWT_EXPIRES_DAYS),
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def _decode_jwt_token(token: str) -> dict:
    try:
        return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

# ==================== DEPENDENCIES ====================

async def get_current_identity(
    authorization: str = Header(None),
    db: AsyncIOMotorDatabase = Depends(get_db),
) -> Identity:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Authentication required")

    payload = _decode_jwt_token(authorization[len("Bearer "):])

    if payload.get("sub") == ADMIN_SENTINEL_ID and payload.get("role") == "admin":
        return ConfiguredAdmin(email=config.ADMIN_EMAIL)

    user = await db.users.find_one({"user_id": payload.get("sub")})
    if not user:
        raise HTTPException(status_code=401, detail="Invalid token")
    return stored_user_from_doc(user)


async def get_current_student(identity: Identity = Depends(get_current_identity)) -> StoredUser:
    """Learner endpoints need a stored account to attach records to"""
    if not isinstance(identity, StoredUser):
        raise HTTPException(status_code=403, detail="The configured administrator cannot enroll or learn")
    return identity


async def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    if not identity.is_admin:
        raise HTTPException(status_code=403, detail="Forbidden")
    return identity
