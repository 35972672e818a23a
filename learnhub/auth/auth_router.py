import logging
import secrets
from datetime import datetime, timedelta
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from learnhub import config
from learnhub.auth import database as users
from learnhub.auth.auth_utils import (
    ConfiguredAdmin, Identity, create_token, get_current_identity, hash_password,
    is_configured_admin_login, stored_user_from_doc, verify_password
)
from learnhub.auth.mailer import EmailDeliveryError, send_reset_email
from learnhub.auth.models import (
    ForgotPasswordRequest, LoginRequest, RegisterRequest, ResetPasswordRequest
)
from learnhub.dependencies import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])

GENERIC_RESET_MESSAGE = "If an account exists, a reset link has been sent to your email"


def auth_response(identity: Identity) -> dict:
    return {"user": identity.public(), "token": create_token(identity)}


@router.post("/register", status_code=201)
async def register(data: RegisterRequest, db: AsyncIOMotorDatabase = Depends(get_db)):
    """Self-registration always creates a student"""
    email = data.email.lower()
    if email == config.ADMIN_EMAIL.lower() or await users.get_user_by_email(db, email):
        raise HTTPException(status_code=400, detail="Email already in use")

    try:
        user = await users.create_user(db, data.name, email, hash_password(data.password))
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Email already in use")

    logger.info("Registered user %s", user["user_id"])
    return auth_response(stored_user_from_doc(user))


@router.post("/login")
async def login(data: LoginRequest, db: AsyncIOMotorDatabase = Depends(get_db)):
    email = data.email.lower()

    if is_configured_admin_login(email, data.password):
        return auth_response(ConfiguredAdmin(email=config.ADMIN_EMAIL))

    user = await users.get_user_by_email(db, email)
    if not user or not verify_password(data.password, user["password_hash"]):
        raise HTTPException(status_code=400, detail="Invalid credentials")

    return auth_response(stored_user_from_doc(user))


@router.post("/forgot-password")
async def forgot_password(data: ForgotPasswordRequest, db: AsyncIOMotorDatabase = Depends(get_db)):
    user = await users.get_user_by_email(db, data.email)
    if not user:
        # same answer whether or not the account exists
        return {"message": GENERIC_RESET_MESSAGE}

    reset_token = secrets.token_hex(32)
    expires_at = datetime.utcnow() + timedelta(minutes=config.RESET_TOKEN_TTL_MINUTES)
    await users.set_reset_token(db, user["user_id"], reset_token, expires_at)

    reset_link = f"{config.CLIENT_URL}/reset-password?token={reset_token}&email={quote(user['email'])}"

    try:
        await send_reset_email(user["email"], reset_link)
    except EmailDeliveryError:
        if not config.is_development():
            raise HTTPException(status_code=500, detail="Failed to send reset email")
        logger.warning("Reset email not delivered for %s; continuing in development", user["user_id"])

    response = {"message": GENERIC_RESET_MESSAGE}
    if config.is_development():
        response["dev_link"] = reset_link
    return response


@router.post("/reset-password")
async def reset_password(data: ResetPasswordRequest, db: AsyncIOMotorDatabase = Depends(get_db)):
    user = await users.find_by_reset_token(db, data.email, data.token)
    if not user:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    await users.update_password(db, user["user_id"], hash_password(data.new_password))
    logger.info("Password reset for %s", user["user_id"])
    return {"message": "Password reset successful"}


@router.get("/me")
async def me(identity: Identity = Depends(get_current_identity)):
    return {"user": identity.public()}
