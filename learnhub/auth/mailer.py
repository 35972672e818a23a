"""
Outbound mail through the Resend HTTP API.
"""

import logging

import httpx

from learnhub import config

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    pass


def reset_email_html(reset_link: str) -> str:
    return f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        <h2 style="color: #333; text-align: center;">Password Reset Request</h2>
        <p>You requested a password reset for your LearnHub LMS account.</p>
        <div style="text-align: center; margin: 30px 0;">
          <a href="{reset_link}" style="background-color: #D4AF37; color: white; padding: 12px 24px; text-decoration: none; border-radius: 5px;">Reset Password</a>
        </div>
        <p style="word-break: break-all; color: #888; font-size: 12px;">{reset_link}</p>
        <p>This link will expire in {config.RESET_TOKEN_TTL_MINUTES} minutes.</p>
        <p>If you did not request this, please ignore this email.</p>
      </div>
    """


async def send_reset_email(email: str, reset_link: str):
    if not config.RESEND_API_KEY:
        raise EmailDeliveryError("RESEND_API_KEY is not configured")

    payload = {
        "from": config.EMAIL_FROM,
        "to": [email],
        "subject": "Password Reset Link",
        "html": reset_email_html(reset_link),
    }
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            resp = await client.post(
                config.RESEND_API_URL,
                json=payload,
                headers={"Authorization": f"Bearer {config.RESEND_API_KEY}"},
            )
            resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.error("Failed to send password reset email to %s: %s", email, e)
        raise EmailDeliveryError("Failed to send reset email") from e

    logger.info("Password reset email sent to %s", email)
