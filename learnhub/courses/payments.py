"""
Razorpay integration for course purchases.

The gateway owns the PAYMENT_INITIATED / PAID states; nothing is stored
locally until a signed payment comes back through /enrollments/verify.
"""

import hmac
import hashlib
import logging
import time

import razorpay
from fastapi.concurrency import run_in_threadpool

from learnhub import config
from learnhub.errors import PaymentFailed

logger = logging.getLogger(__name__)

RECEIPT_MAX_LENGTH = 40


def to_minor_units(price: float) -> int:
    """Course price in the smallest currency unit (paise for INR)"""
    return int(round(price * 100))


def build_receipt() -> str:
    return f"rcpt_{int(time.time() * 1000)}"[:RECEIPT_MAX_LENGTH]


class PaymentGateway:
    def __init__(self, key_id: str, key_secret: str, currency: str = "INR"):
        self.key_id = key_id
        self.key_secret = key_secret
        self.currency = currency
        self.client = razorpay.Client(auth=(key_id, key_secret))

    async def create_order(self, amount: int, notes: dict) -> dict:
        order_data = {
            "amount": amount,
            "currency": self.currency,
            "receipt": build_receipt(),
            "notes": notes,
        }
        try:
            order = await run_in_threadpool(self.client.order.create, data=order_data)
        except Exception as e:
            logger.exception("Razorpay order creation failed for %s", notes)
            raise PaymentFailed(getattr(e, "description", None) or "Payment initialization failed")

        logger.info("Razorpay order %s created (%s %s)", order["id"], order["amount"], order["currency"])
        return order

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """HMAC-SHA256 of "<order_id>|<payment_id>" keyed with the API secret"""
        message = f"{order_id}|{payment_id}"
        generated_signature = hmac.new(
            self.key_secret.encode(),
            message.encode(),
            hashlib.sha256
        ).hexdigest()
        return hmac.compare_digest(generated_signature, signature)


_gateway = None


def get_payment_gateway() -> PaymentGateway:
    """Dependency returning the process-wide Razorpay gateway"""
    global _gateway
    if _gateway is None:
        _gateway = PaymentGateway(
            config.RAZORPAY_KEY_ID,
            config.RAZORPAY_KEY_SECRET,
            config.PAYMENT_CURRENCY,
        )
    return _gateway
