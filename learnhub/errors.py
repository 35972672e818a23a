"""
Domain errors shared by the enrollment, progress and certificate workflows.

Each error carries a stable (status_code, code) pair so clients can tell a
missing record from a conflict, a precondition failure or an unreachable
database, and only retry the last one.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pymongo.errors import ConnectionFailure

logger = logging.getLogger(__name__)


class LearnHubError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(LearnHubError):
    status_code = 404
    code = "NOT_FOUND"


class Conflict(LearnHubError):
    status_code = 400
    code = "CONFLICT"


class InvalidState(LearnHubError):
    status_code = 400
    code = "INVALID_STATE"


class PaymentFailed(LearnHubError):
    status_code = 400
    code = "PAYMENT_FAILED"


class Unavailable(LearnHubError):
    status_code = 503
    code = "UNAVAILABLE"


def error_response(exc: LearnHubError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


# ==================== HANDLERS ====================

async def learnhub_error_handler(request: Request, exc: LearnHubError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return error_response(exc)


async def database_unavailable_handler(request: Request, exc: ConnectionFailure):
    logger.error("Database unreachable during %s %s: %s", request.method, request.url.path, exc)
    return error_response(
        Unavailable("Database temporarily unavailable. Please try again in a moment.")
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled server error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def register_error_handlers(app: FastAPI):
    """Attach the domain error mapping to the application"""
    app.add_exception_handler(LearnHubError, learnhub_error_handler)
    app.add_exception_handler(ConnectionFailure, database_unavailable_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
