# backend/errors.py
"""
HTTP error taxonomy.

Every error is a werkzeug ``HTTPException`` so the global handler in
``app.create_app`` renders it as ``{"error": description}`` with its status.
Services and routes raise these; only the app's error handlers build error bodies.
"""
from __future__ import annotations

from werkzeug.exceptions import HTTPException

__all__ = [
    "ValidationError",
    "NotFound",
    "Unauthorized",
    "Forbidden",
    "Expired",
    "NoPendingChallenge",
    "InvalidCode",
    "TooManyRequests",
    "DeliveryFailure",
    "ServiceUnavailable",
]


class ValidationError(HTTPException):
    code = 400
    description = "Invalid request"


class NotFound(HTTPException):
    code = 404
    description = "Not found"


class Unauthorized(HTTPException):
    code = 401
    description = "Invalid credentials"


class Forbidden(HTTPException):
    code = 403
    description = "Forbidden"


class Expired(HTTPException):
    code = 400
    description = "OTP has expired"


class NoPendingChallenge(HTTPException):
    code = 400
    description = "No pending login found. Please login again."


class InvalidCode(HTTPException):
    code = 400
    description = "Invalid OTP"


class TooManyRequests(HTTPException):
    code = 429
    description = "Too many requests"


class DeliveryFailure(HTTPException):
    code = 500
    description = "Unable to send verification code. Please try again."


class ServiceUnavailable(HTTPException):
    code = 503
    description = "Service temporarily unavailable"
