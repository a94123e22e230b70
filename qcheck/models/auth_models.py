"""
Authentication Pipeline Models.

Pydantic models and enumerations for the auth request/response
contracts between ``AuthService`` and the controllers.  Every auth
operation returns a structured, inspectable result rather than raw
strings or exception side-channels.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel

from qcheck.models.user import User


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

class AuthErrorCode(StrEnum):
    """Exhaustive enumeration of authentication error categories."""

    EMAIL_ALREADY_EXISTS = "email_already_exists"
    WEAK_PASSWORD = "weak_password"
    INVALID_EMAIL = "invalid_email"
    USER_NOT_FOUND = "user_not_found"
    INVALID_CREDENTIALS = "invalid_credentials"
    RATE_LIMITED = "rate_limited"
    NETWORK_ERROR = "network_error"
    VALIDATION_ERROR = "validation_error"
    UNKNOWN_ERROR = "unknown_error"


AUTH_ERROR_MESSAGES: dict[AuthErrorCode, str] = {
    AuthErrorCode.EMAIL_ALREADY_EXISTS: (
        "An account with this email already exists. Try signing in."
    ),
    AuthErrorCode.WEAK_PASSWORD: (
        "Password is too weak. Use at least 6 characters."
    ),
    AuthErrorCode.INVALID_EMAIL: "Please enter a valid email address.",
    AuthErrorCode.USER_NOT_FOUND: "No account found with this email address.",
    AuthErrorCode.INVALID_CREDENTIALS: "Incorrect password. Please try again.",
    AuthErrorCode.RATE_LIMITED: (
        "Too many failed attempts. Please wait a moment and try again."
    ),
    AuthErrorCode.NETWORK_ERROR: (
        "Cannot reach the server. Check your internet connection."
    ),
    AuthErrorCode.VALIDATION_ERROR: "Please check the highlighted fields and try again.",
    AuthErrorCode.UNKNOWN_ERROR: (
        "An unexpected error occurred. Please try again later."
    ),
}


# ---------------------------------------------------------------------------
# Supabase error mapping
# ---------------------------------------------------------------------------

# Keys are matched first against the provider's ``code`` attribute and
# then as substrings of the lower-cased error message.  Order matters:
# the first hit wins.
SUPABASE_ERROR_MAP: dict[str, AuthErrorCode] = {
    "user_already_exists": AuthErrorCode.EMAIL_ALREADY_EXISTS,
    "email_exists": AuthErrorCode.EMAIL_ALREADY_EXISTS,
    "already registered": AuthErrorCode.EMAIL_ALREADY_EXISTS,
    "weak_password": AuthErrorCode.WEAK_PASSWORD,
    "password should be": AuthErrorCode.WEAK_PASSWORD,
    "email_address_invalid": AuthErrorCode.INVALID_EMAIL,
    "invalid format": AuthErrorCode.INVALID_EMAIL,
    "over_request_rate_limit": AuthErrorCode.RATE_LIMITED,
    "over_email_send_rate_limit": AuthErrorCode.RATE_LIMITED,
    "rate limit": AuthErrorCode.RATE_LIMITED,
    "too many requests": AuthErrorCode.RATE_LIMITED,
    "user_not_found": AuthErrorCode.USER_NOT_FOUND,
    "invalid_credentials": AuthErrorCode.INVALID_CREDENTIALS,
    "invalid login credentials": AuthErrorCode.INVALID_CREDENTIALS,
    "invalid_grant": AuthErrorCode.INVALID_CREDENTIALS,
}


# ---------------------------------------------------------------------------
# Unified auth response
# ---------------------------------------------------------------------------

class AuthResult(BaseModel):
    """Unified response for registration and sign-in.

    Attributes
    ----------
    success:
        ``True`` when the operation completed without error.
    error_code:
        Structured error category (``None`` on success).
    error_message:
        Human-readable error description (``None`` on success).
    user:
        The composed profile on success.
    """

    success: bool
    error_code: Optional[AuthErrorCode] = None
    error_message: Optional[str] = None
    user: Optional[User] = None

    @classmethod
    def failure(
        cls,
        error_code: AuthErrorCode,
        error_message: Optional[str] = None,
    ) -> "AuthResult":
        return cls(
            success=False,
            error_code=error_code,
            error_message=error_message or AUTH_ERROR_MESSAGES[error_code],
        )
