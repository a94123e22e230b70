"""
Authentication Service.

Single orchestrator for every identity concern: registration, sign-in,
sign-out, sign-in state notifications and error classification.

Sits between the controllers and the Supabase auth client so that
controllers remain thin form handlers.  All request methods return
typed ``AuthResult`` or ``ValidationResult`` models; callers never
inspect raw provider exceptions.
"""

from __future__ import annotations

import re
from typing import Callable, Optional, Protocol

from qcheck.auth import SessionManager
from qcheck.database import DatabaseManager
from qcheck.logger import StructuredLogger
from qcheck.models.auth_models import (
    AuthErrorCode,
    AuthResult,
    SUPABASE_ERROR_MAP,
)
from qcheck.models.enums import UserRole
from qcheck.models.service_models import ValidationResult
from qcheck.models.user import User
from qcheck.repositories.base_repository import StoreError
from qcheck.repositories.user_repository import UserRepository
from qcheck.services.base_service import BaseService
from qcheck.utils.audit import log_audit_event
from qcheck.utils.string_helpers import contains_control_chars
from qcheck.utils.timestamps import coerce_timestamp


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_EMAIL_RE: re.Pattern[str] = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$"
)

AuthStateCallback = Callable[[Optional[User]], None]


class _Account(Protocol):
    """The slice of the provider's user object this module reads."""

    id: str
    email: Optional[str]
    user_metadata: dict
    created_at: object


def _noop_unsubscribe() -> None:
    """Unsubscribe handle returned when there is nothing to listen to."""


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class AuthService(BaseService):
    """Centralised identity service.

    Parameters
    ----------
    db:
        Holder of the Supabase client whose ``auth`` namespace is used.
    session:
        Session state updated from provider notifications.
    user_repo:
        Profile documents that accompany each credential account.
    logger:
        Structured JSON logger for audit-grade logging.
    default_role:
        Role written to the profile of every new account.
    """

    def __init__(
        self,
        db: DatabaseManager,
        session: SessionManager,
        user_repo: UserRepository,
        logger: StructuredLogger,
        default_role: UserRole = UserRole.USER,
    ) -> None:
        super().__init__(logger)
        self._db: DatabaseManager = db
        self._session: SessionManager = session
        self._user_repo: UserRepository = user_repo
        self._default_role: UserRole = default_role

    # ==================================================================
    # Validation helpers
    # ==================================================================

    @staticmethod
    def validate_email(email: str) -> ValidationResult:
        """Validate an email address against a simplified RFC 5322 regex."""
        if not email or not email.strip():
            return ValidationResult(
                is_valid=False,
                field="email",
                error_message="Email address is required.",
            )
        if not _EMAIL_RE.match(email.strip()):
            return ValidationResult(
                is_valid=False,
                field="email",
                error_message="Please enter a valid email address.",
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def validate_password(password: str) -> ValidationResult:
        """Require a password.  Strength is the provider's call."""
        if not password:
            return ValidationResult(
                is_valid=False,
                field="password",
                error_message="Password is required.",
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def validate_name(name: str) -> ValidationResult:
        """Validate the display name entered at registration.

        Rejects control characters (including newlines and tabs) to
        prevent log injection and display corruption.
        """
        stripped = name.strip()
        if not stripped:
            return ValidationResult(
                is_valid=False,
                field="name",
                error_message="Name is required.",
            )
        if contains_control_chars(stripped):
            return ValidationResult(
                is_valid=False,
                field="name",
                error_message=(
                    "Name contains invalid characters. "
                    "Only printable characters are allowed."
                ),
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def normalize_email(email: str) -> str:
        """Normalise an email address: strip whitespace and lowercase."""
        return email.strip().lower()

    # ==================================================================
    # Registration
    # ==================================================================

    def register(self, name: str, email: str, password: str) -> AuthResult:
        """Create a credential account, then its profile document.

        The profile is written only after the provider accepted the
        account, so a rejected attempt (e.g. a duplicate email) never
        leaves a profile behind.

        Returns
        -------
        AuthResult
            ``user`` holds the composed profile on success.
        """
        for check in (
            self.validate_name(name),
            self.validate_email(email),
            self.validate_password(password),
        ):
            if not check.is_valid:
                return AuthResult.failure(
                    AuthErrorCode.VALIDATION_ERROR, check.error_message,
                )

        name = name.strip()
        email = self.normalize_email(email)

        try:
            response = self._db.supabase.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"name": name}},
            })
        except RuntimeError:
            return AuthResult.failure(AuthErrorCode.NETWORK_ERROR)
        except Exception as exc:
            return self._failure_from_exception(exc, email, event="REGISTER_FAILED")

        account: Optional[_Account] = getattr(response, "user", None)
        if account is None:
            self._logger.warning(
                "Sign-up for %s returned no account.", email,
                extra={"event": "REGISTER_FAILED"},
            )
            return AuthResult.failure(AuthErrorCode.UNKNOWN_ERROR)

        # With email confirmation enabled, the provider answers a repeat
        # sign-up with a placeholder account that has no identities.
        if getattr(account, "identities", None) == []:
            self._logger.warning(
                "Sign-up for %s rejected: account already exists.", email,
                extra={"event": "REGISTER_FAILED", "error_code": "user_already_exists"},
            )
            return AuthResult.failure(AuthErrorCode.EMAIL_ALREADY_EXISTS)

        try:
            user = self._user_repo.create_profile(
                uid=account.id,
                name=name,
                email=email,
                role=self._default_role,
            )
        except StoreError as exc:
            self._logger.error(
                "Account %s created but profile write failed: %s",
                account.id,
                exc.message,
                extra={"event": "REGISTER_PROFILE_FAILED"},
            )
            return AuthResult.failure(
                AuthErrorCode.UNKNOWN_ERROR,
                "Your account was created but your profile could not be saved. "
                "Sign in to finish setting it up.",
            )

        log_audit_event(
            self._logger,
            action="REGISTER",
            entity_type="User",
            entity_id=user.id,
            user_id=user.id,
            details={"email": user.email},
        )
        return AuthResult(success=True, user=user)

    # ==================================================================
    # Sign-in
    # ==================================================================

    def authenticate(self, email: str, password: str) -> AuthResult:
        """Verify credentials and return the signed-in user's profile.

        A missing profile is created on the fly.  Failures are reported
        distinctly for unknown account, wrong password, malformed email
        and rate limiting.
        """
        email_check = self.validate_email(email)
        if not email_check.is_valid:
            code = (
                AuthErrorCode.INVALID_EMAIL
                if email and email.strip()
                else AuthErrorCode.VALIDATION_ERROR
            )
            return AuthResult.failure(code, email_check.error_message)

        password_check = self.validate_password(password)
        if not password_check.is_valid:
            return AuthResult.failure(
                AuthErrorCode.VALIDATION_ERROR, password_check.error_message,
            )

        email = self.normalize_email(email)

        try:
            response = self._db.supabase.auth.sign_in_with_password({
                "email": email,
                "password": password,
            })
        except RuntimeError:
            return AuthResult.failure(AuthErrorCode.NETWORK_ERROR)
        except Exception as exc:
            return self._failure_from_exception(exc, email, event="LOGIN_FAILED")

        account: Optional[_Account] = getattr(response, "user", None)
        if account is None:
            return AuthResult.failure(AuthErrorCode.UNKNOWN_ERROR)

        user = self._profile_for_account(account)

        log_audit_event(
            self._logger,
            action="SIGN_IN",
            entity_type="User",
            entity_id=user.id,
            user_id=user.id,
            details={"email": user.email},
        )
        return AuthResult(success=True, user=user)

    # ==================================================================
    # Sign-out
    # ==================================================================

    def sign_out(self) -> None:
        """Revoke the provider session and invalidate the local one.

        Provider failures are logged, never raised: the local session is
        cleared regardless.
        """
        user = self._session.current_user
        try:
            self._db.supabase.auth.sign_out()
        except RuntimeError:
            self._logger.debug("No backend, skipping provider sign-out.")
        except Exception as exc:
            self._logger.warning("Provider sign-out failed: %s", exc)

        # No-op when the provider's SIGNED_OUT notification already did this.
        self._session.apply_provider_user(None)

        if user is not None:
            log_audit_event(
                self._logger,
                action="SIGN_OUT",
                entity_type="User",
                entity_id=user.id,
                user_id=user.id,
            )

    # ==================================================================
    # Sign-in state notifications
    # ==================================================================

    def on_auth_state_changed(self, callback: AuthStateCallback) -> Callable[[], None]:
        """Invoke ``callback(user_or_none)`` whenever sign-in state changes.

        The session is updated before *callback* runs.  Returns an
        unsubscribe handle; when there is no client to listen to (no
        backend configured, or a client without notifications) the
        handle is a no-op instead of an error.
        """
        try:
            auth_client = self._db.supabase.auth
            subscribe = auth_client.on_auth_state_change
        except (RuntimeError, AttributeError) as exc:
            self._logger.debug("Auth notifications unavailable: %s", exc)
            return _noop_unsubscribe

        def _on_change(event: str, provider_session: object) -> None:
            account: Optional[_Account] = getattr(provider_session, "user", None)
            user: Optional[User] = None
            if account is not None and event != "SIGNED_OUT":
                user = self._profile_for_account(account, create_missing=False)
            self._session.apply_provider_user(user)
            callback(user)

        subscription = subscribe(_on_change)
        return subscription.unsubscribe

    # ==================================================================
    # Private helpers
    # ==================================================================

    def _profile_for_account(self, account: _Account, create_missing: bool = True) -> User:
        """Look up the profile for *account*, creating it when missing.

        A profile is only created when the lookup succeeded and found
        nothing.  Falls back to a projection built from the account itself
        when the profile cannot be read or written, so a valid sign-in is
        never reported as signed out.
        """
        metadata = getattr(account, "user_metadata", None) or {}
        email = account.email or ""
        name = str(metadata.get("name") or email.split("@")[0] or "User")

        try:
            existing = self._user_repo.get_by_uid(account.id)
        except StoreError as exc:
            # A failed lookup is not an absent profile.
            self._logger.warning(
                "Profile lookup for %s failed: %s", account.id, exc.message,
            )
            create_missing = False
        else:
            if existing is not None:
                return existing

        if create_missing:
            try:
                return self._user_repo.create_profile(
                    uid=account.id,
                    name=name,
                    email=email,
                    role=self._default_role,
                )
            except StoreError as exc:
                self._logger.warning(
                    "Could not create missing profile for %s: %s",
                    account.id,
                    exc.message,
                )

        return User(
            id=account.id,
            name=name,
            email=email,
            role=self._default_role,
            created_at=coerce_timestamp(getattr(account, "created_at", None)),
        )

    def _classify_exception(self, exc: Exception) -> AuthErrorCode:
        """Map a provider or network exception to an ``AuthErrorCode``."""
        if isinstance(exc, (ConnectionError, TimeoutError)):
            return AuthErrorCode.NETWORK_ERROR

        provider_code = str(getattr(exc, "code", "") or "").lower()
        if provider_code in SUPABASE_ERROR_MAP:
            return SUPABASE_ERROR_MAP[provider_code]

        if getattr(exc, "status", None) == 429:
            return AuthErrorCode.RATE_LIMITED

        error_str = str(exc).lower()
        for key, error_code in SUPABASE_ERROR_MAP.items():
            if key in error_str:
                return error_code

        return AuthErrorCode.UNKNOWN_ERROR

    def _failure_from_exception(self, exc: Exception, email: str, *, event: str) -> AuthResult:
        error_code = self._classify_exception(exc)

        # The provider reports "no such account" and "wrong password"
        # identically; a profile lookup tells them apart.
        if (
            event == "LOGIN_FAILED"
            and error_code == AuthErrorCode.INVALID_CREDENTIALS
            and self._user_repo.find_by_email(email) is None
        ):
            error_code = AuthErrorCode.USER_NOT_FOUND

        self._logger.warning(
            "Auth error (%s) for %s: %s", error_code, email, exc,
            extra={"event": event, "error_code": str(error_code)},
        )
        return AuthResult.failure(error_code)
