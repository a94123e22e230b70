"""Registration, sign-in, sign-out and sign-in state notifications."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from qcheck.models.auth_models import AuthErrorCode
from qcheck.models.enums import AuthState, UserRole
from qcheck.repositories.base_repository import StoreError
from qcheck.repositories.user_repository import UserRepository
from qcheck.services.auth_service import AuthService
from tests.conftest import FakeAPIError


def _profiles(fake_client):
    return fake_client.tables.get("users", [])


class TestValidation:
    def test_email(self):
        assert AuthService.validate_email("a@example.com").is_valid
        assert not AuthService.validate_email("not-an-email").is_valid
        assert not AuthService.validate_email("  ").is_valid

    def test_name_rejects_control_characters(self):
        assert not AuthService.validate_name("Ali\nce").is_valid
        assert AuthService.validate_name(" Alice ").is_valid

    def test_password_required(self):
        assert not AuthService.validate_password("").is_valid

    def test_normalize_email(self):
        assert AuthService.normalize_email("  Alice@Example.COM ") == "alice@example.com"


class TestRegister:
    def test_creates_account_and_profile(self, auth_service, fake_client):
        result = auth_service.register("Alice", "alice@example.com", "secret123")
        assert result.success
        assert result.user.name == "Alice"
        assert result.user.role == UserRole.USER
        profiles = _profiles(fake_client)
        assert len(profiles) == 1
        assert profiles[0]["uid"] == result.user.id

    def test_duplicate_email_leaves_no_extra_profile(self, auth_service, fake_client):
        auth_service.register("Alice", "alice@example.com", "secret123")
        result = auth_service.register("Alice Again", "alice@example.com", "other456")
        assert not result.success
        assert result.error_code == AuthErrorCode.EMAIL_ALREADY_EXISTS
        assert len(_profiles(fake_client)) == 1

    def test_duplicate_with_email_confirmation(self, auth_service, fake_client):
        auth_service.register("Alice", "alice@example.com", "secret123")
        fake_client.auth.confirm_email = True
        result = auth_service.register("Alice", "alice@example.com", "secret123")
        assert result.error_code == AuthErrorCode.EMAIL_ALREADY_EXISTS
        assert len(_profiles(fake_client)) == 1

    def test_invalid_input_never_reaches_provider(self, auth_service, fake_client):
        result = auth_service.register("", "alice@example.com", "secret123")
        assert result.error_code == AuthErrorCode.VALIDATION_ERROR
        assert fake_client.auth.accounts == {}

    def test_profile_write_failure_is_reported(self, auth_service, fake_client):
        fake_client.failing.add("insert")
        result = auth_service.register("Alice", "alice@example.com", "secret123")
        assert not result.success
        assert "alice@example.com" in fake_client.auth.accounts

    def test_offline_is_network_error(self, offline_db, session, logger):
        service = AuthService(
            db=offline_db,
            session=session,
            user_repo=UserRepository(db=offline_db, logger=logger),
            logger=logger,
        )
        result = service.register("Alice", "alice@example.com", "secret123")
        assert result.error_code == AuthErrorCode.NETWORK_ERROR


class TestAuthenticate:
    def test_success_returns_profile(self, auth_service):
        registered = auth_service.register("Alice", "alice@example.com", "secret123").user
        result = auth_service.authenticate("Alice@Example.com", "secret123")
        assert result.success
        assert result.user.id == registered.id

    def test_missing_profile_is_created(self, auth_service, fake_client):
        fake_client.auth.add_account("carol@example.com", "pw", name="Carol")
        result = auth_service.authenticate("carol@example.com", "pw")
        assert result.success
        assert result.user.name == "Carol"
        assert len(_profiles(fake_client)) == 1

    def test_failed_profile_read_does_not_duplicate(self, auth_service, fake_client):
        auth_service.register("Alice", "alice@example.com", "secret123")
        fake_client.failing.add("select")
        result = auth_service.authenticate("alice@example.com", "secret123")
        assert result.success
        assert result.user.name == "Alice"
        assert len(_profiles(fake_client)) == 1

    def test_unlisted_role_is_kept(self, auth_service, fake_client):
        auth_service.register("Alice", "alice@example.com", "secret123")
        _profiles(fake_client)[0]["role"] = "Manager"
        result = auth_service.authenticate("alice@example.com", "secret123")
        assert result.success
        assert result.user.role == "Manager"
        assert len(_profiles(fake_client)) == 1

    def test_malformed_profile_does_not_duplicate(self, auth_service, fake_client):
        auth_service.register("Alice", "alice@example.com", "secret123")
        _profiles(fake_client)[0]["created_at"] = "not a timestamp"
        result = auth_service.authenticate("alice@example.com", "secret123")
        assert result.success
        assert len(_profiles(fake_client)) == 1

    def test_wrong_password(self, auth_service):
        auth_service.register("Alice", "alice@example.com", "secret123")
        result = auth_service.authenticate("alice@example.com", "wrong")
        assert result.error_code == AuthErrorCode.INVALID_CREDENTIALS

    def test_unknown_account(self, auth_service):
        result = auth_service.authenticate("nobody@example.com", "whatever")
        assert result.error_code == AuthErrorCode.USER_NOT_FOUND

    def test_malformed_email(self, auth_service):
        result = auth_service.authenticate("not-an-email", "pw")
        assert result.error_code == AuthErrorCode.INVALID_EMAIL

    def test_rate_limited_by_status(self, auth_service, fake_client):
        fake_client.auth.sign_in_error = FakeAPIError("slow down", status=429)
        result = auth_service.authenticate("alice@example.com", "pw")
        assert result.error_code == AuthErrorCode.RATE_LIMITED

    def test_rate_limited_by_code(self, auth_service, fake_client):
        fake_client.auth.sign_in_error = FakeAPIError(
            "Request rate limit reached", code="over_request_rate_limit",
        )
        result = auth_service.authenticate("alice@example.com", "pw")
        assert result.error_code == AuthErrorCode.RATE_LIMITED

    def test_connection_failure(self, auth_service, fake_client):
        fake_client.auth.sign_in_error = ConnectionError("unreachable")
        result = auth_service.authenticate("alice@example.com", "pw")
        assert result.error_code == AuthErrorCode.NETWORK_ERROR

    def test_unrecognised_failure(self, auth_service, fake_client):
        fake_client.auth.sign_in_error = FakeAPIError("teapot", code="teapot")
        result = auth_service.authenticate("alice@example.com", "pw")
        assert result.error_code == AuthErrorCode.UNKNOWN_ERROR
        assert result.error_message


class TestSessionNotifications:
    def test_sign_in_and_out_drive_session(self, auth_service, session):
        seen = []
        unsubscribe = auth_service.on_auth_state_changed(seen.append)
        assert session.state == AuthState.UNKNOWN

        auth_service.register("Alice", "alice@example.com", "secret123")
        auth_service.authenticate("alice@example.com", "secret123")
        assert session.state == AuthState.AUTHENTICATED
        assert session.current_user.email == "alice@example.com"

        auth_service.sign_out()
        assert session.state == AuthState.ANONYMOUS
        assert session.current_user is None
        assert [u.name if u else None for u in seen] == ["Alice", None]
        unsubscribe()

    def test_unsubscribe_stops_notifications(self, auth_service, fake_client):
        seen = []
        unsubscribe = auth_service.on_auth_state_changed(seen.append)
        unsubscribe()
        fake_client.auth.add_account("alice@example.com", "pw")
        auth_service.authenticate("alice@example.com", "pw")
        assert seen == []

    def test_notification_does_not_create_profile(self, auth_service, fake_client, session):
        auth_service.on_auth_state_changed(lambda user: None)
        account = fake_client.auth.add_account("dave@example.com", "pw", name="Dave")
        fake_client.auth.emit("SIGNED_IN", SimpleNamespace(user=account))
        assert session.current_user.name == "Dave"
        assert _profiles(fake_client) == []

    def test_offline_subscription_is_noop(self, offline_db, session, logger):
        service = AuthService(
            db=offline_db,
            session=session,
            user_repo=UserRepository(db=offline_db, logger=logger),
            logger=logger,
        )
        unsubscribe = service.on_auth_state_changed(lambda user: None)
        unsubscribe()
        assert session.state == AuthState.UNKNOWN

    def test_sign_out_is_idempotent(self, auth_service, fake_client, session):
        auth_service.sign_out()
        auth_service.sign_out()
        assert session.state == AuthState.ANONYMOUS
        assert fake_client.auth.signed_out == 2


class TestSessionManager:
    def test_loading_until_first_report(self, session, alice):
        assert session.is_loading
        session.apply_provider_user(alice)
        assert not session.is_loading
        session.apply_provider_user(None)
        assert not session.is_loading
        assert session.state == AuthState.ANONYMOUS


class TestUserRepository:
    def test_absent_profile_is_none(self, db, logger):
        assert UserRepository(db=db, logger=logger).get_by_uid("nobody") is None

    def test_failed_read_raises(self, db, logger, fake_client):
        fake_client.failing.add("select")
        with pytest.raises(StoreError):
            UserRepository(db=db, logger=logger).get_by_uid("acct-1")
