"""
Shared fixtures.

``FakeSupabaseClient`` is an in-memory stand-in for the slice of the
Supabase client the application uses: PostgREST-style table queries
and the GoTrue ``auth`` namespace.  It is injected through
``DatabaseManager(client=...)``; nothing is patched.
"""

from __future__ import annotations

import copy
import uuid
from types import SimpleNamespace
from typing import Any, Callable, Optional

import pytest

from qcheck.auth import SessionManager
from qcheck.database import DatabaseManager
from qcheck.logger import StructuredLogger
from qcheck.models.enums import UserRole
from qcheck.models.user import User
from qcheck.repositories.fmea_record_repository import FMEARecordRepository
from qcheck.repositories.user_repository import UserRepository
from qcheck.services.auth_service import AuthService
from qcheck.services.csv_export import CsvExportService
from qcheck.services.fmea_records import FMEARecordService
from qcheck.services.kpi import KPIService


# ── Fake backend ──────────────────────────────────────────────────────────────

class FakeAPIError(Exception):
    """Mimics the provider's error objects: a message plus ``code``/``status``."""

    def __init__(self, message: str, code: str = "", status: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code
        self.status = status


class FakeQuery:
    def __init__(self, client: "FakeSupabaseClient", table: str) -> None:
        self._client = client
        self._table = table
        self._op = "select"
        self._payload: Any = None
        self._filters: list[tuple[str, Any]] = []
        self._limit: Optional[int] = None
        self._single = False

    # builders
    def select(self, *_columns: str) -> "FakeQuery":
        self._op = "select"
        return self

    def insert(self, payload: dict) -> "FakeQuery":
        self._op, self._payload = "insert", payload
        return self

    def update(self, payload: dict) -> "FakeQuery":
        self._op, self._payload = "update", payload
        return self

    def delete(self) -> "FakeQuery":
        self._op = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append((column, value))
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    def maybe_single(self) -> "FakeQuery":
        self._single = True
        return self

    # terminal
    def execute(self) -> SimpleNamespace:
        self._client.calls.append((self._table, self._op, list(self._filters)))
        if self._payload is not None:
            self._client.last_payload = dict(self._payload)
        if self._op in self._client.failing:
            raise FakeAPIError(f"{self._op} on {self._table} failed", code="PGRST000")

        rows = self._client.tables.setdefault(self._table, [])
        matched = [
            row for row in rows
            if all(row.get(column) == value for column, value in self._filters)
        ]

        if self._op == "insert":
            row = dict(self._payload)
            row.setdefault("id", str(uuid.uuid4()))
            rows.append(row)
            return SimpleNamespace(data=[copy.deepcopy(row)])

        if self._op == "update":
            for row in matched:
                row.update(self._payload)
            return SimpleNamespace(data=copy.deepcopy(matched))

        if self._op == "delete":
            self._client.tables[self._table] = [r for r in rows if r not in matched]
            return SimpleNamespace(data=copy.deepcopy(matched))

        if self._limit is not None:
            matched = matched[: self._limit]
        if self._single:
            return SimpleNamespace(data=copy.deepcopy(matched[0]) if matched else None)
        return SimpleNamespace(data=copy.deepcopy(matched))


class FakeAuth:
    def __init__(self) -> None:
        self.accounts: dict[str, tuple[str, SimpleNamespace]] = {}
        self.confirm_email = False
        self.sign_in_error: Optional[Exception] = None
        self.signed_out = 0
        self._listeners: list[Callable[[str, Any], None]] = []

    def add_account(self, email: str, password: str, name: str = "") -> SimpleNamespace:
        account = SimpleNamespace(
            id=str(uuid.uuid4()),
            email=email,
            user_metadata={"name": name} if name else {},
            created_at="2024-01-01T00:00:00+00:00",
            identities=[{"provider": "email"}],
        )
        self.accounts[email] = (password, account)
        return account

    def sign_up(self, credentials: dict) -> SimpleNamespace:
        email = credentials["email"]
        if email in self.accounts:
            if self.confirm_email:
                _, existing = self.accounts[email]
                return SimpleNamespace(
                    user=SimpleNamespace(**{**vars(existing), "identities": []}),
                    session=None,
                )
            raise FakeAPIError("User already registered", code="user_already_exists", status=422)
        name = credentials.get("options", {}).get("data", {}).get("name", "")
        account = self.add_account(email, credentials["password"], name)
        return SimpleNamespace(user=account, session=None)

    def sign_in_with_password(self, credentials: dict) -> SimpleNamespace:
        if self.sign_in_error is not None:
            raise self.sign_in_error
        stored = self.accounts.get(credentials["email"])
        if stored is None or stored[0] != credentials["password"]:
            raise FakeAPIError("Invalid login credentials", code="invalid_credentials", status=400)
        session = SimpleNamespace(user=stored[1])
        self.emit("SIGNED_IN", session)
        return SimpleNamespace(user=stored[1], session=session)

    def sign_out(self) -> None:
        self.signed_out += 1
        self.emit("SIGNED_OUT", None)

    def on_auth_state_change(self, callback: Callable[[str, Any], None]) -> SimpleNamespace:
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return SimpleNamespace(unsubscribe=_unsubscribe)

    def emit(self, event: str, session: Any) -> None:
        for listener in list(self._listeners):
            listener(event, session)


class FakeSupabaseClient:
    def __init__(self) -> None:
        self.tables: dict[str, list[dict]] = {}
        self.failing: set[str] = set()
        self.calls: list[tuple[str, str, list]] = []
        self.last_payload: Optional[dict] = None
        self.auth = FakeAuth()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def logger(tmp_path_factory) -> StructuredLogger:
    log_file = tmp_path_factory.mktemp("logs") / "qcheck-tests.log"
    return StructuredLogger(name="qcheck.tests", log_file=str(log_file))


@pytest.fixture
def fake_client() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture
def db(fake_client, logger) -> DatabaseManager:
    return DatabaseManager(supabase_url="", supabase_key="", logger=logger, client=fake_client)


@pytest.fixture
def offline_db(logger) -> DatabaseManager:
    return DatabaseManager(supabase_url="", supabase_key="", logger=logger)


@pytest.fixture
def session() -> SessionManager:
    return SessionManager()


@pytest.fixture
def record_repo(db, logger) -> FMEARecordRepository:
    return FMEARecordRepository(db=db, logger=logger)


@pytest.fixture
def user_repo(db, logger) -> UserRepository:
    return UserRepository(db=db, logger=logger)


@pytest.fixture
def record_service(record_repo, logger) -> FMEARecordService:
    return FMEARecordService(repo=record_repo, logger=logger)


@pytest.fixture
def kpi_service(record_repo, logger) -> KPIService:
    return KPIService(repo=record_repo, logger=logger)


@pytest.fixture
def csv_service(logger) -> CsvExportService:
    return CsvExportService(logger=logger)


@pytest.fixture
def auth_service(db, session, user_repo, logger) -> AuthService:
    return AuthService(db=db, session=session, user_repo=user_repo, logger=logger)


@pytest.fixture
def alice() -> User:
    return User(
        id="user-alice",
        name="Alice",
        email="alice@example.com",
        role=UserRole.USER,
        created_at="2024-01-01T00:00:00+00:00",
    )


@pytest.fixture
def bob() -> User:
    return User(
        id="user-bob",
        name="Bob",
        email="bob@example.com",
        created_at="2024-01-01T00:00:00+00:00",
    )


@pytest.fixture
def seed_record(fake_client) -> Callable[..., dict]:
    """Insert a raw row straight into the fake ``fmea_records`` table."""

    def _seed(
        user_id: str = "user-alice",
        severity: int = 5,
        occurrence: int = 4,
        detection: int = 3,
        updated_at: str = "2024-03-01T10:00:00+00:00",
        **overrides: Any,
    ) -> dict:
        row = {
            "id": str(uuid.uuid4()),
            "process_name": "Welding",
            "date": "2024-03-01",
            "potential_failure": "Crack",
            "severity": severity,
            "occurrence": occurrence,
            "detection": detection,
            "rpn": severity * occurrence * detection,
            "description": None,
            "user_id": user_id,
            "created_at": "2024-03-01T09:00:00+00:00",
            "updated_at": updated_at,
        }
        row.update(overrides)
        fake_client.tables.setdefault("fmea_records", []).append(row)
        return dict(row)

    return _seed
