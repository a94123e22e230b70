"""
User Profile Repository.

Handles the profile documents that accompany credential accounts.  A
profile row stores the account id under ``uid`` alongside the display
name, email, role and creation time.
"""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from qcheck.database import DatabaseManager
from qcheck.logger import StructuredLogger
from qcheck.models.enums import UserRole
from qcheck.models.user import User
from qcheck.repositories.base_repository import BaseRepository, StoreError
from qcheck.utils.timestamps import utc_now_iso


class UserRepository(BaseRepository):
    """Data access layer for user profiles.

    ``find_by_email`` degrades to ``None``.  ``get_by_uid`` and
    ``create_profile`` raise ``StoreError``.
    """

    TABLE = "users"

    def __init__(
        self,
        db: DatabaseManager,
        logger: StructuredLogger,
        table: Optional[str] = None,
    ) -> None:
        super().__init__(db, logger, table)

    def get_by_uid(self, uid: str) -> Optional[User]:
        """Fetch the profile of account *uid*.

        Returns ``None`` only when the table holds no row for *uid*.

        Raises:
            StoreError: If the read fails or the stored row is malformed.
        """
        row = self._read(
            lambda: self._first_row("uid", uid),
            operation_name=f"get_by_uid ({self.TABLE})",
        )
        if row is None:
            return None
        try:
            return User.model_validate(row)
        except ValidationError as exc:
            self._logger.warning("Malformed profile row for %s: %s", uid, exc)
            raise StoreError(f"Malformed profile for {uid}", original_error=exc) from exc

    def find_by_email(self, email: str) -> Optional[User]:
        """Fetch a profile by email address (case-insensitive).

        Args:
            email: The user's email address.

        Returns:
            The User if found, or None.
        """
        normalized_email = email.strip().lower()
        return self._find_one(
            "email", normalized_email, operation_name=f"find_by_email ({self.TABLE})",
        )

    def create_profile(
        self,
        uid: str,
        name: str,
        email: str,
        role: str = UserRole.USER,
    ) -> User:
        """Insert the companion profile for a freshly created account.

        Raises:
            StoreError: If the insert fails.
        """
        payload: dict[str, str] = {
            "uid": uid,
            "name": name,
            "email": email.strip().lower(),
            "role": str(role),
            "created_at": utc_now_iso(),
        }

        def _insert() -> User:
            response = self.supabase.table(self.TABLE).insert(payload).execute()
            row = response.data[0] if response.data else payload
            return User.model_validate(row)

        user = self._write(_insert, operation_name=f"create_profile ({self.TABLE})")
        self._logger.info("Profile created for account %s", uid)
        return user

    def _first_row(self, column: str, value: str) -> Optional[dict]:
        response = (
            self.supabase.table(self.TABLE)
            .select("*")
            .eq(column, value)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    def _find_one(self, column: str, value: str, *, operation_name: str) -> Optional[User]:
        def _read() -> Optional[User]:
            row = self._first_row(column, value)
            return User.model_validate(row) if row else None

        return self._read_or_default(
            _read,
            default_factory=lambda: None,
            operation_name=operation_name,
        )
