"""
Base Controller.

Controllers hold the per-page state the presentation layer binds to:
the loaded record list, the toast queue, and handlers that delegate to
services.  They never render anything themselves.

Records are (re)loaded whenever the session reports a signed-in user
and cleared on sign-out.  A load that completes after the user signed
out, or after a different user signed in, is discarded.
"""

from __future__ import annotations

from typing import Optional

from qcheck.auth import SessionManager
from qcheck.logger import StructuredLogger
from qcheck.models.enums import NotificationVariant
from qcheck.models.fmea_record import FMEARecord
from qcheck.models.service_models import Notification
from qcheck.models.user import User
from qcheck.services.fmea_records import FMEARecordService


class BaseController:
    """Shared toast queue and session-driven record list."""

    def __init__(
        self,
        session: SessionManager,
        record_service: FMEARecordService,
        logger: StructuredLogger,
    ) -> None:
        self._session = session
        self._record_service = record_service
        self._logger = logger
        self._records: list[FMEARecord] = []
        self._notifications: list[Notification] = []

        self._unsubscribe = session.subscribe(self._on_session_change)
        if session.is_authenticated:
            self.load_records()

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def _on_session_change(self, user: Optional[User]) -> None:
        if user is None:
            self._records = []
            return
        self.load_records()

    def close(self) -> None:
        """Stop following the session."""
        self._unsubscribe()

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    @property
    def records(self) -> list[FMEARecord]:
        return list(self._records)

    def load_records(self) -> list[FMEARecord]:
        """Fetch the signed-in user's records, newest first.

        Read failures surface as an empty list, never as an error toast.
        """
        user = self._session.current_user
        if user is None:
            self._records = []
            return []

        fetched = self._record_service.list_for_user(user)

        # The user may have signed out (or switched) while we were waiting.
        current = self._session.current_user
        if current is None or current.id != user.id:
            self._logger.debug(
                "Discarding %d records loaded for %s after session change.",
                len(fetched),
                user.id,
            )
            return self.records

        self._records = fetched
        return self.records

    def _find_loaded(self, record_id: str) -> Optional[FMEARecord]:
        return next((r for r in self._records if r.id == record_id), None)

    def _replace_loaded(self, record: FMEARecord) -> None:
        others = [r for r in self._records if r.id != record.id]
        self._records = sorted(
            [record, *others], key=lambda r: r.updated_at, reverse=True,
        )

    # ------------------------------------------------------------------
    # Toasts
    # ------------------------------------------------------------------

    def notify(
        self,
        title: str,
        description: str,
        variant: NotificationVariant = NotificationVariant.DEFAULT,
    ) -> Notification:
        notification = Notification(title=title, description=description, variant=variant)
        self._notifications.append(notification)
        return notification

    def notify_error(self, description: str) -> Notification:
        return self.notify("Error", description, NotificationVariant.DESTRUCTIVE)

    def drain_notifications(self) -> list[Notification]:
        """Return and forget every queued toast."""
        pending, self._notifications = self._notifications, []
        return pending
