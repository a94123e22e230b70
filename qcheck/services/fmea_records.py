"""
FMEA Record Service.

Controller-facing wrapper around ``FMEARecordRepository``: validates the
form before any network call, delegates to the repository, converts
``StoreError`` into a failed ``ServiceResult`` and writes the audit
trail.  Nothing is retried; every failure is terminal for the action
that triggered it.
"""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from qcheck.logger import StructuredLogger
from qcheck.models.fmea_record import FMEAFormInput, FMEARecord, FMEARecordUpdate
from qcheck.models.service_models import ServiceResult
from qcheck.models.user import User
from qcheck.repositories.base_repository import StoreError
from qcheck.repositories.fmea_record_repository import FMEARecordRepository
from qcheck.services.base_service import BaseService
from qcheck.utils.audit import log_audit_event

CREATE_FAILED_MESSAGE = "Failed to create FMEA record. Please try again."
UPDATE_FAILED_MESSAGE = "Failed to update FMEA record. Please try again."
DELETE_FAILED_MESSAGE = "Failed to delete FMEA record. Please try again."
NOT_FOUND_MESSAGE = "FMEA record not found."


class FMEARecordService(BaseService):
    """Create, edit, delete and list FMEA records for a user."""

    def __init__(
        self,
        repo: FMEARecordRepository,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._repo = repo

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_for_user(self, user: User) -> list[FMEARecord]:
        """Records owned by *user*, newest first.  Empty on read failure."""
        return self._repo.find_by_user_id(user.id)

    def list_all(self) -> list[FMEARecord]:
        return self._repo.get_all()

    def get(self, record_id: str) -> Optional[FMEARecord]:
        return self._repo.find_by_id(record_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, form: FMEAFormInput, current_user: User) -> ServiceResult[FMEARecord]:
        """Validate *form* and persist it as a new record owned by *current_user*."""
        invalid = self._validation_failure(form)
        if invalid is not None:
            return invalid

        try:
            payload = form.to_create(current_user.id)
        except ValidationError as exc:
            return ServiceResult(success=False, error=str(exc), status_code=400)

        try:
            record = self._repo.create(payload)
        except StoreError as exc:
            self._logger.error(
                "Create failed for user %s: %s", current_user.id, exc.message,
            )
            return ServiceResult(
                success=False, error=CREATE_FAILED_MESSAGE, status_code=500,
            )

        log_audit_event(
            self._logger,
            action="CREATE",
            entity_type="FMEARecord",
            entity_id=record.id,
            user_id=current_user.id,
            details={"process_name": record.process_name, "rpn": record.rpn},
        )
        return ServiceResult(success=True, data=record, status_code=201)

    def update(
        self,
        record_id: str,
        form: FMEAFormInput,
        current_user: User,
    ) -> ServiceResult[FMEARecord]:
        """Validate *form* and write every field of it over record *record_id*."""
        invalid = self._validation_failure(form)
        if invalid is not None:
            return invalid
        try:
            changes = form.to_update()
        except ValidationError as exc:
            return ServiceResult(success=False, error=str(exc), status_code=400)
        return self.apply_changes(record_id, changes, current_user)

    def apply_changes(
        self,
        record_id: str,
        changes: FMEARecordUpdate,
        current_user: User,
    ) -> ServiceResult[FMEARecord]:
        """Write a partial update.  Last write wins; there is no version check."""
        try:
            record = self._repo.update(record_id, changes)
        except StoreError as exc:
            self._logger.error(
                "Update of %s failed: %s", record_id, exc.message,
            )
            return ServiceResult(
                success=False, error=UPDATE_FAILED_MESSAGE, status_code=500,
            )

        if record is None:
            return ServiceResult(
                success=False, error=NOT_FOUND_MESSAGE, status_code=404,
            )

        log_audit_event(
            self._logger,
            action="UPDATE",
            entity_type="FMEARecord",
            entity_id=record.id,
            user_id=current_user.id,
            details={"rpn": record.rpn},
        )
        return ServiceResult(success=True, data=record)

    def delete(self, record_id: str, current_user: User) -> ServiceResult[bool]:
        """Delete a record.  Absence is a failed result, never an exception."""
        if not self._repo.delete(record_id):
            return ServiceResult(
                success=False, data=False, error=DELETE_FAILED_MESSAGE, status_code=500,
            )

        log_audit_event(
            self._logger,
            action="DELETE",
            entity_type="FMEARecord",
            entity_id=record_id,
            user_id=current_user.id,
        )
        return ServiceResult(success=True, data=True)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _validation_failure(self, form: FMEAFormInput) -> Optional[ServiceResult[FMEARecord]]:
        problems = form.validate_fields()
        if problems:
            return ServiceResult(
                success=False,
                error=" ".join(p.error_message or "" for p in problems).strip(),
                status_code=400,
            )
        return None
