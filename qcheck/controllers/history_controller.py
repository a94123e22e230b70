"""
History Controller.

Backs the record table page: create/edit form state with live RPN
preview, confirmed delete, and CSV export of all or one record.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from qcheck.auth import SessionManager
from qcheck.controllers.base_controller import BaseController
from qcheck.logger import StructuredLogger
from qcheck.models.enums import RiskBand
from qcheck.models.fmea_record import FMEAFormInput, FMEARecord
from qcheck.services.csv_export import CsvExportService
from qcheck.services.fmea_records import NOT_FOUND_MESSAGE, FMEARecordService
from qcheck.utils.risk import classify_record_risk


class HistoryController(BaseController):
    """Record table with create, edit, delete and export handlers.

    Parameters
    ----------
    session:
        Supplies the signed-in user; records follow its changes.
    record_service:
        CRUD operations against the record store.
    csv_service:
        Builds and writes CSV exports.
    logger:
        Structured logger instance.
    export_dir:
        Where :meth:`save_export` writes files.
    """

    def __init__(
        self,
        session: SessionManager,
        record_service: FMEARecordService,
        csv_service: CsvExportService,
        logger: StructuredLogger,
        export_dir: Path = Path("."),
    ) -> None:
        self._csv_service = csv_service
        self._export_dir = export_dir
        self._editing_id: Optional[str] = None
        self._pending_delete_id: Optional[str] = None
        super().__init__(session, record_service, logger)

    # ------------------------------------------------------------------
    # Display helpers
    # ------------------------------------------------------------------

    @staticmethod
    def badge(record: FMEARecord) -> RiskBand:
        """Four-band badge for one row."""
        return classify_record_risk(record.rpn)

    @staticmethod
    def preview_rpn(form: FMEAFormInput) -> Optional[int]:
        """Live RPN while the form is being edited."""
        return form.preview_rpn()

    # ------------------------------------------------------------------
    # Form
    # ------------------------------------------------------------------

    @property
    def editing_id(self) -> Optional[str]:
        return self._editing_id

    def open_create_form(self) -> FMEAFormInput:
        self._editing_id = None
        return FMEAFormInput()

    def open_edit_form(self, record_id: str) -> Optional[FMEAFormInput]:
        record = self._find_loaded(record_id)
        if record is None:
            self.notify_error(NOT_FOUND_MESSAGE)
            return None
        self._editing_id = record_id
        return FMEAFormInput.from_record(record)

    def close_form(self) -> None:
        self._editing_id = None

    def submit(self, form: FMEAFormInput) -> bool:
        """Create or update depending on which form was opened.

        Validation problems block submission without a network call.
        Returns ``True`` when the record was saved.
        """
        user = self._session.current_user
        if user is None:
            self.notify_error("You must be signed in to save records.")
            return False

        problems = form.validate_fields()
        if problems:
            self.notify_error(" ".join(p.error_message or "" for p in problems).strip())
            return False

        if self._editing_id is None:
            result = self._record_service.create(form, user)
            success_text = "FMEA record created successfully"
        else:
            result = self._record_service.update(self._editing_id, form, user)
            success_text = "FMEA record updated successfully"

        if not result.success or result.data is None:
            self.notify_error(result.error or "Something went wrong.")
            return False

        self._replace_loaded(result.data)
        self._editing_id = None
        self.notify("Success", success_text)
        return True

    # ------------------------------------------------------------------
    # Delete (two-step: request, then confirm)
    # ------------------------------------------------------------------

    @property
    def pending_delete(self) -> Optional[FMEARecord]:
        if self._pending_delete_id is None:
            return None
        return self._find_loaded(self._pending_delete_id)

    def request_delete(self, record_id: str) -> Optional[FMEARecord]:
        """Select a record for deletion; nothing is removed until confirmed."""
        record = self._find_loaded(record_id)
        self._pending_delete_id = record.id if record else None
        return record

    def cancel_delete(self) -> None:
        self._pending_delete_id = None

    def confirm_delete(self) -> bool:
        record_id, self._pending_delete_id = self._pending_delete_id, None
        user = self._session.current_user
        if record_id is None or user is None:
            return False

        result = self._record_service.delete(record_id, user)
        if not result.success:
            self.notify_error(result.error or "Failed to delete FMEA record.")
            return False

        self._records = [r for r in self._records if r.id != record_id]
        self.notify("Success", "FMEA record deleted successfully")
        return True

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_all(self) -> tuple[str, str]:
        """``(filename, csv_text)`` for every loaded record."""
        content = self._csv_service.build_csv(self._records)
        return self._csv_service.bulk_filename(), content

    def export_record(self, record_id: str) -> Optional[tuple[str, str]]:
        record = self._find_loaded(record_id)
        if record is None:
            self.notify_error(NOT_FOUND_MESSAGE)
            return None
        return (
            self._csv_service.single_filename(record),
            self._csv_service.build_csv([record]),
        )

    def save_export(self, filename: str, content: str) -> Optional[Path]:
        """Write an export produced above; toasts the outcome."""
        try:
            path = self._csv_service.write(self._export_dir, filename, content)
        except OSError as exc:
            self._logger.error("Export to %s failed: %s", filename, exc)
            self.notify_error("Export failed. Check the export folder.")
            return None
        self.notify("Success", "FMEA records exported successfully")
        return path
