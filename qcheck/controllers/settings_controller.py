"""Settings controller: read-only profile and "export my data"."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from qcheck.auth import SessionManager
from qcheck.controllers.base_controller import BaseController
from qcheck.logger import StructuredLogger
from qcheck.models.user import User
from qcheck.services.csv_export import CsvExportService
from qcheck.services.fmea_records import FMEARecordService


class SettingsController(BaseController):
    """The role is shown but never editable from here."""

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
        super().__init__(session, record_service, logger)

    @property
    def profile(self) -> Optional[User]:
        return self._session.current_user

    def export_my_data(self) -> Optional[Path]:
        """Write every record of the signed-in user to a bulk CSV file."""
        if self._session.current_user is None:
            self.notify_error("You must be signed in to export data.")
            return None

        records = self.load_records()
        content = self._csv_service.build_csv(records)
        try:
            path = self._csv_service.write(
                self._export_dir, self._csv_service.bulk_filename(), content,
            )
        except OSError as exc:
            self._logger.error("Data export failed: %s", exc)
            self.notify_error("Export failed. Check the export folder.")
            return None

        self.notify("Success", f"Exported {len(records)} FMEA records")
        return path
