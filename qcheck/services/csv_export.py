"""
CSV Export Service.

Builds the user-facing CSV downloads for FMEA records and names the
files.  Column order is fixed.  Data rows go through ``csv.writer`` with
``QUOTE_NONNUMERIC``: text and dates are quoted, ratings and RPN are not.
The header row is written unquoted.

Filename patterns::

    fmea-records-<YYYY-MM-DD>.csv              (bulk export)
    fmea-<slugified-process-name>-<date>.csv   (single record)
"""

from __future__ import annotations

import csv
import datetime as dt
import io
from pathlib import Path
from typing import Iterable, Optional

from qcheck.logger import StructuredLogger
from qcheck.models.fmea_record import FMEARecord
from qcheck.services.base_service import BaseService
from qcheck.utils.string_helpers import slugify

CSV_HEADERS: tuple[str, ...] = (
    "Process Name",
    "Date",
    "Potential Failure",
    "Severity",
    "Occurrence",
    "Detection",
    "RPN",
    "Description",
)

_LINE_TERMINATOR = "\n"


def _row_cells(record: FMEARecord) -> list[object]:
    return [
        record.process_name,
        record.date.isoformat(),
        record.potential_failure,
        record.severity,
        record.occurrence,
        record.detection,
        record.rpn,
        record.description or "",
    ]


class CsvExportService(BaseService):
    """Client-side CSV construction for record downloads."""

    def __init__(self, logger: StructuredLogger) -> None:
        super().__init__(logger)

    @staticmethod
    def format_row(record: FMEARecord) -> str:
        buffer = io.StringIO()
        writer = csv.writer(
            buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator=_LINE_TERMINATOR,
        )
        writer.writerow(_row_cells(record))
        return buffer.getvalue().removesuffix(_LINE_TERMINATOR)

    def build_csv(self, records: Iterable[FMEARecord]) -> str:
        """Header row followed by one row per record, in the order given.

        No line terminator follows the last row.
        """
        buffer = io.StringIO()
        csv.writer(buffer, lineterminator=_LINE_TERMINATOR).writerow(CSV_HEADERS)
        rows = csv.writer(
            buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator=_LINE_TERMINATOR,
        )
        for record in records:
            rows.writerow(_row_cells(record))
        return buffer.getvalue().removesuffix(_LINE_TERMINATOR)

    @staticmethod
    def bulk_filename(today: Optional[dt.date] = None) -> str:
        day = today or dt.date.today()
        return f"fmea-records-{day.isoformat()}.csv"

    @staticmethod
    def single_filename(record: FMEARecord) -> str:
        return f"fmea-{slugify(record.process_name)}-{record.date.isoformat()}.csv"

    def write(self, directory: Path, filename: str, content: str) -> Path:
        """Write *content* to ``directory / filename`` as UTF-8 and return the path.

        Raises:
            OSError: If the directory cannot be created or the file written.
        """
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / filename
        target.write_text(content, encoding="utf-8")
        self._logger.info(
            "Exported %s (%d bytes)", target, len(content.encode("utf-8")),
        )
        return target
