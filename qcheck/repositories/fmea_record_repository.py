"""
FMEA Record Repository.

Translates record operations into calls against the hosted
``fmea_records`` table and back into ``FMEARecord`` models.  This is the
only place that writes ``rpn``: it is computed from the ratings on
create and recomputed on any update that touches a rating.

There is no local cache and no write-behind buffer.  Every call is a
fresh round trip; write failures raise ``StoreError`` and read failures
degrade to ``None`` / ``[]``.
"""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from qcheck.database import DatabaseManager
from qcheck.logger import StructuredLogger
from qcheck.models.fmea_record import FMEARecord, FMEARecordCreate, FMEARecordUpdate
from qcheck.repositories.base_repository import BaseRepository, StoreError
from qcheck.utils.rpn import RATING_FIELDS, compute_rpn
from qcheck.utils.timestamps import utc_now_iso

StoredRow = dict[str, object]


class FMEARecordRepository(BaseRepository):
    """Data access layer for FMEA records.

    ``update`` is a two-step contract: write the merged partial, then
    re-read the document and return what the store now holds.  The
    re-read lives in :meth:`_read_back` so a strongly consistent store
    could return the written row directly instead.
    """

    TABLE = "fmea_records"

    def __init__(
        self,
        db: DatabaseManager,
        logger: StructuredLogger,
        table: Optional[str] = None,
    ) -> None:
        super().__init__(db, logger, table)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, data: FMEARecordCreate) -> FMEARecord:
        """Insert a new record with a freshly computed RPN.

        Raises:
            StoreError: If the insert fails; carries the provider message.
        """
        now = utc_now_iso()
        payload: StoredRow = data.model_dump(mode="json")
        payload["rpn"] = compute_rpn(data.severity, data.occurrence, data.detection)
        payload["created_at"] = now
        payload["updated_at"] = now

        def _insert() -> FMEARecord:
            response = self.supabase.table(self.TABLE).insert(payload).execute()
            if not response.data:
                raise StoreError(f"Insert into {self.TABLE} returned no row")
            return FMEARecord.model_validate(response.data[0])

        record = self._write(_insert, operation_name=f"create ({self.TABLE})")
        self._logger.info(
            "FMEA record created: %s (rpn=%d)", record.id, record.rpn,
        )
        return record

    def update(self, record_id: str, changes: FMEARecordUpdate) -> Optional[FMEARecord]:
        """Merge *changes* over the stored record.

        RPN is recomputed only when a rating is part of *changes*, using
        the stored values for the ratings that were not supplied.

        Returns:
            The record as re-read after the write, or ``None`` when no
            record has *record_id*.

        Raises:
            StoreError: If reading the current record or writing fails, or
                if the stored or re-read row is malformed.
        """
        current = self._read(
            lambda: self._fetch_row(record_id),
            operation_name=f"update/read ({self.TABLE})",
        )
        if current is None:
            self._logger.warning(
                "Cannot update FMEA record %s: not found.", record_id,
            )
            return None

        payload: StoredRow = changes.changes()
        if changes.touches_ratings():
            merged = [payload.get(name, current.get(name)) for name in RATING_FIELDS]
            try:
                payload["rpn"] = compute_rpn(*merged)
            except ValueError as exc:
                # The stored row holds a rating outside 1..10.
                raise StoreError(
                    f"Cannot recompute RPN for {record_id}: {exc}", original_error=exc,
                ) from exc
        payload["updated_at"] = utc_now_iso()

        self._write(
            lambda: (
                self.supabase.table(self.TABLE)
                .update(payload)
                .eq("id", record_id)
                .execute()
            ),
            operation_name=f"update ({self.TABLE})",
        )
        self._logger.info(
            "FMEA record updated: %s (fields: %s)",
            record_id,
            ", ".join(sorted(payload)),
        )
        return self._read_back(record_id)

    def delete(self, record_id: str) -> bool:
        """Remove a record.

        Returns ``False`` instead of raising when the record does not
        exist or the call fails.
        """
        try:
            response = (
                self.supabase.table(self.TABLE)
                .delete()
                .eq("id", record_id)
                .execute()
            )
        except Exception as exc:
            self._logger.error(
                "Failed to delete FMEA record %s: %s", record_id, exc,
            )
            return False

        if not response.data:
            self._logger.warning(
                "Delete of FMEA record %s matched nothing.", record_id,
            )
            return False

        self._logger.info("FMEA record deleted: %s", record_id)
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_by_id(self, record_id: str) -> Optional[FMEARecord]:
        """Fetch a record by id, or ``None``."""
        def _read() -> Optional[FMEARecord]:
            row = self._fetch_row(record_id)
            return FMEARecord.model_validate(row) if row else None

        return self._read_or_default(
            _read,
            default_factory=lambda: None,
            operation_name=f"find_by_id ({self.TABLE})",
        )

    def find_by_user_id(self, user_id: str) -> list[FMEARecord]:
        """All records owned by *user_id*, most recently modified first.

        Filters remotely on ``user_id`` alone and sorts locally, so no
        composite index is needed on the server.
        """
        def _read() -> list[FMEARecord]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("user_id", user_id)
                .execute()
            )
            records = [
                record
                for record in self._parse_rows(response.data or [])
                if record.user_id == user_id
            ]
            return self._newest_first(records)

        return self._read_or_default(
            _read,
            default_factory=list,
            operation_name=f"find_by_user_id ({self.TABLE})",
        )

    def get_all(self) -> list[FMEARecord]:
        """Every record regardless of owner (administrative use)."""
        def _read() -> list[FMEARecord]:
            response = self.supabase.table(self.TABLE).select("*").execute()
            return self._newest_first(self._parse_rows(response.data or []))

        return self._read_or_default(
            _read,
            default_factory=list,
            operation_name=f"get_all ({self.TABLE})",
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _fetch_row(self, record_id: str) -> Optional[StoredRow]:
        response = (
            self.supabase.table(self.TABLE)
            .select("*")
            .eq("id", record_id)
            .maybe_single()
            .execute()
        )
        # maybe_single() yields None (not an empty response) on some
        # client versions when nothing matched.
        if response is None or not response.data:
            return None
        return response.data

    def _read_back(self, record_id: str) -> Optional[FMEARecord]:
        """Second half of ``update``: return what the store now holds."""
        row = self._read(
            lambda: self._fetch_row(record_id),
            operation_name=f"update/read-back ({self.TABLE})",
        )
        if not row:
            return None
        try:
            return FMEARecord.model_validate(row)
        except ValidationError as exc:
            raise StoreError(
                f"Record {record_id} is malformed after update", original_error=exc,
            ) from exc

    def _parse_rows(self, rows: list[StoredRow]) -> list[FMEARecord]:
        """Parse rows, skipping (and logging) any that fail validation."""
        records: list[FMEARecord] = []
        for row in rows:
            try:
                records.append(FMEARecord.model_validate(row))
            except ValidationError as exc:
                self._logger.warning(
                    "Skipping malformed FMEA row %s: %s",
                    row.get("id", "<no id>"),
                    exc.error_count(),
                )
        return records

    @staticmethod
    def _newest_first(records: list[FMEARecord]) -> list[FMEARecord]:
        return sorted(records, key=lambda record: record.updated_at, reverse=True)
