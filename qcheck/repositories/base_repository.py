"""
Base Repository.

Provides shared infrastructure for all repositories:
- DatabaseManager reference (hosted Supabase client)
- Logger reference
- Read helpers: one degrades to a typed default, one raises ``StoreError``
- Write helper that turns provider failures into ``StoreError``
"""

from __future__ import annotations

from typing import Callable, Optional, TypeVar

from supabase import Client as SupabaseClient

from qcheck.database import DatabaseManager
from qcheck.logger import StructuredLogger

T = TypeVar("T")


class StoreError(Exception):
    """A write against the hosted store failed.

    ``message`` carries the provider's own message so it can be logged
    verbatim; controllers show a generic text instead.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        self.message: str = message
        self.original_error: Optional[Exception] = original_error
        super().__init__(self.message)


class BaseRepository:
    """Base class for all repositories. Receives dependencies via __init__."""

    TABLE: str = ""

    def __init__(
        self,
        db: DatabaseManager,
        logger: StructuredLogger,
        table: Optional[str] = None,
    ) -> None:
        self._db = db
        self._logger = logger
        if table:
            self.TABLE = table

    @property
    def supabase(self) -> SupabaseClient:
        """Returns the Supabase client for cloud operations."""
        return self._db.supabase

    def _read_or_default(
        self,
        read_op: Callable[[], Optional[T]],
        default_factory: Callable[[], T],
        *,
        operation_name: str,
    ) -> T:
        """Run a read, returning ``default_factory()`` when it fails or finds nothing.

        Read failures are never propagated: the dashboard must stay
        renderable, so a broken round trip looks like "no records".
        NOT intended for write paths.

        Parameters
        ----------
        read_op:
            Zero-argument callable that performs the query.  Returns the
            result or ``None`` if not found.
        default_factory:
            Zero-argument callable producing the typed default.
        operation_name:
            Human-readable label for log messages, e.g.
            ``"find_by_id (fmea_records)"``.
        """
        try:
            result = read_op()
            if result is not None:
                return result
        except Exception as exc:
            self._logger.warning(
                "Read failed for %s: %s", operation_name, exc,
            )
        return default_factory()

    def _read(
        self,
        read_op: Callable[[], T],
        *,
        operation_name: str,
    ) -> T:
        """Run a read whose failure the caller must be able to tell apart
        from "not found".  Failures are re-raised as ``StoreError``.
        """
        try:
            return read_op()
        except StoreError:
            raise
        except Exception as exc:
            self._logger.warning(
                "Read failed for %s: %s", operation_name, exc,
            )
            raise StoreError(
                str(exc) or f"{operation_name} failed", original_error=exc,
            ) from exc

    def _write(
        self,
        write_op: Callable[[], T],
        *,
        operation_name: str,
    ) -> T:
        """Run a write, re-raising any failure as ``StoreError``.

        Each call is a single round trip; nothing is retried or queued.
        """
        try:
            return write_op()
        except StoreError:
            raise
        except Exception as exc:
            self._logger.error(
                "Write failed for %s: %s", operation_name, exc,
            )
            raise StoreError(
                str(exc) or f"{operation_name} failed", original_error=exc,
            ) from exc
