"""
Hosted Backend Client Holder.

Qcheck keeps no local database.  FMEA records and user profiles live in
tables of a hosted Supabase project (PostgREST), and credentials are
handled by the same project's auth service (GoTrue).  This module only
owns the *client*; it contains no query logic.

The client is built explicitly at startup and injected into every
repository and into ``AuthService`` so there is no process-wide
initialisation order to get wrong, and tests can hand in a fake.

Usage (dependency injection at app startup)::

    from qcheck.database import DatabaseManager
    from qcheck.logger import StructuredLogger

    db = DatabaseManager(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        logger=StructuredLogger(name="database"),
    )
    # Inject `db` into repositories / services that need it.
"""

from __future__ import annotations

from typing import Optional

from supabase import Client as SupabaseClient
from supabase import create_client

from qcheck.logger import StructuredLogger


class DatabaseManager:
    """Holds the Supabase client used for record storage and sign-in.

    Fully configured at construction time.  When ``supabase_url`` or
    ``supabase_key`` is empty (and no ``client`` is injected) no client
    is created; the ``supabase`` property then raises ``RuntimeError``,
    which repositories treat as a failed round trip.

    Parameters
    ----------
    supabase_url:
        The Supabase project URL (e.g. ``https://xyz.supabase.co``).
    supabase_key:
        The project's anon key.
    logger:
        A ``StructuredLogger`` instance for structured JSON log output.
    client:
        An already-built client.  Takes precedence over URL and key;
        used by tests to substitute an in-memory fake.
    """

    def __init__(
        self,
        supabase_url: str,
        supabase_key: str,
        logger: StructuredLogger,
        client: Optional[SupabaseClient] = None,
    ) -> None:
        self._logger: StructuredLogger = logger
        self._supabase: Optional[SupabaseClient] = client

        if self._supabase is not None:
            self._logger.info("Using injected Supabase client.")
        elif supabase_url and supabase_key:
            try:
                self._supabase = create_client(supabase_url, supabase_key)
                self._logger.info("Supabase client initialized.")
            except (ValueError, TypeError) as exc:
                self._logger.warning(
                    "Supabase credential format error: %s. Running without a backend.",
                    exc,
                )
            except Exception as exc:
                self._logger.error(
                    "Unexpected Supabase initialization failure: %s. "
                    "Running without a backend.",
                    exc,
                    exc_info=True,
                )
        else:
            self._logger.warning(
                "Supabase credentials not configured; running without a backend."
            )

    @property
    def supabase(self) -> SupabaseClient:
        """Return the initialised Supabase client.

        Raises
        ------
        RuntimeError
            If no client is available.
        """
        if self._supabase is None:
            raise RuntimeError(
                "Supabase client is not initialised. "
                "Configure SUPABASE_URL and SUPABASE_ANON_KEY."
            )
        return self._supabase

    @property
    def is_online(self) -> bool:
        """``True`` when the Supabase client is available."""
        return self._supabase is not None
