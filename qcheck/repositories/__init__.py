"""
Repository Layer Package.

Provides data-access abstractions over the hosted Supabase tables.
All store operations flow through repositories; services never touch
``db.supabase`` tables directly.

Usage:
    from qcheck.repositories.fmea_record_repository import FMEARecordRepository
    from qcheck.repositories.user_repository import UserRepository
"""

from qcheck.repositories.base_repository import BaseRepository, StoreError
from qcheck.repositories.fmea_record_repository import FMEARecordRepository
from qcheck.repositories.user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "FMEARecordRepository",
    "StoreError",
    "UserRepository",
]
