"""
Business Logic Services Package.

Services depend on the Repository layer for data access and on the
``SessionManager`` for user context.

The ``create_services()`` factory wires every repository and service
together, returning a typed dict that the controllers consume without
knowing the internal dependency graph.
"""

from __future__ import annotations

from typing import TypedDict

from qcheck.auth import SessionManager
from qcheck.config import AppConfig
from qcheck.database import DatabaseManager
from qcheck.logger import get_logger
from qcheck.models.enums import UserRole
from qcheck.repositories.fmea_record_repository import FMEARecordRepository
from qcheck.repositories.user_repository import UserRepository
from qcheck.services.auth_service import AuthService
from qcheck.services.csv_export import CsvExportService
from qcheck.services.fmea_records import FMEARecordService
from qcheck.services.kpi import KPIService


class ServiceContainer(TypedDict):
    """Typed container for all application services."""

    auth_service: AuthService
    fmea_record_service: FMEARecordService
    kpi_service: KPIService
    csv_export_service: CsvExportService


def create_services(
    db: DatabaseManager,
    config: AppConfig,
    session: SessionManager,
) -> ServiceContainer:
    """
    Wire all repositories and services together.

    This is the single composition root for the service layer.  The
    application entry-point calls this once at startup and passes the
    returned dict to controllers.

    Args:
        db: Holder of the Supabase client (or an injected fake).
        config: Application configuration (table names, default role).
        session: The session every controller observes.

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    logger = get_logger("services")

    # ------------------------------------------------------------------
    # 1. Repositories (data-access layer)
    # ------------------------------------------------------------------
    record_repo = FMEARecordRepository(db=db, logger=logger, table=config.FMEA_TABLE)
    user_repo = UserRepository(db=db, logger=logger, table=config.PROFILES_TABLE)

    # ------------------------------------------------------------------
    # 2. Services
    # ------------------------------------------------------------------
    auth_service = AuthService(
        db=db,
        session=session,
        user_repo=user_repo,
        logger=logger,
        default_role=UserRole(config.DEFAULT_USER_ROLE),
    )
    fmea_record_service = FMEARecordService(repo=record_repo, logger=logger)
    kpi_service = KPIService(repo=record_repo, logger=logger)
    csv_export_service = CsvExportService(logger=logger)

    return ServiceContainer(
        auth_service=auth_service,
        fmea_record_service=fmea_record_service,
        kpi_service=kpi_service,
        csv_export_service=csv_export_service,
    )
