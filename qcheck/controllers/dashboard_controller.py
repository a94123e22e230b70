"""Dashboard controller: greeting and metric cards for the signed-in user."""

from __future__ import annotations

from typing import Optional

from qcheck.auth import SessionManager
from qcheck.controllers.base_controller import BaseController
from qcheck.logger import StructuredLogger
from qcheck.models.enums import RiskBand
from qcheck.models.service_models import DashboardSummary
from qcheck.services.fmea_records import FMEARecordService
from qcheck.services.kpi import KPIService


class DashboardController(BaseController):
    """Metric cards use the dashboard scheme; no separate Critical card."""

    def __init__(
        self,
        session: SessionManager,
        record_service: FMEARecordService,
        kpi_service: KPIService,
        logger: StructuredLogger,
    ) -> None:
        self._kpi_service = kpi_service
        super().__init__(session, record_service, logger)

    @property
    def greeting_name(self) -> Optional[str]:
        user = self._session.current_user
        return user.name if user else None

    @property
    def summary(self) -> DashboardSummary:
        return self._kpi_service.summarize(self._records)

    @property
    def badge_counts(self) -> dict[RiskBand, int]:
        return self._kpi_service.band_counts(self._records)

    @property
    def average_rpn(self) -> float:
        return self._kpi_service.average_rpn(self._records)
