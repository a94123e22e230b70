"""
KPI Service.

Dashboard metrics over a user's FMEA records: total count and the
High / Medium / Low buckets of the dashboard scheme, plus the per-record
badge counts and the average RPN.

The metric cards and the record badges use different thresholds (see
``qcheck.utils.risk``).  Both are exposed here side by side and must not
be reconciled in this layer.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from qcheck.logger import StructuredLogger
from qcheck.models.enums import RiskBand
from qcheck.models.fmea_record import FMEARecord
from qcheck.models.service_models import DashboardSummary, ServiceResult
from qcheck.models.user import User
from qcheck.repositories.fmea_record_repository import FMEARecordRepository
from qcheck.services.base_service import BaseService
from qcheck.utils.risk import classify_dashboard_risk, classify_record_risk


class KPIService(BaseService):
    """
    Service layer for dashboard metric calculations.

    The static helpers work on an already-loaded record list so the
    controllers can recompute metrics after every local change without
    another round trip.
    """

    def __init__(
        self,
        repo: FMEARecordRepository,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._repo = repo

    # ------------------------------------------------------------------
    # Pure aggregations
    # ------------------------------------------------------------------

    @staticmethod
    def summarize(records: Iterable[FMEARecord]) -> DashboardSummary:
        """Metric cards: total plus dashboard-scheme buckets (no Critical)."""
        counts: Counter[RiskBand] = Counter()
        total = 0
        for record in records:
            counts[classify_dashboard_risk(record.rpn)] += 1
            total += 1
        return DashboardSummary(
            total=total,
            high=counts[RiskBand.HIGH],
            medium=counts[RiskBand.MEDIUM],
            low=counts[RiskBand.LOW],
        )

    @staticmethod
    def band_counts(records: Iterable[FMEARecord]) -> dict[RiskBand, int]:
        """Badge-scheme counts, every band present (zero when empty)."""
        counts: Counter[RiskBand] = Counter(
            classify_record_risk(record.rpn) for record in records
        )
        return {band: counts[band] for band in RiskBand}

    @staticmethod
    def average_rpn(records: Iterable[FMEARecord]) -> float:
        """Mean RPN, ``0.0`` for no records."""
        values = [record.rpn for record in records]
        if not values:
            return 0.0
        return round(sum(values) / len(values), 2)

    # ------------------------------------------------------------------
    # Fetch + aggregate
    # ------------------------------------------------------------------

    def get_summary(self, current_user: User) -> ServiceResult[DashboardSummary]:
        """Load *current_user*'s records and summarise them.

        Always succeeds: a failed read yields an all-zero summary so the
        dashboard stays renderable.
        """
        records = self._repo.find_by_user_id(current_user.id)
        summary = self.summarize(records)
        self._logger.debug(
            "Dashboard summary for %s: %s", current_user.id, summary.model_dump(),
        )
        return ServiceResult(success=True, data=summary)
