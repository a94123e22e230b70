"""
Risk classification.

Two schemes coexist and are kept deliberately separate:

================  ==========================  ==========================
RPN               ``classify_record_risk``    ``classify_dashboard_risk``
================  ==========================  ==========================
>= 200            Critical                    High
100 - 199         High                        High
50 - 99           Medium                      Medium
< 50              Low                         Low
================  ==========================  ==========================

The record badge uses four bands; the dashboard metric cards use three.
They disagree above 199 and must not be merged until product decides
which one is authoritative.
"""

from __future__ import annotations

from typing import Final

from qcheck.models.enums import RiskBand

__all__ = ["classify_dashboard_risk", "classify_record_risk"]

# Badge thresholds (four bands)
_RECORD_CRITICAL: Final[int] = 200
_RECORD_HIGH: Final[int] = 100
_RECORD_MEDIUM: Final[int] = 50

# Dashboard thresholds (three bands)
_DASHBOARD_HIGH: Final[int] = 100
_DASHBOARD_MEDIUM: Final[int] = 50


def classify_record_risk(rpn: int) -> RiskBand:
    """Badge shown next to a single record."""
    if rpn >= _RECORD_CRITICAL:
        return RiskBand.CRITICAL
    if rpn >= _RECORD_HIGH:
        return RiskBand.HIGH
    if rpn >= _RECORD_MEDIUM:
        return RiskBand.MEDIUM
    return RiskBand.LOW


def classify_dashboard_risk(rpn: int) -> RiskBand:
    """Bucket used by the dashboard metric cards.  Never ``CRITICAL``."""
    if rpn >= _DASHBOARD_HIGH:
        return RiskBand.HIGH
    if rpn >= _DASHBOARD_MEDIUM:
        return RiskBand.MEDIUM
    return RiskBand.LOW
