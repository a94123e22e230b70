"""Shared utility functions for the Qcheck application.

Convenience re-exports so consumers can import directly from
``qcheck.utils`` while full absolute imports keep working.
"""

from qcheck.utils.risk import classify_dashboard_risk, classify_record_risk
from qcheck.utils.rpn import compute_rpn
from qcheck.utils.string_helpers import slugify
from qcheck.utils.timestamps import coerce_timestamp, utc_now

__all__ = [
    "classify_dashboard_risk",
    "classify_record_risk",
    "coerce_timestamp",
    "compute_rpn",
    "slugify",
    "utc_now",
]
