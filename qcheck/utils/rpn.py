"""
Risk Priority Number Arithmetic.

``compute_rpn`` is the single definition of RPN used both for the live
preview in the record form and for the value written to the store.
This module has no model imports so the models can depend on it.
"""

from __future__ import annotations

from typing import Final

__all__ = [
    "RATING_FIELDS",
    "RATING_MAX",
    "RATING_MIN",
    "RPN_MAX",
    "RPN_MIN",
    "compute_rpn",
    "is_valid_rating",
]

RATING_MIN: Final[int] = 1
RATING_MAX: Final[int] = 10
RPN_MIN: Final[int] = RATING_MIN ** 3
RPN_MAX: Final[int] = RATING_MAX ** 3

RATING_FIELDS: Final[tuple[str, str, str]] = ("severity", "occurrence", "detection")


def is_valid_rating(value: object) -> bool:
    """``True`` for an integer (not bool) in ``[RATING_MIN, RATING_MAX]``."""
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and RATING_MIN <= value <= RATING_MAX
    )


def compute_rpn(severity: int, occurrence: int, detection: int) -> int:
    """RPN = severity × occurrence × detection.

    Raises:
        ValueError: If any rating is not an integer in ``[1, 10]``.
    """
    for name, value in zip(RATING_FIELDS, (severity, occurrence, detection)):
        if not is_valid_rating(value):
            raise ValueError(
                f"{name} must be an integer between {RATING_MIN} and "
                f"{RATING_MAX}, got {value!r}"
            )
    return severity * occurrence * detection
