"""
Service Layer Data Transfer Objects.

Pydantic models for validated input/output at service boundaries.
Replaces raw dict passing between layers.
"""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

from qcheck.models.enums import NotificationVariant

T = TypeVar("T")

__all__ = [
    "DashboardSummary",
    "Notification",
    "ServiceResult",
    "ValidationResult",
]


class ValidationResult(BaseModel):
    """Result of a single client-side validation check.

    Attributes
    ----------
    is_valid:
        ``True`` when the value passes the validation rule.
    error_message:
        Human-readable description of the failure, or ``None`` on success.
    field:
        Name of the offending input, when the check concerns one field.
    """

    is_valid: bool
    error_message: Optional[str] = None
    field: Optional[str] = None


class ServiceResult(BaseModel, Generic[T]):
    """
    Standard service return envelope.

    All service methods return this, providing a consistent contract
    for the controller layer.  ``status_code`` follows HTTP conventions:
    400 for validation failures, 404 for missing records, 500 for
    store failures.
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    status_code: int = 200


class DashboardSummary(BaseModel):
    """Metric cards shown on the dashboard (three-band scheme)."""

    total: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class Notification(BaseModel):
    """A toast queued by a controller for the presentation layer."""

    title: str
    description: str
    variant: NotificationVariant = NotificationVariant.DEFAULT
