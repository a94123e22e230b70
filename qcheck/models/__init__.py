"""
Data Models Package.

Re-exports all Pydantic models:
    from qcheck.models import FMEARecord, FMEARecordCreate, FMEARecordUpdate, User
    from qcheck.models import RiskBand, UserRole, AuthState
"""

from qcheck.models.enums import AuthState, NotificationVariant, RiskBand, UserRole
from qcheck.models.service_models import (
    DashboardSummary,
    Notification,
    ServiceResult,
    ValidationResult,
)
from qcheck.models.user import User
from qcheck.models.fmea_record import (
    FMEAFormInput,
    FMEARecord,
    FMEARecordCreate,
    FMEARecordUpdate,
)
from qcheck.models.auth_models import AuthErrorCode, AuthResult

__all__ = [
    "AuthErrorCode",
    "AuthResult",
    "AuthState",
    "DashboardSummary",
    "FMEAFormInput",
    "FMEARecord",
    "FMEARecordCreate",
    "FMEARecordUpdate",
    "Notification",
    "NotificationVariant",
    "RiskBand",
    "ServiceResult",
    "User",
    "UserRole",
    "ValidationResult",
]
