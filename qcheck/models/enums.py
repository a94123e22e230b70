"""
Shared Enumerations for Qcheck Models.

StrEnum values compare equal to their string equivalents, so stored
values such as ``"User"`` or ``"Critical"`` round-trip without mapping.
"""

from __future__ import annotations

from enum import StrEnum


class UserRole(StrEnum):
    """Roles shown on the user's profile.

    New accounts always receive ``USER``.  The application never changes
    a role itself; it only displays what the profile table holds.
    """

    USER = "User"
    ADMIN = "Admin"


class RiskBand(StrEnum):
    """Risk bands derived from an RPN.  Display only, never stored."""

    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class AuthState(StrEnum):
    """Sign-in state of the local session.

    Starts at ``UNKNOWN`` until the identity provider delivers its first
    notification, then moves between ``AUTHENTICATED`` and ``ANONYMOUS``.
    """

    UNKNOWN = "UNKNOWN"
    AUTHENTICATED = "AUTHENTICATED"
    ANONYMOUS = "ANONYMOUS"


class NotificationVariant(StrEnum):
    """Toast styles understood by the presentation layer."""

    DEFAULT = "default"
    DESTRUCTIVE = "destructive"
