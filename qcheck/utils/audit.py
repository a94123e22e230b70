"""
Audit trail.

Record creates, updates and deletes, registrations, sign-ins and
sign-outs each produce one ``AUDIT`` log line.  The validated
``AuditEvent`` travels in the record's ``extra`` so the JSON formatter
writes it as a nested object, not as a string.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel, Field

from qcheck.logger import StructuredLogger

__all__ = ["AuditEvent", "log_audit_event"]

# Flat scalars only.
DetailValue = Union[str, int, float, bool, None]


class AuditEvent(BaseModel):
    timestamp: str
    action: str
    entity_type: str
    entity_id: str
    user_id: str
    details: dict[str, DetailValue] = Field(default_factory=dict)


def log_audit_event(
    logger: StructuredLogger,
    action: str,
    entity_type: str,
    entity_id: str,
    user_id: str,
    details: Optional[dict[str, DetailValue]] = None,
) -> AuditEvent:
    """Validate and log one audit event; returns the event.

    Args:
        action: ``"CREATE"``, ``"UPDATE"``, ``"DELETE"``, ``"REGISTER"``,
            ``"SIGN_IN"`` or ``"SIGN_OUT"``.
        entity_type: ``"FMEARecord"`` or ``"User"``.
        entity_id: Id of the affected record or account.
        user_id: Account that performed the action.
        details: Extra context such as the resulting RPN.
    """
    event = AuditEvent(
        timestamp=datetime.now(timezone.utc).isoformat(),
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        details=details or {},
    )
    logger.info(
        "AUDIT %s %s/%s by %s",
        action,
        entity_type,
        entity_id,
        user_id,
        extra={"audit": event.model_dump()},
    )
    return event
