"""
FMEA Record Models.

``FMEARecord`` is the canonical record as stored; ``FMEARecordCreate``
and ``FMEARecordUpdate`` are the only shapes accepted by the record
repository.  Neither accepts ``rpn``: it is derived from the three
ratings on every write and can never be supplied by a caller.

``FMEAFormInput`` models the editing form.  It accepts whatever the
inputs currently hold, reports problems as ``ValidationResult`` objects
instead of raising, and computes the live RPN preview with the same
function the repository uses.
"""

from __future__ import annotations

import datetime as dt
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from qcheck.models.service_models import ValidationResult
from qcheck.utils.rpn import (
    RATING_FIELDS,
    RATING_MAX,
    RATING_MIN,
    RPN_MAX,
    RPN_MIN,
    compute_rpn,
    is_valid_rating,
)
from qcheck.utils.string_helpers import contains_control_chars
from qcheck.utils.timestamps import TimestampInput, coerce_timestamp

__all__ = [
    "FMEAFormInput",
    "FMEARecord",
    "FMEARecordCreate",
    "FMEARecordUpdate",
]

Rating = Annotated[int, Field(ge=RATING_MIN, le=RATING_MAX)]


def _required_text(value: str, label: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{label} is required")
    return stripped


class FMEARecord(BaseModel):
    """A stored FMEA entry."""

    id: str
    process_name: str
    date: dt.date
    potential_failure: str
    severity: Rating
    occurrence: Rating
    detection: Rating
    rpn: int = Field(ge=RPN_MIN, le=RPN_MAX)
    description: Optional[str] = None
    user_id: str
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = {"from_attributes": True}

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _normalise_timestamps(cls, value: TimestampInput) -> dt.datetime:
        return coerce_timestamp(value)

    @model_validator(mode="after")
    def _rpn_matches_ratings(self) -> "FMEARecord":
        expected = self.severity * self.occurrence * self.detection
        if self.rpn != expected:
            raise ValueError(
                f"RPN {self.rpn} does not match "
                f"{self.severity}×{self.occurrence}×{self.detection}={expected}"
            )
        return self


class FMEARecordCreate(BaseModel):
    """Fields a caller supplies when creating a record."""

    model_config = ConfigDict(extra="forbid")

    process_name: str
    date: dt.date
    potential_failure: str
    severity: Rating
    occurrence: Rating
    detection: Rating
    description: Optional[str] = None
    user_id: str = Field(min_length=1)

    @field_validator("process_name")
    @classmethod
    def _process_name_required(cls, value: str) -> str:
        return _required_text(value, "Process name")

    @field_validator("potential_failure")
    @classmethod
    def _failure_mode_required(cls, value: str) -> str:
        return _required_text(value, "Potential failure")


class FMEARecordUpdate(BaseModel):
    """Partial update.  Only fields explicitly set take part in the merge."""

    model_config = ConfigDict(extra="forbid")

    process_name: Optional[str] = None
    date: Optional[dt.date] = None
    potential_failure: Optional[str] = None
    severity: Optional[Rating] = None
    occurrence: Optional[Rating] = None
    detection: Optional[Rating] = None
    description: Optional[str] = None

    @field_validator("process_name")
    @classmethod
    def _process_name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _required_text(value, "Process name")

    @field_validator("potential_failure")
    @classmethod
    def _failure_mode_not_blank(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _required_text(value, "Potential failure")

    def changes(self) -> dict[str, object]:
        """JSON-ready fields the caller provided.

        An explicit ``None`` clears ``description``; for every other field
        it means "leave unchanged".
        """
        provided = self.model_dump(mode="json", exclude_unset=True)
        return {
            key: value
            for key, value in provided.items()
            if value is not None or key == "description"
        }

    def touches_ratings(self) -> bool:
        return any(name in self.changes() for name in RATING_FIELDS)


class FMEAFormInput(BaseModel):
    """State of the create/edit form.

    Ratings are held as plain ints without range constraints so that an
    out-of-range value typed into the control can be reported instead of
    blowing up the form.
    """

    process_name: str = ""
    date: dt.date = Field(default_factory=dt.date.today)
    potential_failure: str = ""
    severity: int = RATING_MIN
    occurrence: int = RATING_MIN
    detection: int = RATING_MIN
    description: str = ""

    @classmethod
    def from_record(cls, record: FMEARecord) -> "FMEAFormInput":
        """Prefill the form for editing *record*."""
        return cls(
            process_name=record.process_name,
            date=record.date,
            potential_failure=record.potential_failure,
            severity=record.severity,
            occurrence=record.occurrence,
            detection=record.detection,
            description=record.description or "",
        )

    def validate_fields(self) -> list[ValidationResult]:
        """Return one failed ``ValidationResult`` per problem; empty when valid."""
        problems: list[ValidationResult] = []

        if not self.process_name.strip():
            problems.append(ValidationResult(
                is_valid=False,
                field="process_name",
                error_message="Process name is required.",
            ))
        elif contains_control_chars(self.process_name):
            problems.append(ValidationResult(
                is_valid=False,
                field="process_name",
                error_message="Process name contains invalid characters.",
            ))

        if not self.potential_failure.strip():
            problems.append(ValidationResult(
                is_valid=False,
                field="potential_failure",
                error_message="Potential failure is required.",
            ))

        for name in RATING_FIELDS:
            if not is_valid_rating(getattr(self, name)):
                problems.append(ValidationResult(
                    is_valid=False,
                    field=name,
                    error_message=(
                        f"{name.capitalize()} must be between "
                        f"{RATING_MIN} and {RATING_MAX}."
                    ),
                ))

        return problems

    def preview_rpn(self) -> Optional[int]:
        """Live RPN for the current ratings, or ``None`` while any is out of range."""
        try:
            return compute_rpn(self.severity, self.occurrence, self.detection)
        except ValueError:
            return None

    def _description_or_none(self) -> Optional[str]:
        text = self.description.strip()
        return text or None

    def to_create(self, user_id: str) -> FMEARecordCreate:
        return FMEARecordCreate(
            process_name=self.process_name,
            date=self.date,
            potential_failure=self.potential_failure,
            severity=self.severity,
            occurrence=self.occurrence,
            detection=self.detection,
            description=self._description_or_none(),
            user_id=user_id,
        )

    def to_update(self) -> FMEARecordUpdate:
        return FMEARecordUpdate(
            process_name=self.process_name,
            date=self.date,
            potential_failure=self.potential_failure,
            severity=self.severity,
            occurrence=self.occurrence,
            detection=self.detection,
            description=self._description_or_none(),
        )
