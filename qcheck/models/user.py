"""
User Model.

Read-only projection of the profile document that accompanies every
credential account.  The profile stores the provider's account id under
``uid``; the application exposes it as ``id``.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field, field_validator

from qcheck.models.enums import UserRole
from qcheck.utils.timestamps import TimestampInput, coerce_timestamp


class User(BaseModel):
    """Represents a signed-in user's profile."""

    id: str = Field(validation_alias=AliasChoices("uid", "id"))  # Supabase auth UUID
    name: str
    email: str
    # Free text: profiles may carry roles this app does not define.
    role: str = UserRole.USER
    created_at: datetime

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("created_at", mode="before")
    @classmethod
    def _normalise_created_at(cls, value: TimestampInput) -> datetime:
        return coerce_timestamp(value)
