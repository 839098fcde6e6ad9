"""
Request bodies for the reservation routes.
The nested booking content stays a free-form mapping; the pipeline validates it.
"""

from typing import Any, Dict

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class BookingRequest(BaseModel):
    """``{"channel": ..., "create": {...}}``; ``business`` and ``reservation`` are accepted too."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    channel: str = Field(
        ...,
        min_length=1,
        max_length=64,
        validation_alias=AliasChoices("channel", "business"),
        description="Tenant scope the reservation belongs to",
    )
    create: Dict[str, Any] = Field(
        ...,
        validation_alias=AliasChoices("create", "reservation", "modification"),
        description="Reservation header with pax directory and service groups",
    )

    @field_validator("channel")
    @classmethod
    def strip_channel(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("channel must not be blank")
        return v
