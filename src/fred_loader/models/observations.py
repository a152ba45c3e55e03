"""Pydantic schemas for the FRED ``series/observations`` payload."""
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# FRED reports a missing value for a period as a single dot.
MISSING_VALUE_TOKEN = "."


class Observation(BaseModel):
    """One reported value for a period.

    ``date`` and ``value`` are kept exactly as the API returned them; the
    loader owns date normalization. The realtime revision fields are
    accepted and discarded.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    date: str
    value: str

    @property
    def is_missing(self) -> bool:
        return self.value.strip() == MISSING_VALUE_TOKEN


class SeriesResponse(BaseModel):
    """Decoded observations envelope, in the order the API returned them."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    observations: List[Observation] = Field(default_factory=list)
    observation_start: Optional[str] = None
    observation_end: Optional[str] = None
    units: Optional[str] = None
    order_by: Optional[str] = None
    sort_order: Optional[str] = None
    count: Optional[int] = None

    @field_validator("observations", mode="before")
    @classmethod
    def _null_observations(cls, value: Any) -> Any:
        return [] if value is None else value
