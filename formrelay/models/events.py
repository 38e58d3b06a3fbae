"""Delivery outcome events and derived reliability statistics."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EventOutcome(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class IntegrationEvent(BaseModel):
    """The recorded outcome of one executor invocation.

    Events are immutable once created.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    integration_id: str
    type: EventOutcome
    submission_id: str
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    error: str | None = None


class IntegrationStats(BaseModel):
    """Reliability figures over an integration's retained history."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    success_count: int = 0
    error_count: int = 0
    success_rate_percent: int = 0
