"""Per-submission dispatch results returned to the caller."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from formrelay.models.channels import ChannelType


class ChannelStatus(str, Enum):
    """How a single enabled channel settled.

    Only ``SUCCESS`` and ``ERROR`` are written to the Event Log.
    """

    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


class ChannelOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    integration_id: str
    channel_type: ChannelType
    status: ChannelStatus
    error: str | None = None


class DispatchReport(BaseModel):
    """Summary of one dispatch call, in configuration order."""

    model_config = ConfigDict(frozen=True)

    form_id: str
    submission_id: str
    outcomes: list[ChannelOutcome] = []

    def _count(self, status: ChannelStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def succeeded(self) -> int:
        return self._count(ChannelStatus.SUCCESS)

    @property
    def failed(self) -> int:
        return self._count(ChannelStatus.ERROR)

    @property
    def skipped(self) -> int:
        return self._count(ChannelStatus.SKIPPED)

    @property
    def cancelled(self) -> int:
        return self._count(ChannelStatus.CANCELLED)

    @property
    def is_noop(self) -> bool:
        """True when the form had no enabled integrations."""
        return not self.outcomes
