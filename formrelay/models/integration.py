"""Integration configuration records and their structured key."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from formrelay.models.channels import (
    ChannelConfig,
    ChannelType,
    ReservedChannelConfig,
    parse_channel_config,
)


class IntegrationKey(BaseModel):
    """Identity of an integration: one per (form, channel type)."""

    model_config = ConfigDict(frozen=True)

    form_id: str = Field(min_length=1)
    channel_type: ChannelType

    @property
    def integration_id(self) -> str:
        """Stable id derived from the key, e.g. ``"contact_webhook"``."""
        return f"{self.form_id}_{self.channel_type.value}"


class IntegrationConfig(BaseModel):
    """A saved channel configuration for one form.

    ``config`` is the mapping exactly as the settings panel supplied it.
    It is interpreted only by the matching executor, via ``typed_config``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    form_id: str
    type: ChannelType
    enabled: bool = False
    config: dict[str, Any] = {}
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @classmethod
    def build(
        cls,
        key: IntegrationKey,
        config: dict[str, Any],
        *,
        now: datetime | None = None,
    ) -> IntegrationConfig:
        """Construct a fresh record for *key*, stamped with *now* (default: current UTC time)."""
        now = now or datetime.now(timezone.utc)
        return cls(
            id=key.integration_id,
            form_id=key.form_id,
            type=key.channel_type,
            enabled=bool(config.get("enabled", False)),
            config=dict(config),
            created_at=now,
            updated_at=now,
        )

    @property
    def key(self) -> IntegrationKey:
        return IntegrationKey(form_id=self.form_id, channel_type=self.type)

    def typed_config(self) -> ChannelConfig | ReservedChannelConfig:
        """Parse ``config`` into the variant for this channel type."""
        return parse_channel_config(self.type, self.config)
