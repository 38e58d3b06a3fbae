"""formrelay data models — all Pydantic v2, all frozen (immutable)."""

from formrelay.models.channels import (
    IMPLEMENTED_CHANNEL_TYPES,
    KNOWN_CHANNEL_TYPES,
    RESERVED_CHANNEL_TYPES,
    AutomationWebhookChannelConfig,
    ChannelConfig,
    ChannelType,
    ChatWebhookChannelConfig,
    EmailChannelConfig,
    RecordStoreChannelConfig,
    ReservedChannelConfig,
    SpreadsheetChannelConfig,
    WebhookChannelConfig,
    WebhookHeader,
    parse_channel_config,
)
from formrelay.models.dispatch import ChannelOutcome, ChannelStatus, DispatchReport
from formrelay.models.events import EventOutcome, IntegrationEvent, IntegrationStats
from formrelay.models.integration import IntegrationConfig, IntegrationKey
from formrelay.models.submission import SubmissionData, SubmissionMetadata

__all__ = [
    # channels
    "ChannelType",
    "IMPLEMENTED_CHANNEL_TYPES",
    "RESERVED_CHANNEL_TYPES",
    "KNOWN_CHANNEL_TYPES",
    "ChannelConfig",
    "EmailChannelConfig",
    "WebhookChannelConfig",
    "WebhookHeader",
    "ChatWebhookChannelConfig",
    "AutomationWebhookChannelConfig",
    "RecordStoreChannelConfig",
    "SpreadsheetChannelConfig",
    "ReservedChannelConfig",
    "parse_channel_config",
    # integration
    "IntegrationKey",
    "IntegrationConfig",
    # submission
    "SubmissionData",
    "SubmissionMetadata",
    # events
    "EventOutcome",
    "IntegrationEvent",
    "IntegrationStats",
    # dispatch
    "ChannelStatus",
    "ChannelOutcome",
    "DispatchReport",
]
