"""Channel types and their typed configuration variants.

The settings panels hand formrelay an untyped mapping per channel.  It is
stored verbatim and parsed into one of the variants below only when the
channel executes, so a broken config surfaces as a channel failure rather
than a save failure.

Field names are snake_case; the camelCase names used by the settings
panels are accepted as aliases.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class ChannelType(str, Enum):
    """Every channel type a form can be configured with."""

    EMAIL = "email"
    WEBHOOK = "webhook"
    CHAT_WEBHOOK = "chat-webhook"
    AUTOMATION_WEBHOOK = "automation-webhook"
    RECORD_STORE = "record-store"
    SPREADSHEET_SINK = "spreadsheet-sink"

    # Reserved: configurable in the UI, no executor exists.
    PAYMENT = "payment"
    CALENDAR = "calendar"
    CRM = "crm"
    CLOUD_STORAGE = "cloud-storage"
    ANALYTICS = "analytics"


IMPLEMENTED_CHANNEL_TYPES: tuple[ChannelType, ...] = (
    ChannelType.EMAIL,
    ChannelType.WEBHOOK,
    ChannelType.CHAT_WEBHOOK,
    ChannelType.AUTOMATION_WEBHOOK,
    ChannelType.RECORD_STORE,
    ChannelType.SPREADSHEET_SINK,
)

RESERVED_CHANNEL_TYPES: tuple[ChannelType, ...] = (
    ChannelType.PAYMENT,
    ChannelType.CALENDAR,
    ChannelType.CRM,
    ChannelType.CLOUD_STORAGE,
    ChannelType.ANALYTICS,
)

# Lookup order for ListEnabled.
KNOWN_CHANNEL_TYPES: tuple[ChannelType, ...] = (
    IMPLEMENTED_CHANNEL_TYPES + RESERVED_CHANNEL_TYPES
)


class _ChannelConfigBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    retry_on_failure: bool = Field(default=False, alias="retryOnFailure")


class EmailChannelConfig(_ChannelConfigBase):
    """Transactional email notification."""

    type: Literal["email"] = "email"
    recipients: list[str] = []
    subject: str = ""
    template: str = ""
    from_name: str = Field(default="", alias="fromName")
    reply_to: str = Field(default="", alias="replyTo")

    @field_validator("recipients", mode="before")
    @classmethod
    def _split_recipients(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value


class WebhookHeader(BaseModel):
    """One user-defined request header."""

    model_config = ConfigDict(frozen=True)

    key: str = ""
    value: str = ""


class WebhookChannelConfig(_ChannelConfigBase):
    """Generic HTTP webhook with a templated body."""

    type: Literal["webhook"] = "webhook"
    url: str
    method: str = "POST"
    headers: list[WebhookHeader] = []
    auth_type: Literal["none", "bearer"] = Field(default="none", alias="authType")
    auth_token: str = Field(default="", alias="authToken")
    payload: str = ""

    @field_validator("method", mode="before")
    @classmethod
    def _default_method(cls, value: Any) -> Any:
        if not value:
            return "POST"
        return str(value).upper()

    @field_validator("auth_type", mode="before")
    @classmethod
    def _default_auth_type(cls, value: Any) -> Any:
        return value or "none"


class ChatWebhookChannelConfig(_ChannelConfigBase):
    """Incoming-webhook style chat notification."""

    type: Literal["chat-webhook"] = "chat-webhook"
    webhook_url: str = Field(alias="webhookUrl")
    channel: str = ""
    username: str = ""
    icon: str = Field(default="", alias="emoji")
    template: str = ""


class AutomationWebhookChannelConfig(_ChannelConfigBase):
    """Automation platform hook; receives the raw submission as JSON."""

    type: Literal["automation-webhook"] = "automation-webhook"
    webhook_url: str = Field(alias="webhookUrl")


class RecordStoreChannelConfig(_ChannelConfigBase):
    """Structured record store sink."""

    type: Literal["record-store"] = "record-store"
    table_name: str = Field(alias="tableName", pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")


class SpreadsheetChannelConfig(_ChannelConfigBase):
    """Spreadsheet row sink."""

    type: Literal["spreadsheet-sink"] = "spreadsheet-sink"
    spreadsheet_id: str = Field(alias="spreadsheetId", min_length=1)
    worksheet_name: str = Field(default="Sheet1", alias="worksheetName")

    @field_validator("worksheet_name", mode="before")
    @classmethod
    def _default_worksheet(cls, value: Any) -> Any:
        return value or "Sheet1"


class ReservedChannelConfig(BaseModel):
    """Opaque config for reserved channel types with no executor."""

    model_config = ConfigDict(frozen=True)

    type: str
    settings: dict[str, Any] = {}


ChannelConfig = Annotated[
    Union[
        EmailChannelConfig,
        WebhookChannelConfig,
        ChatWebhookChannelConfig,
        AutomationWebhookChannelConfig,
        RecordStoreChannelConfig,
        SpreadsheetChannelConfig,
    ],
    Field(discriminator="type"),
]

_CHANNEL_CONFIG_ADAPTER: TypeAdapter[Any] = TypeAdapter(ChannelConfig)


def parse_channel_config(
    channel_type: ChannelType, raw: dict[str, Any]
) -> ChannelConfig | ReservedChannelConfig:
    """Parse a stored config mapping into its typed variant.

    Raises ``pydantic.ValidationError`` if the mapping does not fit the
    channel's shape.
    """
    if channel_type in RESERVED_CHANNEL_TYPES:
        return ReservedChannelConfig(type=channel_type.value, settings=dict(raw))
    return _CHANNEL_CONFIG_ADAPTER.validate_python({**raw, "type": channel_type.value})
