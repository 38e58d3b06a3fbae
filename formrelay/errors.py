"""Error taxonomy for formrelay.

``ConfigNotFound`` and ``PersistenceFailure`` propagate to whoever called
the Configuration Store or Event Log.  ``ChannelError`` never leaves the
dispatcher: it is converted into an error event on the integration's
history.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from formrelay.models.integration import IntegrationKey


class FormRelayError(RuntimeError):
    """Base class for all formrelay errors."""


class ConfigNotFound(FormRelayError):
    """Raised when an integration configuration does not exist."""

    def __init__(self, key: IntegrationKey) -> None:
        super().__init__(
            f"No integration configured for form {key.form_id!r} "
            f"and channel {key.channel_type.value!r}"
        )
        self.key = key


class PersistenceFailure(FormRelayError):
    """Raised when a backing store cannot be read or written."""


class ChannelErrorKind(str, Enum):
    """Why a single channel delivery failed."""

    DELIVERY_FAILED = "delivery_failed"
    HTTP_STATUS = "http_status"
    CHAT_API_ERROR = "chat_api_error"
    AUTOMATION_ERROR = "automation_error"
    RECORD_STORE_ERROR = "record_store_error"
    SPREADSHEET_ERROR = "spreadsheet_error"
    MALFORMED_CONFIG = "malformed_config"
    TIMEOUT = "timeout"


class ChannelError(FormRelayError):
    """A failure inside one channel executor.

    Parameters
    ----------
    kind:
        Classification of the failure.
    message:
        Human-readable message, stored verbatim on the error event.
    status_code:
        HTTP status of the rejected request, when there was one.
    """

    def __init__(
        self,
        kind: ChannelErrorKind,
        message: str,
        *,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code

    def __repr__(self) -> str:
        return (
            f"ChannelError(kind={self.kind.value!r}, message={self.message!r}, "
            f"status_code={self.status_code!r})"
        )
