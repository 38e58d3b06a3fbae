"""Email notification executor and mail transports.

The executor renders the subject and body templates and hands the message
to a ``MailTransport``.  Two transports ship with formrelay:

- ``SmtpMailTransport`` delivers through an SMTP relay.
- ``OutboxMailTransport`` buffers messages for later retrieval by a test
  harness or an external sender.
"""

from __future__ import annotations

import logging
import smtplib
import threading
from email.message import EmailMessage
from email.utils import formataddr
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from formrelay.core.templating import render
from formrelay.errors import ChannelError, ChannelErrorKind
from formrelay.models.channels import ChannelType, EmailChannelConfig
from formrelay.models.submission import SubmissionData

logger = logging.getLogger(__name__)


class EmailMessagePayload(BaseModel):
    """A rendered email, ready for a transport."""

    model_config = ConfigDict(frozen=True)

    recipients: list[str]
    sender: str
    subject: str
    body_text: str
    reply_to: str = ""
    headers: dict[str, str] = {}


@runtime_checkable
class MailTransport(Protocol):
    """Anything that can deliver an ``EmailMessagePayload``.

    Implementations raise on rejection; the executor converts the
    exception into a ``ChannelError``.
    """

    def send(self, message: EmailMessagePayload) -> None:
        ...


class OutboxMailTransport:
    """Buffers messages instead of sending them.

    Meant for tests and for embedding, where the host drains the outbox
    and delivers by its own means.  Nothing is dropped: the buffer grows
    until ``flush`` is called.  Safe to share across executor threads.
    """

    def __init__(self) -> None:
        self._pending: list[EmailMessagePayload] = []
        self._lock = threading.Lock()

    def send(self, message: EmailMessagePayload) -> None:
        with self._lock:
            self._pending.append(message)

    def flush(self) -> list[EmailMessagePayload]:
        """Return and clear all pending messages."""
        with self._lock:
            messages = self._pending
            self._pending = []
        return messages

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)


class SmtpMailTransport:
    """Delivers through an SMTP relay, one connection per message.

    Parameters
    ----------
    host, port:
        Relay address.
    username, password:
        Credentials.  Login is skipped when ``username`` is empty.
    use_tls:
        Issue STARTTLS before authenticating.
    timeout_seconds:
        Socket timeout for the SMTP session.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        *,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout_seconds

    @staticmethod
    def to_mime(message: EmailMessagePayload) -> EmailMessage:
        mime = EmailMessage()
        mime["From"] = message.sender
        mime["To"] = ", ".join(message.recipients)
        mime["Subject"] = message.subject
        if message.reply_to:
            mime["Reply-To"] = message.reply_to
        for name, value in message.headers.items():
            mime[name] = value
        mime.set_content(message.body_text)
        return mime

    def send(self, message: EmailMessagePayload) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
            if self._use_tls:
                server.starttls()
            if self._username:
                server.login(self._username, self._password)
            server.send_message(self.to_mime(message))


class EmailExecutor:
    """Renders and sends a notification to ``config.recipients``.

    Parameters
    ----------
    transport:
        Where rendered messages are handed off.
    sender:
        Envelope sender address.  ``config.from_name`` becomes its display
        name when set.
    """

    def __init__(self, transport: MailTransport, sender: str = "formrelay@localhost") -> None:
        self._transport = transport
        self._sender = sender

    @property
    def channel_type(self) -> ChannelType:
        return ChannelType.EMAIL

    def build_message(
        self, config: EmailChannelConfig, submission: SubmissionData
    ) -> EmailMessagePayload:
        sender = (
            formataddr((config.from_name, self._sender)) if config.from_name else self._sender
        )
        return EmailMessagePayload(
            recipients=list(config.recipients),
            sender=sender,
            subject=render(config.subject, submission),
            body_text=render(config.template, submission),
            reply_to=config.reply_to,
            headers={
                "X-Formrelay-Form-Id": submission.form_id,
                "X-Formrelay-Submission-Id": submission.submission_id,
            },
        )

    def execute(self, config: EmailChannelConfig, submission: SubmissionData) -> None:
        if not config.recipients:
            raise ChannelError(
                ChannelErrorKind.MALFORMED_CONFIG,
                "Email integration has no recipients",
            )
        message = self.build_message(config, submission)
        try:
            self._transport.send(message)
        except Exception as exc:  # noqa: BLE001
            raise ChannelError(
                ChannelErrorKind.DELIVERY_FAILED,
                f"Mail transport rejected message: {exc}",
            ) from exc
        logger.debug(
            "EmailExecutor: sent submission %s to %d recipient(s)",
            submission.submission_id,
            len(message.recipients),
        )
