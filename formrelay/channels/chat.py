"""Chat webhook executor — posts a rendered message to an incoming-webhook URL."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from formrelay.channels import _http
from formrelay.core.templating import render
from formrelay.errors import ChannelError, ChannelErrorKind
from formrelay.models.channels import ChannelType, ChatWebhookChannelConfig
from formrelay.models.submission import SubmissionData

logger = logging.getLogger(__name__)


class ChatWebhookExecutor:
    """Posts ``{channel, username, icon, text}`` as JSON."""

    def __init__(self, client: httpx.Client) -> None:
        self._client = client

    @property
    def channel_type(self) -> ChannelType:
        return ChannelType.CHAT_WEBHOOK

    @staticmethod
    def build_payload(
        config: ChatWebhookChannelConfig, submission: SubmissionData
    ) -> dict[str, Any]:
        return {
            "channel": config.channel,
            "username": config.username,
            "icon": config.icon,
            "text": render(config.template, submission),
        }

    def execute(
        self, config: ChatWebhookChannelConfig, submission: SubmissionData
    ) -> None:
        response = _http.send(
            self._client,
            "POST",
            config.webhook_url,
            json_body=self.build_payload(config, submission),
        )
        if not response.is_success:
            raise ChannelError(
                ChannelErrorKind.CHAT_API_ERROR,
                f"Chat API error: {_http.reason(response)}",
                status_code=response.status_code,
            )
        logger.debug(
            "ChatWebhookExecutor: posted submission %s", submission.submission_id
        )
