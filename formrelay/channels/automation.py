"""Automation webhook executor.

Automation platforms consume structured data, so the submission is posted
as-is.  No templating is applied.
"""

from __future__ import annotations

import logging

import httpx

from formrelay.channels import _http
from formrelay.errors import ChannelError, ChannelErrorKind
from formrelay.models.channels import AutomationWebhookChannelConfig, ChannelType
from formrelay.models.submission import SubmissionData

logger = logging.getLogger(__name__)


class AutomationWebhookExecutor:
    def __init__(self, client: httpx.Client) -> None:
        self._client = client

    @property
    def channel_type(self) -> ChannelType:
        return ChannelType.AUTOMATION_WEBHOOK

    def execute(
        self, config: AutomationWebhookChannelConfig, submission: SubmissionData
    ) -> None:
        response = _http.send(
            self._client,
            "POST",
            config.webhook_url,
            json_body=submission.to_wire(),
        )
        if not response.is_success:
            raise ChannelError(
                ChannelErrorKind.AUTOMATION_ERROR,
                f"Automation webhook error: {_http.reason(response)}",
                status_code=response.status_code,
            )
        logger.debug(
            "AutomationWebhookExecutor: forwarded submission %s",
            submission.submission_id,
        )
