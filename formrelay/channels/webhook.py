"""Generic webhook executor — templated body, user headers, optional bearer auth."""

from __future__ import annotations

import logging

import httpx

from formrelay.channels import _http
from formrelay.core.templating import render
from formrelay.errors import ChannelError, ChannelErrorKind
from formrelay.models.channels import ChannelType, WebhookChannelConfig
from formrelay.models.submission import SubmissionData

logger = logging.getLogger(__name__)


def build_headers(config: WebhookChannelConfig) -> dict[str, str]:
    """Collect the configured headers plus the bearer token, if any.

    Pairs with an empty key or value are ignored.
    """
    headers: dict[str, str] = {}
    for header in config.headers:
        if header.key and header.value:
            headers[header.key] = header.value
    if config.auth_type == "bearer" and config.auth_token:
        headers["Authorization"] = f"Bearer {config.auth_token}"
    return headers


class WebhookExecutor:
    """Sends the rendered ``payload`` template to ``url``.

    Parameters
    ----------
    client:
        Shared HTTP client.
    """

    def __init__(self, client: httpx.Client) -> None:
        self._client = client

    @property
    def channel_type(self) -> ChannelType:
        return ChannelType.WEBHOOK

    def execute(self, config: WebhookChannelConfig, submission: SubmissionData) -> None:
        body = render(config.payload, submission)
        response = _http.send(
            self._client,
            config.method,
            config.url,
            headers=build_headers(config),
            content=body,
        )
        if response.is_error:
            raise ChannelError(
                ChannelErrorKind.HTTP_STATUS,
                f"HTTP {response.status_code}: {_http.reason(response)}",
                status_code=response.status_code,
            )
        logger.debug(
            "WebhookExecutor: delivered submission %s to %s",
            submission.submission_id,
            config.url,
        )
