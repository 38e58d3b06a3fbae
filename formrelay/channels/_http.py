"""Shared HTTP plumbing for the webhook-style executors.

Transport failures and timeouts are classified here.  Status checks are
left to each executor because each words its error differently.  The
generic webhook accepts any non-error final status; chat and automation
hooks require a 2xx.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from formrelay.errors import ChannelError, ChannelErrorKind

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


def build_client(timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> httpx.Client:
    """Return a client suitable for sharing across executor threads.

    Redirects are followed, so a status check sees the final response.
    """
    return httpx.Client(timeout=timeout_seconds, follow_redirects=True)


def send(
    client: httpx.Client,
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    content: str | None = None,
    json_body: Any = None,
) -> httpx.Response:
    """Issue one request, converting transport failures to ``ChannelError``."""
    try:
        if json_body is not None:
            response = client.request(method, url, headers=headers, json=json_body)
        else:
            response = client.request(method, url, headers=headers, content=content)
    except httpx.TimeoutException as exc:
        raise ChannelError(
            ChannelErrorKind.TIMEOUT, f"Request to {url} timed out: {exc}"
        ) from exc
    except httpx.HTTPError as exc:
        raise ChannelError(
            ChannelErrorKind.DELIVERY_FAILED, f"Request to {url} failed: {exc}"
        ) from exc

    logger.debug("%s %s -> %d", method, url, response.status_code)
    return response


def reason(response: httpx.Response) -> str:
    """Reason phrase of *response*, falling back to the bare status code."""
    return response.reason_phrase or str(response.status_code)
