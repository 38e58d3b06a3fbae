"""Per-invocation CLI state: settings, console, and a lazily built service."""

from __future__ import annotations

import typer
from rich.console import Console

from formrelay.channels._http import build_client
from formrelay.config import RelaySettings
from formrelay.service import IntegrationsService

console = Console()


class CliState:
    """Holds what the root callback resolved for the subcommands."""

    def __init__(self, settings: RelaySettings) -> None:
        self.settings = settings
        self._service: IntegrationsService | None = None

    def service(self, ctx: typer.Context) -> IntegrationsService:
        if self._service is None:
            client = build_client(self.settings.channel_timeout_seconds)
            ctx.call_on_close(client.close)
            self._service = IntegrationsService.from_settings(self.settings, client=client)
        return self._service


def get_state(ctx: typer.Context) -> CliState:
    state = ctx.find_root().obj
    if not isinstance(state, CliState):
        state = CliState(RelaySettings())
        ctx.find_root().obj = state
    return state
