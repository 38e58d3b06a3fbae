"""``formrelay events|stats`` — read-only views over the Event Log."""

from __future__ import annotations

import typer

from formrelay.cli.renderer import RelayRenderer
from formrelay.cli.state import console, get_state


def events_cmd(
    ctx: typer.Context,
    integration_id: str = typer.Argument(..., help="Integration id, e.g. contact_webhook."),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Show at most N events."),
) -> None:
    """Show an integration's delivery history, newest first."""
    events = get_state(ctx).service(ctx).events(integration_id)
    RelayRenderer(console=console).print_events(integration_id, events, limit=limit)


def stats_cmd(
    ctx: typer.Context,
    integration_id: str = typer.Argument(
        None, help="Integration id.  All integrations when omitted."
    ),
) -> None:
    """Show delivery success rates."""
    service = get_state(ctx).service(ctx)
    if integration_id:
        ids = [integration_id]
    else:
        ids = [integration.id for integration in service.list_integrations()]
    rows = [(i, service.stats(i)) for i in ids]
    RelayRenderer(console=console).print_stats(rows)
