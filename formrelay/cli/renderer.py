"""Rich terminal rendering for integrations, dispatch reports and history.

Color scheme
------------
- green     : success
- red       : error
- yellow    : skipped
- dim       : cancelled / disabled
"""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from formrelay.models.dispatch import ChannelStatus, DispatchReport
from formrelay.models.events import EventOutcome, IntegrationEvent, IntegrationStats
from formrelay.models.integration import IntegrationConfig

_STATUS_ICONS: dict[ChannelStatus, str] = {
    ChannelStatus.SUCCESS: "[green]success[/green]",
    ChannelStatus.ERROR: "[bold red]error[/bold red]",
    ChannelStatus.SKIPPED: "[yellow]skipped[/yellow]",
    ChannelStatus.CANCELLED: "[dim]cancelled[/dim]",
}

_OUTCOME_ICONS: dict[EventOutcome, str] = {
    EventOutcome.SUCCESS: "[green]success[/green]",
    EventOutcome.ERROR: "[bold red]error[/bold red]",
}


def _rate_style(stats: IntegrationStats) -> str:
    if stats.total == 0:
        return "dim"
    if stats.success_rate_percent >= 95:
        return "green"
    if stats.success_rate_percent >= 75:
        return "yellow"
    return "bold red"


class RelayRenderer:
    """Prints formrelay models as Rich tables.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def print_integrations(self, integrations: list[IntegrationConfig]) -> None:
        if not integrations:
            self.console.print("[dim]No integrations configured.[/dim]")
            return

        table = Table(title="Integrations", header_style="bold cyan")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Form")
        table.add_column("Channel")
        table.add_column("Enabled", justify="center")
        table.add_column("Updated", style="dim")

        for integration in integrations:
            enabled = "[green]Yes[/green]" if integration.enabled else "[dim]No[/dim]"
            table.add_row(
                integration.id,
                integration.form_id,
                integration.type.value,
                enabled,
                integration.updated_at.strftime("%Y-%m-%d %H:%M:%S"),
            )
        self.console.print(table)

    def print_report(self, report: DispatchReport) -> None:
        if report.is_noop:
            self.console.print(
                f"[dim]No integrations configured for form {report.form_id}.[/dim]"
            )
            return

        table = Table(
            title=f"Submission {report.submission_id}", header_style="bold cyan"
        )
        table.add_column("Integration", style="cyan", no_wrap=True)
        table.add_column("Channel")
        table.add_column("Status", justify="center")
        table.add_column("Error")

        for outcome in report.outcomes:
            table.add_row(
                outcome.integration_id,
                outcome.channel_type.value,
                _STATUS_ICONS[outcome.status],
                outcome.error or "[dim]-[/dim]",
            )
        self.console.print(table)
        self.console.print(
            f"{report.succeeded} succeeded, {report.failed} failed, "
            f"{report.skipped} skipped, {report.cancelled} cancelled"
        )

    def print_events(
        self, integration_id: str, events: list[IntegrationEvent], limit: int | None = None
    ) -> None:
        if not events:
            self.console.print(f"[dim]No events recorded for {integration_id}.[/dim]")
            return

        shown = events[:limit] if limit else events
        table = Table(title=f"Events for {integration_id}", header_style="bold cyan")
        table.add_column("Time", style="dim", no_wrap=True)
        table.add_column("Outcome", justify="center")
        table.add_column("Submission", no_wrap=True)
        table.add_column("Error")

        for event in shown:
            table.add_row(
                event.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                _OUTCOME_ICONS[event.type],
                event.submission_id,
                event.error or "[dim]-[/dim]",
            )
        self.console.print(table)
        if len(shown) < len(events):
            self.console.print(f"[dim]... and {len(events) - len(shown)} older[/dim]")

    def print_stats(self, rows: list[tuple[str, IntegrationStats]]) -> None:
        if not rows:
            self.console.print("[dim]No integrations configured.[/dim]")
            return

        table = Table(title="Integration health", header_style="bold cyan")
        table.add_column("Integration", style="cyan", no_wrap=True)
        table.add_column("Total", justify="right")
        table.add_column("Success", justify="right")
        table.add_column("Error", justify="right")
        table.add_column("Rate", justify="right")

        for integration_id, stats in rows:
            style = _rate_style(stats)
            table.add_row(
                integration_id,
                str(stats.total),
                str(stats.success_count),
                str(stats.error_count),
                f"[{style}]{stats.success_rate_percent}%[/{style}]",
            )
        self.console.print(table)
