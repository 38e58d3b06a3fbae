"""``formrelay save|delete|list|test`` — manage saved integrations."""

from __future__ import annotations

import json
from pathlib import Path

import typer

from formrelay.cli.renderer import RelayRenderer
from formrelay.cli.state import console, get_state
from formrelay.errors import ConfigNotFound
from formrelay.models.channels import ChannelType
from formrelay.models.dispatch import ChannelStatus


def save_cmd(
    ctx: typer.Context,
    form_id: str = typer.Argument(..., help="Form the integration belongs to."),
    channel: ChannelType = typer.Argument(..., help="Channel type."),
    config_file: Path = typer.Option(
        ...,
        "--config",
        "-c",
        exists=True,
        dir_okay=False,
        help="JSON file with the channel configuration.",
    ),
    enable: bool = typer.Option(
        None,
        "--enable/--disable",
        help="Override the 'enabled' flag in the config file.",
    ),
) -> None:
    """Save (overwrite) the integration for FORM_ID and CHANNEL."""
    try:
        config = json.loads(config_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        console.print(f"[bold red]Invalid JSON in {config_file}:[/bold red] {exc}")
        raise typer.Exit(code=1)
    if not isinstance(config, dict):
        console.print("[bold red]Config file must contain a JSON object.[/bold red]")
        raise typer.Exit(code=1)
    if enable is not None:
        config["enabled"] = enable

    record = get_state(ctx).service(ctx).save_integration(form_id, channel, config)
    state = "[green]enabled[/green]" if record.enabled else "[dim]disabled[/dim]"
    console.print(f"Saved integration [cyan]{record.id}[/cyan] ({state})")


def delete_cmd(
    ctx: typer.Context,
    form_id: str = typer.Argument(..., help="Form the integration belongs to."),
    channel: ChannelType = typer.Argument(..., help="Channel type."),
) -> None:
    """Delete the integration for FORM_ID and CHANNEL, with its history."""
    service = get_state(ctx).service(ctx)
    if service.get_integration(form_id, channel) is None:
        console.print(
            f"[bold red]Integration not found:[/bold red] {form_id} / {channel.value}"
        )
        raise typer.Exit(code=1)
    service.delete_integration(form_id, channel)
    console.print(f"Deleted integration [cyan]{form_id}_{channel.value}[/cyan]")


def list_cmd(
    ctx: typer.Context,
    form_id: str = typer.Option(None, "--form", "-f", help="Only this form's enabled integrations."),
) -> None:
    """List saved integrations."""
    service = get_state(ctx).service(ctx)
    integrations = (
        service.form_integrations(form_id) if form_id else service.list_integrations()
    )
    RelayRenderer(console=console).print_integrations(integrations)


def test_cmd(
    ctx: typer.Context,
    form_id: str = typer.Argument(..., help="Form the integration belongs to."),
    channel: ChannelType = typer.Argument(..., help="Channel type."),
) -> None:
    """Send sample data through one integration without recording an event."""
    service = get_state(ctx).service(ctx)
    try:
        outcome = service.test_integration(form_id, channel)
    except ConfigNotFound as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)

    if outcome.status == ChannelStatus.SUCCESS:
        console.print(f"[green]Connection test for {outcome.integration_id} passed.[/green]")
    elif outcome.status == ChannelStatus.SKIPPED:
        console.print(
            f"[yellow]No executor for channel {channel.value}; nothing to test.[/yellow]"
        )
    else:
        console.print(
            f"[bold red]Connection test for {outcome.integration_id} failed:[/bold red] "
            f"{outcome.error}"
        )
        raise typer.Exit(code=1)
