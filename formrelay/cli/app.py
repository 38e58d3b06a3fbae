"""Main Typer application — imports and registers all CLI commands.

Entry point: ``formrelay`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from formrelay.cli.commands.dispatch_cmd import dispatch_cmd
from formrelay.cli.commands.integrations import delete_cmd, list_cmd, save_cmd, test_cmd
from formrelay.cli.commands.monitor_cmd import events_cmd, stats_cmd
from formrelay.cli.state import CliState
from formrelay.config import RelaySettings

app = typer.Typer(
    name="formrelay",
    help="formrelay: fan form submissions out to configured integrations.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    store: Path = typer.Option(
        None,
        "--store",
        help="Path to the integrations database.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    """Resolve settings and configure logging for the subcommand."""
    settings = RelaySettings()
    if store is not None:
        settings = settings.model_copy(update={"store_path": store})

    level = logging.DEBUG if verbose or settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    ctx.obj = CliState(settings)


# Register subcommands
app.command(name="save", help="Save (overwrite) an integration.")(save_cmd)
app.command(name="delete", help="Delete an integration and its history.")(delete_cmd)
app.command(name="list", help="List saved integrations.")(list_cmd)
app.command(name="test", help="Test one integration with sample data.")(test_cmd)
app.command(name="dispatch", help="Dispatch a submission to a form's integrations.")(dispatch_cmd)
app.command(name="events", help="Show an integration's delivery history.")(events_cmd)
app.command(name="stats", help="Show integration success rates.")(stats_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
