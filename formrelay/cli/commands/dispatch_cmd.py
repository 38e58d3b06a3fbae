"""``formrelay dispatch FORM_ID`` — deliver a submission to a form's integrations."""

from __future__ import annotations

import json
from pathlib import Path

import typer

from formrelay.cli.renderer import RelayRenderer
from formrelay.cli.state import console, get_state
from formrelay.models.submission import SubmissionData
from formrelay.service import new_submission_id


def dispatch_cmd(
    ctx: typer.Context,
    form_id: str = typer.Argument(..., help="Form the submission belongs to."),
    data_file: Path = typer.Option(
        ...,
        "--data",
        "-d",
        exists=True,
        dir_okay=False,
        help="JSON file with the submitted field values.",
    ),
    submission_id: str = typer.Option(
        None,
        "--submission-id",
        "-s",
        help="Submission id to use.  Generated when omitted.",
    ),
) -> None:
    """Dispatch one submission and show how each channel settled."""
    try:
        data = json.loads(data_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        console.print(f"[bold red]Invalid JSON in {data_file}:[/bold red] {exc}")
        raise typer.Exit(code=1)
    if not isinstance(data, dict):
        console.print("[bold red]Data file must contain a JSON object.[/bold red]")
        raise typer.Exit(code=1)

    submission = SubmissionData(
        form_id=form_id,
        submission_id=submission_id or new_submission_id(),
        data=data,
    )
    report = get_state(ctx).service(ctx).dispatch(submission)
    RelayRenderer(console=console).print_report(report)
