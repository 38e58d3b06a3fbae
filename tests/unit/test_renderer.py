"""Tests for RelayRenderer — Rich output of reports, events and stats."""

from __future__ import annotations

from io import StringIO

from rich.console import Console

from formrelay.cli.renderer import RelayRenderer
from formrelay.models.channels import ChannelType
from formrelay.models.dispatch import ChannelOutcome, ChannelStatus, DispatchReport
from formrelay.models.events import EventOutcome, IntegrationEvent, IntegrationStats


def _renderer() -> tuple[RelayRenderer, StringIO]:
    buffer = StringIO()
    return RelayRenderer(console=Console(file=buffer, width=160)), buffer


class TestRelayRenderer:
    def test_report_summary(self):
        renderer, buffer = _renderer()
        report = DispatchReport(
            form_id="contact",
            submission_id="sub_1",
            outcomes=[
                ChannelOutcome(
                    integration_id="contact_email",
                    channel_type=ChannelType.EMAIL,
                    status=ChannelStatus.SUCCESS,
                ),
                ChannelOutcome(
                    integration_id="contact_webhook",
                    channel_type=ChannelType.WEBHOOK,
                    status=ChannelStatus.ERROR,
                    error="HTTP 500: Internal Server Error",
                ),
            ],
        )
        renderer.print_report(report)
        out = buffer.getvalue()
        assert "HTTP 500: Internal Server Error" in out
        assert "1 succeeded, 1 failed, 0 skipped, 0 cancelled" in out

    def test_events_truncated_by_limit(self):
        renderer, buffer = _renderer()
        events = [
            IntegrationEvent(integration_id="i", type=EventOutcome.SUCCESS, submission_id=f"s{n}")
            for n in range(5)
        ]
        renderer.print_events("i", events, limit=2)
        assert "and 3 older" in buffer.getvalue()

    def test_stats_rate(self):
        renderer, buffer = _renderer()
        stats = IntegrationStats(total=10, success_count=7, error_count=3, success_rate_percent=70)
        renderer.print_stats([("contact_email", stats)])
        assert "70%" in buffer.getvalue()

    def test_empty_integrations(self):
        renderer, buffer = _renderer()
        renderer.print_integrations([])
        assert "No integrations configured." in buffer.getvalue()
