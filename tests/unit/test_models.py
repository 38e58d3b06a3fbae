"""Tests for formrelay models — keys, configs, submissions, reports."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from formrelay.models.channels import (
    KNOWN_CHANNEL_TYPES,
    AutomationWebhookChannelConfig,
    ChannelType,
    ChatWebhookChannelConfig,
    EmailChannelConfig,
    RecordStoreChannelConfig,
    ReservedChannelConfig,
    SpreadsheetChannelConfig,
    WebhookChannelConfig,
    parse_channel_config,
)
from formrelay.models.dispatch import ChannelOutcome, ChannelStatus, DispatchReport
from formrelay.models.integration import IntegrationConfig, IntegrationKey
from formrelay.models.submission import SubmissionData, SubmissionMetadata


class TestIntegrationKey:
    def test_integration_id_format(self):
        key = IntegrationKey(form_id="contact", channel_type=ChannelType.CHAT_WEBHOOK)
        assert key.integration_id == "contact_chat-webhook"

    def test_empty_form_id_rejected(self):
        with pytest.raises(ValidationError):
            IntegrationKey(form_id="", channel_type=ChannelType.EMAIL)

    def test_unknown_channel_rejected(self):
        with pytest.raises(ValidationError):
            IntegrationKey(form_id="f", channel_type="fax")


class TestIntegrationConfig:
    def test_build_reads_enabled_flag(self):
        key = IntegrationKey(form_id="f", channel_type=ChannelType.EMAIL)
        record = IntegrationConfig.build(key, {"enabled": True, "subject": "s"})
        assert record.id == "f_email"
        assert record.enabled is True
        assert record.config["subject"] == "s"
        assert record.created_at == record.updated_at

    def test_build_defaults_to_disabled(self):
        key = IntegrationKey(form_id="f", channel_type=ChannelType.EMAIL)
        assert IntegrationConfig.build(key, {}).enabled is False

    def test_key_round_trips(self):
        key = IntegrationKey(form_id="f", channel_type=ChannelType.WEBHOOK)
        assert IntegrationConfig.build(key, {}).key == key

    def test_frozen(self):
        key = IntegrationKey(form_id="f", channel_type=ChannelType.EMAIL)
        record = IntegrationConfig.build(key, {})
        with pytest.raises(ValidationError):
            record.enabled = True


class TestChannelConfigParsing:
    def test_email_recipients_split_from_string(self):
        cfg = parse_channel_config(
            ChannelType.EMAIL, {"recipients": " a@x.com, ,b@x.com ", "fromName": "Forms"}
        )
        assert isinstance(cfg, EmailChannelConfig)
        assert cfg.recipients == ["a@x.com", "b@x.com"]
        assert cfg.from_name == "Forms"

    def test_webhook_defaults(self):
        cfg = parse_channel_config(ChannelType.WEBHOOK, {"url": "https://h", "method": ""})
        assert isinstance(cfg, WebhookChannelConfig)
        assert cfg.method == "POST"
        assert cfg.auth_type == "none"

    def test_webhook_method_uppercased(self):
        cfg = parse_channel_config(ChannelType.WEBHOOK, {"url": "https://h", "method": "put"})
        assert cfg.method == "PUT"

    def test_webhook_requires_url(self):
        with pytest.raises(ValidationError):
            parse_channel_config(ChannelType.WEBHOOK, {"method": "POST"})

    def test_chat_aliases(self):
        cfg = parse_channel_config(
            ChannelType.CHAT_WEBHOOK, {"webhookUrl": "https://c", "emoji": ":tada:"}
        )
        assert isinstance(cfg, ChatWebhookChannelConfig)
        assert cfg.webhook_url == "https://c"
        assert cfg.icon == ":tada:"

    def test_automation(self):
        cfg = parse_channel_config(ChannelType.AUTOMATION_WEBHOOK, {"webhookUrl": "https://a"})
        assert isinstance(cfg, AutomationWebhookChannelConfig)

    def test_record_store_table_name_validated(self):
        cfg = parse_channel_config(ChannelType.RECORD_STORE, {"tableName": "leads"})
        assert isinstance(cfg, RecordStoreChannelConfig)
        with pytest.raises(ValidationError):
            parse_channel_config(ChannelType.RECORD_STORE, {"tableName": "x; DROP"})

    def test_spreadsheet_default_worksheet(self):
        cfg = parse_channel_config(
            ChannelType.SPREADSHEET_SINK, {"spreadsheetId": "s1", "worksheetName": ""}
        )
        assert isinstance(cfg, SpreadsheetChannelConfig)
        assert cfg.worksheet_name == "Sheet1"

    def test_extra_settings_fields_ignored(self):
        cfg = parse_channel_config(ChannelType.EMAIL, {"enabled": True, "somethingElse": 1})
        assert isinstance(cfg, EmailChannelConfig)

    def test_retry_flag_alias(self):
        cfg = parse_channel_config(ChannelType.EMAIL, {"retryOnFailure": True})
        assert cfg.retry_on_failure is True

    @pytest.mark.parametrize(
        "channel_type",
        [ChannelType.PAYMENT, ChannelType.CALENDAR, ChannelType.CRM,
         ChannelType.CLOUD_STORAGE, ChannelType.ANALYTICS],
    )
    def test_reserved_types_are_opaque(self, channel_type):
        cfg = parse_channel_config(channel_type, {"apiKey": "k"})
        assert isinstance(cfg, ReservedChannelConfig)
        assert cfg.settings == {"apiKey": "k"}

    def test_known_types_cover_enum(self):
        assert set(KNOWN_CHANNEL_TYPES) == set(ChannelType)


class TestSubmissionData:
    def test_accepts_wire_names(self):
        sub = SubmissionData.model_validate(
            {"formId": "f", "submissionId": "s", "data": {"a": 1},
             "metadata": {"userAgent": "ua"}}
        )
        assert sub.form_id == "f"
        assert sub.metadata.user_agent == "ua"

    def test_to_wire_uses_camel_case_and_drops_none(self):
        sub = SubmissionData(
            form_id="f", submission_id="s", timestamp="t", data={"a": 1},
            metadata=SubmissionMetadata(ip="1.2.3.4"),
        )
        assert sub.to_wire() == {
            "formId": "f",
            "submissionId": "s",
            "timestamp": "t",
            "data": {"a": 1},
            "metadata": {"ip": "1.2.3.4"},
        }

    def test_timestamp_defaults_to_now(self):
        sub = SubmissionData(form_id="f", submission_id="s")
        assert sub.timestamp


class TestDispatchReport:
    def _outcome(self, status: ChannelStatus) -> ChannelOutcome:
        return ChannelOutcome(
            integration_id="f_email", channel_type=ChannelType.EMAIL, status=status
        )

    def test_counts(self):
        report = DispatchReport(
            form_id="f",
            submission_id="s",
            outcomes=[
                self._outcome(ChannelStatus.SUCCESS),
                self._outcome(ChannelStatus.SUCCESS),
                self._outcome(ChannelStatus.ERROR),
                self._outcome(ChannelStatus.SKIPPED),
                self._outcome(ChannelStatus.CANCELLED),
            ],
        )
        assert (report.succeeded, report.failed, report.skipped, report.cancelled) == (2, 1, 1, 1)
        assert not report.is_noop

    def test_empty_is_noop(self):
        assert DispatchReport(form_id="f", submission_id="s").is_noop
