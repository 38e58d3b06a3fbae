"""Tests for placeholder templating — substitution, system fields, passthrough."""

from __future__ import annotations

import json
from datetime import datetime

from formrelay.core.templating import FORM_NAME_PLACEHOLDER, render, system_fields


class TestRender:
    def test_substitutes_data_field(self, make_submission):
        sub = make_submission(data={"name": "Ann"})
        assert render("Hello {{name}}!", sub) == "Hello Ann!"

    def test_unknown_placeholder_left_intact(self, make_submission):
        sub = make_submission(data={"name": "Ann"})
        assert render("{{name}} / {{unknown}}", sub) == "Ann / {{unknown}}"

    def test_none_and_empty_template(self, submission):
        assert render(None, submission) == ""
        assert render("", submission) == ""

    def test_template_without_placeholders_unchanged(self, submission):
        assert render("plain text", submission) == "plain text"

    def test_falsy_value_becomes_empty(self, make_submission):
        sub = make_submission(data={"phone": None, "count": 0, "note": ""})
        assert render("[{{phone}}|{{count}}|{{note}}]", sub) == "[||]"

    def test_structured_value_rendered_as_json(self, make_submission):
        sub = make_submission(data={"tags": ["a", "b"]})
        assert render("{{tags}}", sub) == '["a", "b"]'

    def test_repeated_placeholder_replaced_everywhere(self, make_submission):
        sub = make_submission(data={"x": "1"})
        assert render("{{x}}{{x}}{{x}}", sub) == "111"

    def test_system_placeholders(self, make_submission):
        sub = make_submission(form_id="contact", submission_id="sub_9")
        out = render("{{formId}}:{{submissionId}}:{{formName}}", sub)
        assert out == f"contact:sub_9:{FORM_NAME_PLACEHOLDER}"

    def test_timestamp_placeholder(self, make_submission):
        sub = make_submission(timestamp="2026-03-01T12:00:00+00:00")
        assert render("{{timestamp}}", sub) == "2026-03-01T12:00:00+00:00"

    def test_submission_data_is_pretty_json(self, make_submission):
        sub = make_submission(data={"a": 1})
        assert render("{{submissionData}}", sub) == json.dumps({"a": 1}, indent=2)

    def test_date_and_time_use_render_moment(self, submission):
        now = datetime(2026, 1, 2, 3, 4, 5)
        assert render("{{date}}", submission, now=now) == now.strftime("%x")
        assert render("{{time}}", submission, now=now) == now.strftime("%X")

    def test_data_key_shadows_system_field(self, make_submission):
        sub = make_submission(data={"formId": "from-data"})
        assert render("{{formId}}", sub) == "from-data"

    def test_substituted_values_not_expanded_again(self, make_submission):
        sub = make_submission(data={"a": "{{b}}", "b": "nope"})
        assert render("{{a}}", sub) == "{{b}}"

    def test_never_raises_on_odd_braces(self, make_submission):
        sub = make_submission(data={"name": "Ann"})
        assert render("{{ {{name}} }}", sub) == "{{ Ann }}"
        assert render("{{}}", sub) == "{{}}"


class TestSystemFields:
    def test_contains_every_system_placeholder(self, submission):
        fields = system_fields(submission, datetime(2026, 1, 1))
        assert set(fields) == {
            "formId", "submissionId", "timestamp", "submissionData",
            "formName", "date", "time",
        }
