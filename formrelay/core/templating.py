"""Placeholder templating for user-authored channel text.

``render`` is pure and never fails.  Unknown placeholders stay in the
output literally, and substituted values are never expanded again.
"""

from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any

from formrelay.models.submission import SubmissionData

# Form metadata is not available at dispatch time.
FORM_NAME_PLACEHOLDER = "Form"

_PLACEHOLDER = re.compile(r"\{\{([^{}]+)\}\}")


def _stringify(value: Any) -> str:
    if not value:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def system_fields(
    submission: SubmissionData, now: datetime | None = None
) -> dict[str, str]:
    """Return the system placeholder values, in precedence order."""
    moment = now or datetime.now()
    return {
        "formId": submission.form_id,
        "submissionId": submission.submission_id,
        "timestamp": submission.timestamp,
        "submissionData": json.dumps(submission.data, indent=2, default=str),
        "formName": FORM_NAME_PLACEHOLDER,
        "date": moment.strftime("%x"),
        "time": moment.strftime("%X"),
    }


def render(
    template: str | None,
    submission: SubmissionData,
    *,
    now: datetime | None = None,
) -> str:
    """Substitute ``{{placeholder}}`` tokens in *template*.

    A placeholder naming a key of ``submission.data`` takes that field's
    value (empty string when falsy).  Otherwise the system placeholders
    apply: ``formId``, ``submissionId``, ``timestamp``, ``submissionData``,
    ``formName``, ``date``, ``time``.  Anything else is left as-is.

    The scan is a single pass over *template*, so text introduced by a
    substitution is never scanned again.

    Parameters
    ----------
    template:
        The user-authored text.  ``None`` renders as the empty string.
    submission:
        The submission supplying field values and system fields.
    now:
        Render time for ``{{date}}`` and ``{{time}}``.  Defaults to the
        current local time.
    """
    if not template:
        return ""
    if "{{" not in template:
        return template

    data = submission.data
    system = system_fields(submission, now)

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in data:
            return _stringify(data[name])
        if name in system:
            return system[name]
        return match.group(0)

    return _PLACEHOLDER.sub(_substitute, template)
