"""The unit of work passed through the dispatch pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SubmissionMetadata(BaseModel):
    """Optional request context captured alongside a submission."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    ip: str | None = None
    user_agent: str | None = Field(default=None, alias="userAgent")
    location: str | None = None


class SubmissionData(BaseModel):
    """One completed form submission.

    Never persisted by formrelay itself.  ``submission_id`` is generated
    by the caller and must be globally unique.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    form_id: str = Field(alias="formId", min_length=1)
    submission_id: str = Field(alias="submissionId", min_length=1)
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    data: dict[str, Any] = {}
    metadata: SubmissionMetadata | None = None

    def to_wire(self) -> dict[str, Any]:
        """Serialize with the camelCase field names used on the wire."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
