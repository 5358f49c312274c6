"""
Highlight API schemas for the CorporaViewer highlights service.

Pydantic request/response models for the streaming highlight endpoint.
The streamed chunk shape itself lives in ``cv_common.models``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from highlights.engine import HighlightRequest


class HighlightQuery(BaseModel):
    """Query parameters of ``GET /meetings/{meeting_id}/highlights``."""

    words: str | None = None
    speaker: str | None = None
    lang: str | None = Field(default=None, max_length=10)
    loose_search: bool = Field(default=False, alias="looseSearch")

    model_config = {"populate_by_name": True}

    def to_request(self, meeting_id: str) -> HighlightRequest:
        return HighlightRequest(
            meeting_id=meeting_id,
            words=self.words,
            speaker=self.speaker,
            lang=self.lang or None,
            loose_search=self.loose_search,
        )


class ErrorResponse(BaseModel):
    error: str
