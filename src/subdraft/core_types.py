from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SegmentRecord(BaseModel):
    # Human timestamp, e.g. "1:23", "78:48" or "1:02:03"
    time: str
    text: str = ""


class TranscriptRecord(BaseModel):
    """
    One stored transcript row: published content plus an optional draft slot.
    """

    id: str
    video_id: Optional[str] = None
    language: Optional[str] = None
    content: List[SegmentRecord] = Field(default_factory=list)
    draft_content: Optional[List[SegmentRecord]] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    model_config = {"extra": "allow"}
