# src/subdraft/api/schemas/transcripts.py
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from subdraft.core_types import SegmentRecord, TranscriptRecord


class ErrorBody(BaseModel):
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
    request_id: str = ""


class ErrorResponse(BaseModel):
    error: ErrorBody


class SaveDraftRequest(BaseModel):
    content: List[SegmentRecord] = Field(..., description="Full draft segment list; replaces the draft slot")
    # Only used when the draft creates a new transcript row.
    video_id: Optional[str] = None
    language: Optional[str] = None


class ImportSrtRequest(BaseModel):
    srt_content: str = Field(..., description="Raw SubRip text")
    target: Literal["published", "draft"] = Field(
        "published",
        description="Slot that receives the imported segments",
    )


class TranscriptResponse(BaseModel):
    transcript: TranscriptRecord
    has_draft: bool = False
    has_draft_changes: bool = False


class ImportSrtResponse(BaseModel):
    message: str = "SRT file imported successfully"
    segments_count: int
    skipped_blocks: int = 0
    transcript: TranscriptRecord
