# src/subdraft/api/routes/transcripts.py
from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response

from subdraft.api.metrics import inc_draft_saved, inc_published, inc_srt_imported
from subdraft.api.schemas.transcripts import (
    ErrorResponse,
    ImportSrtRequest,
    ImportSrtResponse,
    SaveDraftRequest,
    TranscriptResponse,
)
from subdraft.api.services.transcripts_service import get_drafts, segments_from_request, transcript_response
from subdraft.core.drafts.service import DraftPublishStore, srt_filename

router = APIRouter(prefix="/v1/transcripts", tags=["transcripts"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.get("/{transcript_id}", response_model=TranscriptResponse, responses=_ERROR_RESPONSES)
def get_transcript(transcript_id: str, drafts: DraftPublishStore = Depends(get_drafts)) -> TranscriptResponse:
    return transcript_response(drafts, transcript_id)


@router.put("/{transcript_id}/draft", response_model=TranscriptResponse, responses=_ERROR_RESPONSES)
def save_draft(
    transcript_id: str,
    req: SaveDraftRequest,
    drafts: DraftPublishStore = Depends(get_drafts),
) -> TranscriptResponse:
    segments = segments_from_request(req.content)
    drafts.save_draft(transcript_id, segments, video_id=req.video_id, language=req.language)
    inc_draft_saved()
    return transcript_response(drafts, transcript_id)


@router.delete("/{transcript_id}/draft", response_model=TranscriptResponse, responses=_ERROR_RESPONSES)
def discard_draft(transcript_id: str, drafts: DraftPublishStore = Depends(get_drafts)) -> TranscriptResponse:
    drafts.discard_draft(transcript_id)
    return transcript_response(drafts, transcript_id)


@router.post("/{transcript_id}/publish", response_model=TranscriptResponse, responses=_ERROR_RESPONSES)
def publish(transcript_id: str, drafts: DraftPublishStore = Depends(get_drafts)) -> TranscriptResponse:
    drafts.publish(transcript_id)
    inc_published()
    return transcript_response(drafts, transcript_id)


@router.post("/{transcript_id}/import-srt", response_model=ImportSrtResponse, responses=_ERROR_RESPONSES)
def import_srt(
    transcript_id: str,
    req: ImportSrtRequest,
    drafts: DraftPublishStore = Depends(get_drafts),
) -> ImportSrtResponse:
    res = drafts.import_srt(transcript_id, req.srt_content, target=req.target)
    inc_srt_imported(req.target, res.segments_count, res.skipped_blocks)
    return ImportSrtResponse(
        segments_count=res.segments_count,
        skipped_blocks=res.skipped_blocks,
        transcript=res.transcript,
    )


@router.get("/{transcript_id}/srt", responses=_ERROR_RESPONSES)
def export_srt(
    transcript_id: str,
    which: Literal["published", "draft"] = Query("published"),
    title: Optional[str] = Query(None, description="Used to name the downloaded file"),
    drafts: DraftPublishStore = Depends(get_drafts),
) -> Response:
    body = drafts.export_srt(transcript_id, which=which)
    rec = drafts.store.require(transcript_id)
    filename = srt_filename(title or transcript_id, rec.language)
    return Response(
        content=body,
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
