# src/subdraft/api/services/transcripts_service.py
from __future__ import annotations

from functools import lru_cache
from typing import List, Optional, Sequence

from subdraft.api.config import load_config
from subdraft.api.schemas.transcripts import TranscriptResponse
from subdraft.core.drafts.service import DraftPublishStore
from subdraft.core.drafts.store import open_store
from subdraft.core.editing.autosave import SessionController
from subdraft.core.editing.session import SegmentEditingSession
from subdraft.core.subtitle.models import Segment
from subdraft.core_types import SegmentRecord
from subdraft.utils.logger import get_logger

logger = get_logger("subdraft.api")


@lru_cache(maxsize=1)
def get_drafts() -> DraftPublishStore:
    cfg = load_config()
    store = open_store(
        cfg.store,
        data_root=cfg.data_root,
        redis_url=cfg.redis_url,
        redis_prefix=cfg.redis_prefix,
    )
    logger.info(f"STORE_OPENED kind={cfg.store}")
    return DraftPublishStore(store, policy=cfg.encode_policy)


def segments_from_request(content: Sequence[SegmentRecord]) -> List[Segment]:
    # Strict: a bad timestamp is a 400, not a silent 0:00.
    return [Segment.at(rec.time, rec.text) for rec in content]


def transcript_response(drafts: DraftPublishStore, transcript_id: str) -> TranscriptResponse:
    st = drafts.state(transcript_id)
    return TranscriptResponse(
        transcript=st.transcript,
        has_draft=st.has_draft,
        has_draft_changes=st.has_draft_changes,
    )


def open_editing_session(
    drafts: DraftPublishStore,
    transcript_id: str,
    *,
    video_id: Optional[str] = None,
    language: Optional[str] = None,
    autosave: bool = True,
) -> SessionController:
    """
    Open an editing session on the draft (or published content) of a transcript
    and start autosave at SUBDRAFT_AUTOSAVE_INTERVAL_SEC. A missing row opens an
    empty session; the first save creates it.
    """
    cfg = load_config()
    rec = drafts.store.get(transcript_id)
    if rec is None:
        session = SegmentEditingSession([], policy=drafts.policy)
    else:
        session = SegmentEditingSession.from_state(drafts.state(transcript_id), policy=drafts.policy)
        video_id = video_id or rec.video_id
        language = language or rec.language

    controller = SessionController(session, drafts, transcript_id, video_id=video_id, language=language)
    if autosave:
        controller.start_autosave(cfg.autosave_interval_sec)
    logger.info(f"SESSION_OPENED id={transcript_id} autosave_sec={cfg.autosave_interval_sec if autosave else 0}")
    return controller
