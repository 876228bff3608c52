from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Literal, Optional, Sequence

from subdraft.core.errors import InvalidOperation, NoSegmentsExtracted, NothingToPublish
from subdraft.core.subtitle.models import Segment, first_empty_index, segments_from_records, segments_to_records
from subdraft.core.subtitle.srt_codec import EDITOR_POLICY, EncodePolicy, decode_report, encode, validate_srt
from subdraft.core_types import TranscriptRecord
from subdraft.utils.logger import get_logger

from .store import TranscriptStore, check_transcript_id

logger = get_logger("subdraft.drafts")

Slot = Literal["published", "draft"]

_FILENAME_UNSAFE_RE = re.compile(r"[^a-z0-9]", re.IGNORECASE)


@dataclass(frozen=True)
class RevisionState:
    """
    Editor-facing view of one transcript row.

    has_draft means a draft slot exists; has_draft_changes means it differs
    from what viewers currently see.
    """

    transcript: TranscriptRecord
    published: List[Segment]
    draft: Optional[List[Segment]]

    @property
    def has_draft(self) -> bool:
        return self.draft is not None

    @property
    def has_draft_changes(self) -> bool:
        return self.draft is not None and self.draft != self.published

    @property
    def editable(self) -> List[Segment]:
        return list(self.draft) if self.draft is not None else list(self.published)


@dataclass(frozen=True)
class ImportResult:
    segments_count: int
    skipped_blocks: int
    transcript: TranscriptRecord


def srt_filename(title: Optional[str], language: Optional[str] = None) -> str:
    stem = _FILENAME_UNSAFE_RE.sub("_", title).lower() if title else "transcript"
    return f"{stem}_{language}.srt" if language else f"{stem}.srt"


class DraftPublishStore:
    """
    Two-slot (published, draft) revision workflow on top of a TranscriptStore.

    - save_draft never touches published content
    - publish copies the whole draft over published and keeps the draft
    """

    def __init__(self, store: TranscriptStore, policy: EncodePolicy = EDITOR_POLICY) -> None:
        self.store = store
        self.policy = policy

    def state(self, transcript_id: str) -> RevisionState:
        rec = self.store.require(transcript_id)
        draft = segments_from_records(rec.draft_content) if rec.draft_content is not None else None
        return RevisionState(transcript=rec, published=segments_from_records(rec.content), draft=draft)

    def save_draft(
        self,
        transcript_id: str,
        segments: Sequence[Segment],
        *,
        video_id: Optional[str] = None,
        language: Optional[str] = None,
    ) -> TranscriptRecord:
        check_transcript_id(transcript_id)
        records = segments_to_records(segments)

        if self.store.get(transcript_id) is None:
            rec = self.store.create(
                TranscriptRecord(
                    id=transcript_id,
                    video_id=video_id,
                    language=language,
                    content=[],
                    draft_content=records,
                )
            )
            logger.info("DRAFT_CREATED id=%s segments=%d", transcript_id, len(records))
            return rec

        rec = self.store.set_draft_content(transcript_id, records)
        logger.info("DRAFT_SAVED id=%s segments=%d", transcript_id, len(records))
        return rec

    def publish(self, transcript_id: str) -> TranscriptRecord:
        rec = self.store.require(transcript_id)
        if rec.draft_content is None:
            raise NothingToPublish("No draft content found to publish", details={"transcript_id": transcript_id})

        draft = segments_from_records(rec.draft_content)
        empty_at = first_empty_index(draft)
        if empty_at is not None:
            raise InvalidOperation(
                f"Segment {empty_at + 1} has no text",
                details={"transcript_id": transcript_id, "segment_index": empty_at},
            )

        out = self.store.set_content(transcript_id, rec.draft_content)
        logger.info("PUBLISHED id=%s segments=%d", transcript_id, len(draft))
        return out

    def discard_draft(self, transcript_id: str) -> TranscriptRecord:
        self.store.require(transcript_id)
        out = self.store.set_draft_content(transcript_id, None)
        logger.info("DRAFT_DISCARDED id=%s", transcript_id)
        return out

    def import_srt(self, transcript_id: str, raw_text: str, *, target: Slot = "published") -> ImportResult:
        check_transcript_id(transcript_id)
        validate_srt(raw_text)

        report = decode_report(raw_text)
        if not report.segments:
            raise NoSegmentsExtracted(
                "No valid subtitle segments found in SRT content",
                details={"total_blocks": report.total_blocks, "skipped_blocks": report.skipped_blocks},
            )

        records = segments_to_records(report.segments)
        if self.store.get(transcript_id) is None:
            self.store.create(TranscriptRecord(id=transcript_id, content=[]))

        if target == "draft":
            rec = self.store.set_draft_content(transcript_id, records)
        else:
            rec = self.store.set_content(transcript_id, records)

        if report.skipped_blocks:
            logger.warning(
                "SRT_IMPORT_SKIPPED id=%s skipped=%d total=%d",
                transcript_id,
                report.skipped_blocks,
                report.total_blocks,
            )
        logger.info("SRT_IMPORTED id=%s target=%s segments=%d", transcript_id, target, len(records))
        return ImportResult(segments_count=len(records), skipped_blocks=report.skipped_blocks, transcript=rec)

    def export_srt(self, transcript_id: str, which: Slot = "published", policy: Optional[EncodePolicy] = None) -> str:
        st = self.state(transcript_id)
        if which == "draft":
            if st.draft is None:
                raise InvalidOperation("Transcript has no draft", details={"transcript_id": transcript_id})
            segments = st.draft
        else:
            segments = st.published
        return encode(segments, policy or self.policy)
