from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, List, Literal, Optional, Protocol, Sequence

from subdraft.core.errors import InvalidFormat, InvalidOperation
from subdraft.core.subtitle.models import DEFAULT_PLACEHOLDER, Segment, placeholder_segment
from subdraft.core.subtitle.srt_codec import EDITOR_POLICY, EncodePolicy, decode_verbatim, encode
from subdraft.core.subtitle.timestamped import decode_timestamped_verbatim, encode_timestamped
from subdraft.core.timecode import TimeCode, format_time_input
from subdraft.core_types import utc_now

if TYPE_CHECKING:
    from subdraft.core.drafts.service import RevisionState
    from subdraft.core.editing.autosave import AutosaveTask

ViewMode = Literal["segments", "srt", "timestamped"]
VIEW_MODES = ("segments", "srt", "timestamped")

NEW_SEGMENT_PLACEHOLDER = "New transcript segment..."
EMPTY_TRANSCRIPT_PLACEHOLDER = "Empty transcript..."


class Player(Protocol):
    def seek_to(self, seconds: float) -> Any: ...


@dataclass
class SessionSaveState:
    last_saved_snapshot: List[Segment] = field(default_factory=list)
    last_edited_at: Optional[datetime] = None
    last_saved_at: Optional[datetime] = None
    pending_save: bool = False
    dirty: bool = False


class SegmentEditingSession:
    """
    Mutable editing model over an ordered list of segments.

    The structured list and the SRT / timestamped text views are kept in sync:
    every structural edit re-derives the text views, and text-view edits are
    decoded back into segments. The session always holds at least one segment.
    """

    def __init__(
        self,
        segments: Optional[Sequence[Segment]] = None,
        *,
        policy: EncodePolicy = EDITOR_POLICY,
        placeholder: str = DEFAULT_PLACEHOLDER,
        insert_gap_s: float = 10.0,
    ) -> None:
        segs = list(segments or [])
        if not segs:
            segs = [placeholder_segment(placeholder)]

        self.policy = policy
        self.insert_gap_s = insert_gap_s
        self.active_index = 0
        self.view_mode: ViewMode = "segments"
        self.save_state = SessionSaveState(last_saved_snapshot=list(segs))

        self._segments: List[Segment] = segs
        self._time_inputs: List[str] = [s.time.format_human() for s in segs]
        self._srt_text = ""
        self._timestamped_text = ""
        self._view_edited = False
        self._closed = False
        self._autosave: Optional["AutosaveTask"] = None
        self._rederive_views()

    @classmethod
    def from_state(cls, state: "RevisionState", **kwargs: Any) -> "SegmentEditingSession":
        """Open the draft when one exists, otherwise the published content."""
        return cls(state.editable, **kwargs)

    # -------------------------
    # Read
    # -------------------------

    @property
    def segments(self) -> List[Segment]:
        return list(self._segments)

    @property
    def time_inputs(self) -> List[str]:
        return list(self._time_inputs)

    @property
    def srt_text(self) -> str:
        return self._srt_text

    @property
    def timestamped_text(self) -> str:
        return self._timestamped_text

    @property
    def is_dirty(self) -> bool:
        return self.save_state.dirty

    @property
    def closed(self) -> bool:
        return self._closed

    def current_segments(self) -> List[Segment]:
        return list(self._segments)

    def has_draft_changes(self, published: Sequence[Segment]) -> bool:
        return self._segments != list(published)

    # -------------------------
    # Structural edits
    # -------------------------

    def insert_after(self, index: int, segment: Optional[Segment] = None) -> List[Segment]:
        self._check_open()
        self._check_index(index)

        pos = index + 1
        if segment is None:
            if pos == len(self._segments):
                segment = Segment(time=self._segments[index].time.add_seconds(self.insert_gap_s), text="")
            else:
                segment = Segment(time=TimeCode.zero(), text=NEW_SEGMENT_PLACEHOLDER)

        self._segments.insert(pos, segment)
        self._time_inputs.insert(pos, segment.time.format_human())
        self._touch()
        return self.segments

    def append(self, segment: Optional[Segment] = None) -> List[Segment]:
        return self.insert_after(len(self._segments) - 1, segment)

    def delete(self, index: int) -> List[Segment]:
        self._check_open()
        self._check_index(index)
        if len(self._segments) <= 1:
            raise InvalidOperation("Cannot delete the last segment", details={"index": index})

        del self._segments[index]
        del self._time_inputs[index]
        self.active_index = max(0, min(self.active_index, len(self._segments) - 1))
        self._touch()
        return self.segments

    def edit_text(self, index: int, text: str) -> List[Segment]:
        self._check_open()
        self._check_index(index)
        self._segments[index] = self._segments[index].with_text(text)
        self._touch()
        return self.segments

    def edit_time(self, index: int, raw: str) -> List[Segment]:
        """
        Apply a value typed into a time field.

        A value that does not parse yet stays in time_inputs and leaves the
        segment time as it was.
        """
        self._check_open()
        self._check_index(index)

        shown = format_time_input(raw)
        self._time_inputs[index] = shown
        try:
            new_time = TimeCode.parse_human(shown)
        except InvalidFormat:
            return self.segments

        self._segments[index] = self._segments[index].with_time(new_time)
        self._touch()
        return self.segments

    # -------------------------
    # Text views
    # -------------------------

    def to_srt_text(self) -> str:
        return encode(self._segments, self.policy)

    def from_srt_text(self, text: str) -> List[Segment]:
        self._check_open()
        segs = decode_verbatim(text)
        self._replace(segs or [placeholder_segment(EMPTY_TRANSCRIPT_PLACEHOLDER)])
        return self.segments

    def set_view(self, mode: ViewMode) -> None:
        if mode not in VIEW_MODES:
            raise InvalidOperation(f"Unknown view mode: {mode!r}", details={"mode": mode})
        if mode == self.view_mode:
            return

        # Leaving an edited text view: its text is the latest edit.
        if self.view_mode != "segments" and self._view_edited:
            text = self._view_text()
            segs = self._decode_view(text)
            if not segs and text.strip():
                raise InvalidOperation(
                    f"{self.view_mode} view holds no valid segments",
                    details={"mode": self.view_mode},
                )
            if segs and segs != self._segments:
                self._replace(segs)

        self.view_mode = mode
        self._view_edited = False
        self._rederive_views()

    def edit_view_text(self, text: str) -> List[Segment]:
        """Update the active text view; segments follow when the text decodes."""
        self._check_open()
        if self.view_mode == "segments":
            raise InvalidOperation("No text view is active")

        if self.view_mode == "srt":
            self._srt_text = text
        else:
            self._timestamped_text = text

        self._view_edited = True
        segs = self._decode_view(text)
        if segs:
            self._segments = segs
            self._time_inputs = [s.time.format_human() for s in segs]
            self.active_index = min(self.active_index, len(segs) - 1)
        self._mark_edited()
        return self.segments

    # -------------------------
    # Playback
    # -------------------------

    def seek(self, index: int, player: Player) -> float:
        self._check_index(index)
        self.active_index = index
        seconds = self._segments[index].time.to_seconds()
        player.seek_to(seconds)
        return seconds

    # -------------------------
    # Save bookkeeping
    # -------------------------

    def mark_saved(self, snapshot: Sequence[Segment]) -> None:
        st = self.save_state
        st.last_saved_snapshot = list(snapshot)
        st.last_saved_at = utc_now()
        # Edits made while the save was in flight keep the session dirty.
        st.dirty = self._segments != st.last_saved_snapshot

    def bind_autosave(self, task: "AutosaveTask") -> None:
        self._check_open()
        if self._autosave is not None:
            self._autosave.cancel()
        self._autosave = task

    def close(self) -> None:
        if self._autosave is not None:
            self._autosave.cancel()
            self._autosave = None
        self._closed = True

    # -------------------------
    # Internals
    # -------------------------

    def _check_open(self) -> None:
        if self._closed:
            raise InvalidOperation("Editing session is closed")

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._segments):
            raise InvalidOperation(f"Segment index out of range: {index}", details={"index": index})

    def _view_text(self) -> str:
        return self._srt_text if self.view_mode == "srt" else self._timestamped_text

    def _decode_view(self, text: str) -> List[Segment]:
        if self.view_mode == "srt":
            return decode_verbatim(text)
        return decode_timestamped_verbatim(text)

    def _replace(self, segs: List[Segment]) -> None:
        self._segments = list(segs)
        self._time_inputs = [s.time.format_human() for s in segs]
        self.active_index = min(self.active_index, len(segs) - 1)
        self._touch()

    def _rederive_views(self) -> None:
        self._srt_text = encode(self._segments, self.policy)
        self._timestamped_text = encode_timestamped(self._segments)

    def _mark_edited(self) -> None:
        self.save_state.dirty = True
        self.save_state.last_edited_at = utc_now()

    def _touch(self) -> None:
        self._rederive_views()
        self._mark_edited()
