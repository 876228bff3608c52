from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from subdraft.core.errors import InvalidFormat
from subdraft.core.timecode import TimeCode

DEFAULT_PLACEHOLDER = "Click here to add your first transcript segment..."


@dataclass(frozen=True)
class Segment:
    """
    A single timestamped line of transcript text.

    Notes:
    - time is the start of the cue; the end is always derived from the next
      segment when encoding, never stored.
    - segments have no identity beyond their position in a sequence.
    """

    time: TimeCode
    text: str

    @classmethod
    def at(cls, time: str, text: str) -> "Segment":
        return cls(time=TimeCode.parse_human(time), text=text)

    def with_text(self, new_text: str) -> "Segment":
        return Segment(time=self.time, text=new_text)

    def with_time(self, new_time: TimeCode) -> "Segment":
        return Segment(time=new_time, text=self.text)

    def to_record(self) -> Dict[str, str]:
        return {"time": self.time.format_human(), "text": self.text}


def placeholder_segment(text: str = DEFAULT_PLACEHOLDER) -> Segment:
    return Segment(time=TimeCode.zero(), text=text)


def _record_get(rec: Any, *keys: str) -> Any:
    for k in keys:
        if isinstance(rec, dict):
            v = rec.get(k)
        else:
            v = getattr(rec, k, None)
        if v:
            return v
    return None


def segment_from_record(rec: Any) -> Segment:
    # Older rows use timestamp/content instead of time/text.
    raw_time = _record_get(rec, "time", "timestamp") or "0:00"
    text = _record_get(rec, "text", "content") or ""
    try:
        time = TimeCode.parse_human(str(raw_time))
    except InvalidFormat:
        time = TimeCode.parse_srt(str(raw_time)) or TimeCode.zero()
    return Segment(time=time, text=str(text))


def segments_from_records(content: Any) -> List[Segment]:
    """
    Coerce stored content into segments.

    Accepts a list of {time, text} records (pydantic models or dicts, legacy
    timestamp/content keys included), a raw SRT string, or None.
    """
    if content is None:
        return []
    if isinstance(content, str):
        from subdraft.core.subtitle.srt_codec import decode

        return decode(content)
    return [segment_from_record(rec) for rec in content]


def segments_to_records(segments: Iterable[Segment]) -> List[Dict[str, str]]:
    return [s.to_record() for s in segments]


def first_empty_index(segments: Iterable[Segment]) -> Optional[int]:
    for i, s in enumerate(segments):
        if not s.text.strip():
            return i
    return None
