from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from subdraft.core.errors import EmptyInput, InvalidFormat
from subdraft.core.timecode import TimeCode
from subdraft.utils.logger import get_logger

from .models import Segment

logger = get_logger("subdraft.codec")

_BLOCK_SPLIT_RE = re.compile(r"\n[ \t]*\n")

# One timestamp token as seen in the wild (standard, glued seconds, short form).
_TS = r"\d{1,4}(?::\d{1,3})?:\d{2}\d*(?:[,.]\d{1,3})?"
_ARROW_LINE_RE = re.compile(rf"^\s*(?P<start>{_TS})\s*-->")
_COMMA_PAIR_RE = re.compile(rf"^\s*(?P<start>{_TS})\s*,\s*(?P<end>{_TS})\s*$")

_TAG_RE = re.compile(r"<[^>]*>")
_BRACE_RE = re.compile(r"\{[^}]*\}")
_BRACKET_RE = re.compile(r"\[[^\]]*\]")
_WS_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class EncodePolicy:
    """
    End-time inference for encode().

    - fallback_duration_s: cue length when the next start is not after this one
    - last_duration_s: cue length for the final segment
    """

    fallback_duration_s: float = 3.0
    last_duration_s: float = 4.0


EDITOR_POLICY = EncodePolicy(fallback_duration_s=3.0, last_duration_s=4.0)
STANDALONE_POLICY = EncodePolicy(fallback_duration_s=3.0, last_duration_s=10.0)


@dataclass(frozen=True)
class DecodeReport:
    segments: List[Segment] = field(default_factory=list)
    total_blocks: int = 0
    skipped_blocks: int = 0


def _normalize_newlines(raw: str) -> str:
    raw = raw.lstrip("\ufeff")
    return raw.replace("\r\n", "\n").replace("\r", "\n")


def clean_text(text: str) -> str:
    """Drop styling leftovers (<i>, {\\an8}, [music]) and collapse whitespace."""
    text = _TAG_RE.sub("", text)
    text = _BRACE_RE.sub("", text)
    text = _BRACKET_RE.sub("", text)
    return _WS_RE.sub(" ", text).strip()


def parse_timestamp_line(line: str) -> Optional[TimeCode]:
    """
    Extract the start time of a cue timestamp line.

    The end time is ignored: it is re-derived from the next cue on encode.
    """
    m = _ARROW_LINE_RE.match(line)
    if m is None:
        m = _COMMA_PAIR_RE.match(line)
    if m is None:
        return None
    return TimeCode.parse_srt(m.group("start"))


def decode_report(text: str) -> DecodeReport:
    """
    Best-effort SRT decode.

    Malformed blocks are skipped and counted instead of failing the whole
    input.
    """
    raw = _normalize_newlines(text or "").strip()
    if not raw:
        return DecodeReport()

    blocks = [blk for blk in _BLOCK_SPLIT_RE.split(raw) if blk.strip() != ""]
    segments: List[Segment] = []
    skipped = 0

    for n, blk in enumerate(blocks):
        lines = blk.strip().split("\n")
        if len(lines) < 3:
            skipped += 1
            logger.debug("SRT_BLOCK_SKIPPED block=%d reason=too_short", n)
            continue

        start = parse_timestamp_line(lines[1])
        if start is None:
            skipped += 1
            logger.debug("SRT_BLOCK_SKIPPED block=%d reason=timestamp line=%r", n, lines[1])
            continue

        cue_text = clean_text("\n".join(lines[2:]))
        if not cue_text:
            skipped += 1
            logger.debug("SRT_BLOCK_SKIPPED block=%d reason=empty_text", n)
            continue

        segments.append(Segment(time=start, text=cue_text))

    return DecodeReport(segments=segments, total_blocks=len(blocks), skipped_blocks=skipped)


def decode(text: str) -> List[Segment]:
    return decode_report(text).segments


def decode_verbatim(text: str) -> List[Segment]:
    """
    Decode SRT text typed in the editor without any cleanup.

    A cue starts at an index line directly followed by a timestamp line and
    runs until the next cue start, so blank lines, markup and empty text stay
    as written. Only the blank separator lines before the next cue are dropped.
    """
    lines = _normalize_newlines(text or "").split("\n")
    starts: List[tuple[int, TimeCode]] = []
    for i in range(len(lines) - 1):
        if not lines[i].strip().isdigit():
            continue
        start = parse_timestamp_line(lines[i + 1])
        if start is not None:
            starts.append((i, start))

    segments: List[Segment] = []
    for n, (i, start) in enumerate(starts):
        end = starts[n + 1][0] if n + 1 < len(starts) else len(lines)
        body = lines[i + 2 : end]
        while body and body[-1] == "":
            body.pop()
        segments.append(Segment(time=start, text="\n".join(body)))
    return segments


def _end_time(segments: Sequence[Segment], i: int, policy: EncodePolicy) -> TimeCode:
    current = segments[i].time
    if i + 1 < len(segments):
        nxt = segments[i + 1].time
        if nxt > current:
            return nxt
        return current.add_seconds(policy.fallback_duration_s)
    return current.add_seconds(policy.last_duration_s)


def encode(segments: Sequence[Segment], policy: EncodePolicy = EDITOR_POLICY) -> str:
    blocks: List[str] = []
    for i, seg in enumerate(segments):
        start = seg.time.format_srt()
        end = _end_time(segments, i, policy).format_srt()
        blocks.append(f"{i + 1}\n{start} --> {end}\n{seg.text}")
    return "\n\n".join(blocks)


def validate_srt(text: str) -> None:
    """
    Reject input that cannot possibly hold cues.

    Raises EmptyInput for blank input, InvalidFormat when no line carries a
    recognisable timestamp range.
    """
    if not text or not text.strip():
        raise EmptyInput("SRT content is empty")

    for line in _normalize_newlines(text).split("\n"):
        if parse_timestamp_line(line) is not None:
            return
    raise InvalidFormat("Invalid SRT format - no valid timestamps found")


def read_srt(path: str | Path, encoding: str = "utf-8") -> DecodeReport:
    p = Path(path)
    raw = p.read_text(encoding=encoding, errors="replace")
    return decode_report(raw)


def write_srt(
    segments: Iterable[Segment],
    path: str | Path,
    policy: EncodePolicy = EDITOR_POLICY,
    encoding: str = "utf-8",
) -> Path:
    """
    Write segments into a .srt file.

    - Re-numbers cues from 1.
    - Ensures file ends with newline.
    """
    p = Path(path)
    content = encode(list(segments), policy).rstrip("\n") + "\n"
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding=encoding)
    return p
