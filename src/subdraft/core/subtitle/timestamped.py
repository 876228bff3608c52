from __future__ import annotations

import re
from typing import Iterable, List

from subdraft.core.errors import InvalidFormat
from subdraft.core.timecode import TimeCode

from .models import Segment

# "(0:02) first line (0:22) second line"
_RUN_RE = re.compile(
    r"\((?P<time>\d+:\d+(?::\d+)?)\)\s*(?P<text>[^(]*?)(?=\(\d+:\d+(?::\d+)?\)|$)",
    re.DOTALL,
)


def encode_timestamped(segments: Iterable[Segment]) -> str:
    return " ".join(f"({s.time.format_human()}) {s.text}" for s in segments)


_MARKER_RE = re.compile(r"\((?P<time>\d+:\d+(?::\d+)?)\)")


def decode_timestamped_verbatim(text: str) -> List[Segment]:
    """
    Decode timestamped text typed in the editor.

    Text between two valid `(time)` markers belongs to the first one, as
    written: parentheses, newlines and empty runs are kept. Only the single
    spaces that encode_timestamped puts around each run are removed. Markers
    whose time does not parse are part of the text.
    """
    raw = text or ""
    markers = []
    for m in _MARKER_RE.finditer(raw):
        try:
            markers.append((m, TimeCode.parse_human(m.group("time"))))
        except InvalidFormat:
            continue

    out: List[Segment] = []
    for n, (m, time) in enumerate(markers):
        last = n + 1 == len(markers)
        run = raw[m.end() : len(raw) if last else markers[n + 1][0].start()]
        if run.startswith(" "):
            run = run[1:]
        if not last and run.endswith(" "):
            run = run[:-1]
        out.append(Segment(time=time, text=run))
    return out


def decode_timestamped(text: str) -> List[Segment]:
    out: List[Segment] = []
    for m in _RUN_RE.finditer(text or ""):
        run_text = m.group("text").strip()
        if not run_text:
            continue
        try:
            time = TimeCode.parse_human(m.group("time"))
        except InvalidFormat:
            continue
        out.append(Segment(time=time, text=run_text))
    return out
