from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from subdraft.core.errors import InvalidFormat

_NON_TIME_CHARS_RE = re.compile(r"[^\d:]")

# HH:MM:SS[,mmm]. Extra digits glued to the seconds field (HH:MM:SSS) come from
# broken exporters; only the first two are kept.
_SRT_LONG_RE = re.compile(
    r"^(?P<h>\d{1,3}):(?P<m>\d{1,3}):(?P<s>\d{2})\d*(?:[,.](?P<ms>\d{1,3})\d*)?$"
)
# MM:SS[,mmm] where MM may exceed 59 (long videos exported without an hour field).
_SRT_SHORT_RE = re.compile(r"^(?P<m>\d{1,4}):(?P<s>\d{2})\d*(?:[,.](?P<ms>\d{1,3})\d*)?$")


def _ms_field(raw: Optional[str]) -> int:
    if not raw:
        return 0
    return int(raw.ljust(3, "0"))


@dataclass(frozen=True, order=True)
class TimeCode:
    """
    A non-negative point on the media timeline, in milliseconds.

    overflow_minutes records that the value was written as `78:48` rather than
    `1:18:48`. It only affects formatting, never equality or ordering, so that
    content stored in that layout is written back the same way.
    """

    ms: int
    overflow_minutes: bool = field(default=False, compare=False)

    def __post_init__(self) -> None:
        if self.ms < 0:
            raise ValueError("TimeCode must be non-negative")

    # -------------------------
    # Construction
    # -------------------------

    @classmethod
    def from_seconds(cls, seconds: float) -> "TimeCode":
        return cls(max(0, int(round(seconds * 1000))))

    @classmethod
    def zero(cls) -> "TimeCode":
        return cls(0)

    @classmethod
    def parse_human(cls, value: str) -> "TimeCode":
        """
        Parse `M:SS`, `MM:SS` or `H:MM:SS`.

        Anything that is not a digit or a colon is stripped first. Raises
        InvalidFormat when the cleaned value is not 2 or 3 complete fields.
        """
        clean = _NON_TIME_CHARS_RE.sub("", value or "")
        parts = clean.split(":")
        if len(parts) not in (2, 3) or any(p == "" for p in parts):
            raise InvalidFormat(f"Unrecognised time value: {value!r}", details={"value": value})

        nums = [int(p) for p in parts]
        if len(nums) == 2:
            hours, minutes, seconds = 0, nums[0], nums[1]
        else:
            hours, minutes, seconds = nums
            if minutes > 59:
                raise InvalidFormat(f"Minutes out of range: {value!r}", details={"value": value})
        if seconds > 59:
            raise InvalidFormat(f"Seconds out of range: {value!r}", details={"value": value})

        total_ms = ((hours * 60 + minutes) * 60 + seconds) * 1000
        return cls(total_ms, overflow_minutes=(len(nums) == 2 and minutes > 59))

    @classmethod
    def parse_srt(cls, value: str) -> Optional["TimeCode"]:
        """
        Parse one SRT timestamp. Returns None when the value is not recognised.

        Accepts `HH:MM:SS,mmm`, the malformed `HH:MM:SSS...` variant and the
        short `MM:SS,mmm` form.
        """
        raw = (value or "").strip()

        m = _SRT_LONG_RE.match(raw)
        if m:
            hours, minutes, seconds = int(m.group("h")), int(m.group("m")), int(m.group("s"))
            overflow = hours == 0 and minutes > 59
        else:
            m = _SRT_SHORT_RE.match(raw)
            if not m:
                return None
            hours, minutes, seconds = 0, int(m.group("m")), int(m.group("s"))
            overflow = minutes > 59

        if seconds > 59:
            return None

        total_ms = ((hours * 60 + minutes) * 60 + seconds) * 1000 + _ms_field(m.group("ms"))
        return cls(total_ms, overflow_minutes=overflow)

    # -------------------------
    # Arithmetic
    # -------------------------

    def add_seconds(self, seconds: float) -> "TimeCode":
        return TimeCode(max(0, self.ms + int(round(seconds * 1000))))

    def to_seconds(self) -> float:
        return self.ms / 1000.0

    @property
    def seconds(self) -> float:
        return self.to_seconds()

    # -------------------------
    # Formatting
    # -------------------------

    def _fields(self) -> tuple[int, int, int]:
        total_s, milli = divmod(self.ms, 1000)
        minutes, sec = divmod(total_s, 60)
        return minutes, sec, milli

    def format_human(self) -> str:
        minutes, sec, _ = self._fields()
        if minutes < 60 or self.overflow_minutes:
            return f"{minutes}:{sec:02d}"
        hours, minutes = divmod(minutes, 60)
        return f"{hours}:{minutes:02d}:{sec:02d}"

    def format_srt(self) -> str:
        minutes, sec, milli = self._fields()
        if minutes > 59 and self.overflow_minutes:
            return f"{minutes:02d}:{sec:02d},{milli:03d}"
        hours, minutes = divmod(minutes, 60)
        return f"{hours:02d}:{minutes:02d}:{sec:02d},{milli:03d}"

    def __str__(self) -> str:
        return self.format_human()


def format_time_input(raw: str) -> str:
    """
    Normalise a value typed into a time field.

    Unrecognised input is returned untouched so a half-typed timestamp is never
    replaced with 0:00.
    """
    try:
        return TimeCode.parse_human(raw).format_human()
    except InvalidFormat:
        return raw
