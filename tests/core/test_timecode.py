import pytest

from subdraft.core.errors import InvalidFormat
from subdraft.core.timecode import TimeCode, format_time_input


@pytest.mark.parametrize(
    "raw,seconds",
    [
        ("0:05", 5),
        ("1:23", 83),
        ("12:03", 723),
        ("1:02:03", 3723),
        (" 1:23 ", 83),
        ("1m:23s", 83),
    ],
)
def test_parse_human(raw: str, seconds: int) -> None:
    assert TimeCode.parse_human(raw).to_seconds() == seconds


@pytest.mark.parametrize("raw", ["", "12", "1:2:3:4", "1:", ":30", "1:75", "1:75:00"])
def test_parse_human_rejects(raw: str) -> None:
    with pytest.raises(InvalidFormat):
        TimeCode.parse_human(raw)


def test_format_human_switches_to_hours_at_sixty_minutes() -> None:
    assert TimeCode.from_seconds(5).format_human() == "0:05"
    assert TimeCode.from_seconds(59 * 60 + 59).format_human() == "59:59"
    assert TimeCode.from_seconds(3600).format_human() == "1:00:00"
    assert TimeCode.from_seconds(3723.9).format_human() == "1:02:03"


def test_format_time_input_pads_seconds_and_keeps_partial_input() -> None:
    assert format_time_input("1:7") == "1:07"
    assert format_time_input("1:2:3") == "1:02:03"
    assert format_time_input("1:") == "1:"
    assert format_time_input("12") == "12"
    assert format_time_input("abc") == "abc"


def test_parse_srt_standard() -> None:
    tc = TimeCode.parse_srt("00:01:23,450")
    assert tc is not None
    assert tc.ms == 83_450
    assert tc.seconds == 83.45
    assert tc.format_human() == "1:23"
    assert tc.format_srt() == "00:01:23,450"


def test_parse_srt_discards_glued_seconds_digits() -> None:
    tc = TimeCode.parse_srt("00:01:234,000")
    assert tc is not None
    assert tc.to_seconds() == 83


def test_parse_srt_overflow_minutes_variants() -> None:
    short = TimeCode.parse_srt("78:48,015")
    long_form = TimeCode.parse_srt("00:78:48,015")
    assert short is not None and long_form is not None
    assert short.format_human() == "78:48"
    assert long_form.format_human() == "78:48"
    assert short == long_form


def test_parse_srt_accepts_missing_or_short_millis() -> None:
    assert TimeCode.parse_srt("00:00:01").ms == 1000
    assert TimeCode.parse_srt("00:00:01.5").ms == 1500


@pytest.mark.parametrize("raw", ["", "garbage", "00:00:61,000", "1", "--> 00:00:01,000"])
def test_parse_srt_unrecognised_returns_none(raw: str) -> None:
    assert TimeCode.parse_srt(raw) is None


def test_format_srt_writes_short_form_only_for_overflow_layout() -> None:
    overflow = TimeCode.parse_human("78:48")
    assert overflow.format_srt() == "78:48,000"

    canonical = TimeCode.parse_human("1:18:48")
    assert canonical.format_srt() == "01:18:48,000"
    assert canonical == overflow

    assert TimeCode.parse_human("5:03").format_srt() == "00:05:03,000"


def test_add_seconds_never_negative_and_uses_canonical_layout() -> None:
    tc = TimeCode.parse_human("78:48").add_seconds(10)
    assert tc.format_human() == "1:18:58"
    assert TimeCode.parse_human("0:02").add_seconds(-10).ms == 0


def test_negative_timecode_rejected() -> None:
    with pytest.raises(ValueError):
        TimeCode(-1)
