from __future__ import annotations

import pytest

from subdraft.core.drafts.service import RevisionState
from subdraft.core.editing.session import (
    EMPTY_TRANSCRIPT_PLACEHOLDER,
    NEW_SEGMENT_PLACEHOLDER,
    SegmentEditingSession,
)
from subdraft.core.errors import InvalidOperation
from subdraft.core.subtitle.models import DEFAULT_PLACEHOLDER
from subdraft.core_types import TranscriptRecord
from tests._helpers import RecordingPlayer, seg


def _session(*pairs: tuple[str, str]) -> SegmentEditingSession:
    return SegmentEditingSession([seg(t, x) for t, x in pairs])


def test_empty_transcript_opens_with_placeholder() -> None:
    s = SegmentEditingSession([])
    assert len(s.segments) == 1
    assert s.segments[0].text == DEFAULT_PLACEHOLDER
    assert s.segments[0].time.to_seconds() == 0
    assert not s.is_dirty


def test_from_state_prefers_draft() -> None:
    rec = TranscriptRecord(id="t1")
    st = RevisionState(transcript=rec, published=[seg("0:01", "pub")], draft=[seg("0:02", "draft")])
    assert [x.text for x in SegmentEditingSession.from_state(st).segments] == ["draft"]

    st = RevisionState(transcript=rec, published=[seg("0:01", "pub")], draft=None)
    assert [x.text for x in SegmentEditingSession.from_state(st).segments] == ["pub"]


def test_insert_at_end_uses_ten_second_gap() -> None:
    s = _session(("0:05", "a"))
    segs = s.append()
    assert [(x.time.format_human(), x.text) for x in segs] == [("0:05", "a"), ("0:15", "")]
    assert s.time_inputs == ["0:05", "0:15"]
    assert s.is_dirty


def test_insert_in_the_middle_uses_zero_and_placeholder() -> None:
    s = _session(("0:01", "a"), ("0:05", "b"))
    segs = s.insert_after(0)
    assert segs[1].time.to_seconds() == 0
    assert segs[1].text == NEW_SEGMENT_PLACEHOLDER
    assert [x.text for x in segs] == ["a", NEW_SEGMENT_PLACEHOLDER, "b"]


def test_insert_given_segment() -> None:
    s = _session(("0:01", "a"))
    segs = s.insert_after(0, seg("0:03", "given"))
    assert segs[1] == seg("0:03", "given")


def test_delete_keeps_at_least_one_segment() -> None:
    s = _session(("0:01", "only"))
    with pytest.raises(InvalidOperation):
        s.delete(0)
    assert [x.text for x in s.segments] == ["only"]
    assert not s.is_dirty


def test_delete_clamps_active_index() -> None:
    s = _session(("0:01", "a"), ("0:02", "b"), ("0:03", "c"))
    s.active_index = 2
    s.delete(2)
    assert s.active_index == 1
    assert [x.text for x in s.segments] == ["a", "b"]


def test_index_out_of_range() -> None:
    s = _session(("0:01", "a"))
    with pytest.raises(InvalidOperation):
        s.edit_text(3, "x")


def test_edit_text_updates_views() -> None:
    s = _session(("0:01", "a"))
    s.edit_text(0, "changed")
    assert s.srt_text == "1\n00:00:01,000 --> 00:00:05,000\nchanged"
    assert s.timestamped_text == "(0:01) changed"


def test_edit_time_formats_and_keeps_partial_input() -> None:
    s = _session(("0:01", "a"))

    s.edit_time(0, "1:7")
    assert s.time_inputs == ["1:07"]
    assert s.segments[0].time.to_seconds() == 67

    s.edit_time(0, "1:")
    assert s.time_inputs == ["1:"]
    assert s.segments[0].time.to_seconds() == 67


def test_srt_view_edits_flow_back_into_segments() -> None:
    s = _session(("0:01", "a"))
    s.set_view("srt")
    segs = s.edit_view_text("1\n00:00:02,000 --> 00:00:03,000\nfrom srt\n\n2\n00:00:09,000 --> 00:00:10,000\nmore")
    assert [(x.time.format_human(), x.text) for x in segs] == [("0:02", "from srt"), ("0:09", "more")]

    s.set_view("timestamped")
    assert s.timestamped_text == "(0:02) from srt (0:09) more"


def test_timestamped_view_edits_flow_back_into_segments() -> None:
    s = _session(("0:01", "a"))
    s.set_view("timestamped")
    s.edit_view_text("(0:04) one (0:08) two")
    s.set_view("segments")
    assert [(x.time.format_human(), x.text) for x in s.segments] == [("0:04", "one"), ("0:08", "two")]
    assert s.srt_text.startswith("1\n00:00:04,000 --> 00:00:08,000\none")


def test_partial_view_text_keeps_last_good_segments() -> None:
    s = _session(("0:01", "a"))
    s.set_view("srt")
    s.edit_view_text("1\n00:00:0")
    assert [x.text for x in s.segments] == ["a"]
    assert s.srt_text == "1\n00:00:0"


def test_leaving_text_view_with_unparseable_text_fails() -> None:
    s = _session(("0:01", "a"))
    s.set_view("srt")
    s.edit_view_text("garbage without cues")
    with pytest.raises(InvalidOperation):
        s.set_view("segments")
    assert s.view_mode == "srt"


def test_view_text_edit_requires_text_view() -> None:
    s = _session(("0:01", "a"))
    with pytest.raises(InvalidOperation):
        s.edit_view_text("(0:01) x")
    with pytest.raises(InvalidOperation):
        s.set_view("html")  # type: ignore[arg-type]


def test_from_srt_text_empty_gives_placeholder() -> None:
    s = _session(("0:01", "a"), ("0:02", "b"))
    segs = s.from_srt_text("")
    assert [x.text for x in segs] == [EMPTY_TRANSCRIPT_PLACEHOLDER]
    assert s.to_srt_text().endswith(EMPTY_TRANSCRIPT_PLACEHOLDER)


def test_seek_moves_player_and_active_index() -> None:
    s = _session(("0:01", "a"), ("1:05", "b"))
    player = RecordingPlayer()
    assert s.seek(1, player) == 65
    assert player.seeks == [65]
    assert s.active_index == 1


def test_mark_saved_keeps_dirty_for_later_edits() -> None:
    s = _session(("0:01", "a"))
    s.edit_text(0, "b")
    snapshot = s.current_segments()
    s.edit_text(0, "c")

    s.mark_saved(snapshot)
    assert s.is_dirty
    assert s.save_state.last_saved_at is not None

    s.mark_saved(s.current_segments())
    assert not s.is_dirty


def test_has_draft_changes() -> None:
    published = [seg("0:01", "a")]
    s = SegmentEditingSession(published)
    assert not s.has_draft_changes(published)
    s.edit_text(0, "b")
    assert s.has_draft_changes(published)


def test_closed_session_rejects_edits() -> None:
    s = _session(("0:01", "a"))
    s.close()
    assert s.closed
    with pytest.raises(InvalidOperation):
        s.edit_text(0, "x")
    with pytest.raises(InvalidOperation):
        s.append()


def _mixed_session() -> SegmentEditingSession:
    s = _session(
        ("0:01", "hello"),
        ("0:20", "see [1] <b>x</b> {\\an8}"),
        ("0:30", "a\n\nb"),
        ("0:40", "hello (world) again"),
    )
    s.append()
    return s


@pytest.mark.parametrize("mode", ["srt", "timestamped"])
def test_switching_views_without_edits_keeps_segments(mode: str) -> None:
    s = _mixed_session()
    before = s.segments
    assert before[-1].text == ""

    s.set_view(mode)  # type: ignore[arg-type]
    s.set_view("segments")

    assert s.segments == before


@pytest.mark.parametrize("mode", ["srt", "timestamped"])
def test_view_text_resubmitted_as_is_keeps_segments(mode: str) -> None:
    s = _mixed_session()
    before = s.segments

    s.set_view(mode)  # type: ignore[arg-type]
    s.edit_view_text(s.srt_text if mode == "srt" else s.timestamped_text)
    assert s.segments == before
    s.set_view("segments")

    assert s.segments == before


def test_srt_view_edit_keeps_markup_and_empty_cues() -> None:
    s = _session(("0:01", "a"))
    s.set_view("srt")
    s.edit_view_text("1\n00:00:02,000 --> 00:00:03,000\n<i>kept</i> [x]\n\n2\n00:00:05,000 --> 00:00:06,000\n")
    assert [(x.time.format_human(), x.text) for x in s.segments] == [("0:02", "<i>kept</i> [x]"), ("0:05", "")]


def test_timestamped_view_edit_keeps_parentheses() -> None:
    s = _session(("0:01", "a"))
    s.set_view("timestamped")
    s.edit_view_text("(0:02) one (aside) (0:99) two (0:08) three")
    assert [(x.time.format_human(), x.text) for x in s.segments] == [
        ("0:02", "one (aside) (0:99) two"),
        ("0:08", "three"),
    ]
