"""Tests for the timeline model."""

import logging

import pytest

from music_video_maker.models import Clip, Timeline


def make_clip(duration=5.0, **kwargs):
    return Clip(media_path=f"clip_{duration}.mp4", duration=duration, **kwargs)


def assert_contiguous(timeline):
    expected = 0.0
    for clip in timeline:
        assert clip.start_time == pytest.approx(expected)
        expected += clip.effective_duration
    assert timeline.total_duration == pytest.approx(expected)
    assert timeline.validate_continuity() == []


class TestTimeline:
    """Test timeline editing and start time derivation."""

    @pytest.fixture
    def timeline(self):
        """Timeline with three 5 second clips."""
        return Timeline([make_clip(), make_clip(), make_clip()])

    def test_empty_timeline(self):
        timeline = Timeline()

        assert timeline.is_empty
        assert not timeline
        assert len(timeline) == 0
        assert timeline.total_duration == 0.0
        assert timeline.clip_at_time(0.0) is None

    def test_start_times_are_derived(self, timeline):
        assert timeline.start_times == [0.0, 5.0, 10.0]
        assert timeline.total_duration == pytest.approx(15.0)

    def test_provided_start_time_is_overwritten(self):
        timeline = Timeline()
        timeline.append(make_clip(start_time=42.0))
        assert timeline[0].start_time == 0.0

    def test_append(self, timeline):
        clip = make_clip(4.0, trim_start=1.0)
        assert timeline.append(clip)

        assert len(timeline) == 4
        assert timeline[3].id == clip.id
        assert timeline[3].start_time == pytest.approx(15.0)
        assert timeline.total_duration == pytest.approx(18.0)

    def test_append_duplicate_id_rejected(self, timeline):
        with pytest.raises(ValueError):
            timeline.append(timeline[0])
        assert len(timeline) == 3

    def test_append_requires_clip(self, timeline):
        with pytest.raises(TypeError):
            timeline.append("clip.mp4")

    def test_duplicate_ids_in_constructor_rejected(self):
        clip = make_clip()
        with pytest.raises(ValueError):
            Timeline([clip, clip])

    def test_remove_middle_clip(self, timeline):
        first, _, last = timeline.clips
        assert timeline.remove_at(1)

        assert [c.id for c in timeline] == [first.id, last.id]
        assert timeline.start_times == [0.0, 5.0]
        assert timeline.total_duration == pytest.approx(10.0)

    def test_move_clip(self):
        clips = [make_clip(1.0), make_clip(2.0), make_clip(3.0)]
        timeline = Timeline(clips)

        assert timeline.move_clip(0, 2)

        assert [c.id for c in timeline] == [clips[1].id, clips[2].id, clips[0].id]
        assert timeline.start_times == [0.0, 2.0, 5.0]

    def test_move_clip_backwards(self):
        clips = [make_clip(1.0), make_clip(2.0), make_clip(3.0)]
        timeline = Timeline(clips)

        assert timeline.move_clip(2, 0)

        assert [c.id for c in timeline] == [clips[2].id, clips[0].id, clips[1].id]
        assert timeline.start_times == [0.0, 3.0, 4.0]

    def test_update_clip(self, timeline):
        replacement = timeline[1].model_copy(update={"trim_end": 3.0})
        assert timeline.update_at(1, replacement)

        assert timeline[1].effective_duration == pytest.approx(2.0)
        assert timeline.start_times == [0.0, 5.0, 7.0]
        assert timeline.total_duration == pytest.approx(12.0)

    def test_update_with_id_used_elsewhere_rejected(self, timeline):
        with pytest.raises(ValueError):
            timeline.update_at(0, timeline[2])

    @pytest.mark.parametrize("operation", [
        lambda t: t.remove_at(3),
        lambda t: t.remove_at(-1),
        lambda t: t.move_clip(0, 3),
        lambda t: t.move_clip(5, 0),
        lambda t: t.update_at(7, make_clip()),
    ])
    def test_out_of_bounds_is_noop(self, timeline, operation, caplog):
        before = timeline.clips
        version = timeline.version

        with caplog.at_level(logging.WARNING, logger="music_video_maker.models.timeline"):
            assert operation(timeline) is False

        assert timeline.clips == before
        assert timeline.version == version
        assert "out of bounds" in caplog.text

    def test_mutations_bump_version(self, timeline):
        version = timeline.version
        timeline.append(make_clip())
        timeline.move_clip(0, 1)
        timeline.remove_at(0)
        assert timeline.version == version + 3

    def test_snapshot_unaffected_by_later_edits(self, timeline):
        snapshot = timeline.clips
        timeline.remove_at(0)
        timeline.append(make_clip(9.0))

        assert len(snapshot) == 3
        assert [c.start_time for c in snapshot] == [0.0, 5.0, 10.0]

    def test_invariant_holds_after_edit_sequence(self):
        timeline = Timeline()
        for duration in (3.0, 1.5, 4.25, 2.0, 6.0):
            timeline.append(make_clip(duration, trim_start=0.25))
        assert_contiguous(timeline)

        timeline.move_clip(4, 1)
        assert_contiguous(timeline)
        timeline.remove_at(2)
        assert_contiguous(timeline)
        timeline.update_at(0, timeline[0].model_copy(update={"trim_end": 1.0}))
        assert_contiguous(timeline)
        timeline.remove_at(10)
        assert_contiguous(timeline)
        timeline.move_clip(0, 3)
        assert_contiguous(timeline)

        assert len(timeline) == 4

    def test_zero_length_clip_keeps_following_start(self):
        timeline = Timeline([make_clip(2.0), make_clip(2.0, trim_start=2.0), make_clip(2.0)])
        assert timeline.start_times == [0.0, 2.0, 2.0]
        assert timeline.total_duration == pytest.approx(4.0)

    def test_clip_at_time(self, timeline):
        assert timeline.clip_at_time(0.0).id == timeline[0].id
        assert timeline.clip_at_time(7.5).id == timeline[1].id
        assert timeline.clip_at_time(15.0) is None

    def test_index_of(self, timeline):
        assert timeline.index_of(timeline[2].id) == 2
        assert timeline.index_of("missing") is None
