"""Tests for the MoviePy render backend."""

import threading
from unittest.mock import MagicMock, Mock, patch

import pytest

from music_video_maker.errors import CompositionCancelledError
from music_video_maker.models import ColorGrade, ColorPreset, PlannedClip, RenderPlan
from music_video_maker.tools.video_renderer import MoviePyBackend, RenderProgressLogger


MODULE = "music_video_maker.tools.video_renderer"


class TestRenderProgressLogger:
    """Test proglog progress forwarding and cancellation."""

    @pytest.fixture
    def on_progress(self):
        return Mock()

    @pytest.fixture
    def cancel_event(self):
        return threading.Event()

    @pytest.fixture
    def progress_logger(self, on_progress, cancel_event):
        return RenderProgressLogger(on_progress, cancel_event)

    def test_frame_progress(self, progress_logger, on_progress):
        progress_logger(frame_index__total=100)
        progress_logger(frame_index__index=49)

        on_progress.assert_called_once()
        assert on_progress.call_args[0][0] == pytest.approx(0.55)

    def test_audio_progress_uses_first_tenth(self, progress_logger, on_progress):
        progress_logger(chunk__total=10)
        progress_logger(chunk__index=9)

        assert on_progress.call_args[0][0] == pytest.approx(0.1)

    def test_unknown_bars_ignored(self, progress_logger, on_progress):
        progress_logger(other__total=10)
        progress_logger(other__index=3)

        on_progress.assert_not_called()

    def test_cancel_raises_on_next_update(self, progress_logger, cancel_event):
        progress_logger(frame_index__total=100)
        cancel_event.set()

        with pytest.raises(CompositionCancelledError):
            progress_logger(frame_index__index=1)

    def test_cancel_raises_on_message(self, progress_logger, cancel_event):
        cancel_event.set()

        with pytest.raises(CompositionCancelledError):
            progress_logger(message="Moviepy - Writing video")


class TestMoviePyBackendProbes:
    """Test duration probing."""

    @pytest.fixture
    def backend(self):
        return MoviePyBackend()

    def test_probe_video(self, backend):
        with patch(f"{MODULE}.VideoFileClip") as mock_video:
            mock_video.return_value.duration = 7.5

            assert backend.probe_video("clip.mp4") == 7.5

            mock_video.assert_called_once_with("clip.mp4", audio=False)
            mock_video.return_value.close.assert_called_once()

    def test_probe_video_without_duration(self, backend):
        with patch(f"{MODULE}.VideoFileClip") as mock_video:
            mock_video.return_value.duration = None

            with pytest.raises(ValueError):
                backend.probe_video("still.png")
            mock_video.return_value.close.assert_called_once()

    def test_probe_video_propagates_load_errors(self, backend):
        with patch(f"{MODULE}.VideoFileClip", side_effect=OSError("bad file")):
            with pytest.raises(OSError):
                backend.probe_video("broken.mp4")

    def test_probe_audio(self, backend):
        with patch(f"{MODULE}.AudioFileClip") as mock_audio:
            mock_audio.return_value.duration = 183.2

            assert backend.probe_audio("song.mp3") == pytest.approx(183.2)
            mock_audio.return_value.close.assert_called_once()

    def test_probe_audio_zero_duration(self, backend):
        with patch(f"{MODULE}.AudioFileClip") as mock_audio:
            mock_audio.return_value.duration = 0.0

            with pytest.raises(ValueError):
                backend.probe_audio("empty.wav")


class TestMoviePyBackendRender:
    """Test render assembly with MoviePy mocked out."""

    @pytest.fixture
    def backend(self):
        return MoviePyBackend(codec="libx264", audio_codec="aac", bitrate="8M", preset="fast", threads=2)

    @pytest.fixture
    def plan(self):
        return RenderPlan(
            audio_path="song.mp3",
            audio_duration=60.0,
            clips=(
                PlannedClip(clip_id="a", media_path="a.mp4", source_start=0.0, source_end=4.0, timeline_start=0.0),
                PlannedClip(
                    clip_id="b",
                    media_path="b.mp4",
                    source_start=1.0,
                    source_end=3.0,
                    timeline_start=4.0,
                    transition_duration=0.5,
                    color_grade=ColorGrade.from_preset(ColorPreset.WARM),
                ),
            ),
        )

    @pytest.fixture
    def moviepy(self):
        """Patch every MoviePy constructor the backend uses."""
        with patch(f"{MODULE}.VideoFileClip") as mock_video, \
             patch(f"{MODULE}.AudioFileClip") as mock_audio, \
             patch(f"{MODULE}.ColorClip") as mock_color, \
             patch(f"{MODULE}.CompositeVideoClip") as mock_composite:
            mock_video.return_value.subclipped.return_value.size = (1920, 1080)
            mock_audio.return_value.duration = 60.0
            yield Mock(video=mock_video, audio=mock_audio, color=mock_color, composite=mock_composite)

    def test_render_writes_video(self, backend, plan, moviepy, tmp_path):
        output = tmp_path / "video.mp4"
        sources = [MagicMock(name="a"), MagicMock(name="b")]
        for source in sources:
            source.subclipped.return_value.size = (1920, 1080)
        moviepy.video.side_effect = sources

        backend.render(plan, output, Mock(), threading.Event())

        assert moviepy.video.call_count == 2
        sources[0].subclipped.assert_called_once_with(0.0, 4.0)
        sources[1].subclipped.assert_called_once_with(1.0, 3.0)

        # only the graded clip gets a frame filter
        sources[0].subclipped.return_value.image_transform.assert_not_called()
        sources[1].subclipped.return_value.image_transform.assert_called_once()

        layers = moviepy.composite.call_args[0][0]
        assert len(layers) == 3
        assert layers[0] is moviepy.color.return_value
        assert moviepy.composite.call_args[1]["size"] == (1920, 1080)

        final = moviepy.composite.return_value.with_duration.return_value.with_audio.return_value
        final.write_videofile.assert_called_once()
        args, kwargs = final.write_videofile.call_args
        assert args[0] == str(output)
        assert kwargs["fps"] == 30
        assert kwargs["codec"] == "libx264"
        assert kwargs["audio_codec"] == "aac"
        assert kwargs["bitrate"] == "8M"
        assert kwargs["preset"] == "fast"
        assert isinstance(kwargs["logger"], RenderProgressLogger)

        final.close.assert_called_once()
        for source in sources:
            source.close.assert_called_once()
        moviepy.audio.return_value.close.assert_called_once()
        moviepy.color.return_value.close.assert_called_once()

    def test_full_song_is_attached(self, backend, plan, moviepy, tmp_path):
        """Six seconds of footage over a 60 second song renders all 60 seconds."""
        backend.render(plan, tmp_path / "video.mp4", Mock(), threading.Event())

        music = moviepy.audio.return_value
        moviepy.audio.assert_called_once_with("song.mp3")
        music.subclipped.assert_not_called()

        composite = moviepy.composite.return_value
        composite.with_duration.assert_called_once_with(60.0)
        composite.with_duration.return_value.with_audio.assert_called_once_with(music)
        assert moviepy.color.call_args[1]["duration"] == 60.0
        assert moviepy.color.call_args[1]["color"] == (0, 0, 0)

    def test_footage_longer_than_song(self, backend, moviepy, tmp_path):
        plan = RenderPlan(
            audio_path="song.mp3",
            audio_duration=5.0,
            clips=(PlannedClip(clip_id="a", media_path="a.mp4", source_start=0.0, source_end=8.0, timeline_start=0.0),),
        )
        backend.render(plan, tmp_path / "video.mp4", Mock(), threading.Event())

        moviepy.composite.return_value.with_duration.assert_called_once_with(8.0)
        moviepy.audio.return_value.subclipped.assert_not_called()

    def test_song_only_plan_renders_over_black(self, backend, moviepy, tmp_path):
        plan = RenderPlan(audio_path="song.mp3", audio_duration=42.0)
        backend.render(plan, tmp_path / "video.mp4", Mock(), threading.Event())

        moviepy.video.assert_not_called()
        assert moviepy.composite.call_args[0][0] == [moviepy.color.return_value]
        moviepy.composite.return_value.with_duration.assert_called_once_with(42.0)
        final = moviepy.composite.return_value.with_duration.return_value.with_audio.return_value
        final.write_videofile.assert_called_once()

    def test_render_closes_clips_on_failure(self, backend, plan, moviepy, tmp_path):
        source = MagicMock()
        source.subclipped.return_value.size = (1920, 1080)
        moviepy.video.side_effect = [source, OSError("decode error")]

        with pytest.raises(OSError):
            backend.render(plan, tmp_path / "video.mp4", Mock(), threading.Event())

        moviepy.composite.assert_not_called()
        source.close.assert_called_once()
        moviepy.color.return_value.close.assert_called_once()

    def test_render_checks_cancel_before_loading(self, backend, plan, moviepy, tmp_path):
        cancel_event = threading.Event()
        cancel_event.set()

        with pytest.raises(CompositionCancelledError):
            backend.render(plan, tmp_path / "video.mp4", Mock(), cancel_event)

        moviepy.video.assert_not_called()
        moviepy.color.assert_not_called()

    @pytest.mark.parametrize("size,expected", [
        ((1280, 720), (1920, 1080)),
        ((1000, 1000), (1080, 1080)),
        ((640, 480), (1440, 1080)),
    ])
    def test_resize_fits_and_keeps_aspect(self, backend, size, expected):
        clip = Mock(size=size)
        backend._resize_clip(clip, (1920, 1080))
        clip.resized.assert_called_once_with(new_size=expected)

    def test_matching_size_not_resized(self, backend):
        clip = Mock(size=(1920, 1080))
        assert backend._resize_clip(clip, (1920, 1080)) is clip
        clip.resized.assert_not_called()
