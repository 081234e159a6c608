"""Video rendering backend using MoviePy."""

import logging
import threading
from pathlib import Path
from typing import Callable, Optional, Tuple

from moviepy import AudioFileClip, ColorClip, CompositeVideoClip, VideoFileClip, vfx
from proglog import ProgressBarLogger

from ..config import settings
from ..errors import CompositionCancelledError
from ..media.interface import MediaBackend
from ..models.render_plan import PlannedClip, RenderPlan
from .color_grading import make_frame_filter


logger = logging.getLogger(__name__)

# Share of the progress bar spent writing the temporary audio track
AUDIO_PROGRESS_SHARE = 0.1


class RenderProgressLogger(ProgressBarLogger):
    """proglog logger that forwards MoviePy progress and aborts on cancel."""

    def __init__(self, on_progress: Callable[[float], None], cancel_event: threading.Event):
        super().__init__()
        self.on_progress = on_progress
        self.cancel_event = cancel_event

    def callback(self, **changes):
        self._check_cancelled()

    def bars_callback(self, bar, attr, value, old_value=None):
        self._check_cancelled()
        if attr != "index":
            return
        total = self.bars.get(bar, {}).get("total")
        if not total:
            return

        fraction = min(1.0, (value + 1) / total)
        if bar == "chunk":
            self.on_progress(AUDIO_PROGRESS_SHARE * fraction)
        elif bar in ("frame_index", "t"):
            self.on_progress(AUDIO_PROGRESS_SHARE + (1.0 - AUDIO_PROGRESS_SHARE) * fraction)

    def _check_cancelled(self):
        if self.cancel_event.is_set():
            raise CompositionCancelledError()


class MoviePyBackend(MediaBackend):
    """Probes media and renders RenderPlans with MoviePy/ffmpeg."""

    def __init__(
        self,
        codec: Optional[str] = None,
        audio_codec: Optional[str] = None,
        bitrate: Optional[str] = None,
        preset: Optional[str] = None,
        threads: Optional[int] = None,
    ):
        """Initialize the backend.

        Args:
            codec: ffmpeg video codec (h.264 via libx264 by default)
            audio_codec: ffmpeg audio codec
            bitrate: Video bitrate, e.g. "10M"
            preset: Encoder speed/quality preset
            threads: ffmpeg thread count
        """
        self.codec = codec or settings.video_codec
        self.audio_codec = audio_codec or settings.audio_codec
        self.bitrate = bitrate or settings.video_bitrate
        self.audio_bitrate = settings.audio_bitrate
        self.preset = preset or settings.encoder_preset
        self.threads = threads if threads is not None else settings.render_threads

    def probe_audio(self, path: str) -> float:
        clip = AudioFileClip(path)
        try:
            duration = clip.duration
        finally:
            clip.close()
        if not duration or duration <= 0:
            raise ValueError(f"No audio track in {path}")
        return float(duration)

    def probe_video(self, path: str) -> float:
        clip = VideoFileClip(path, audio=False)
        try:
            duration = clip.duration
        finally:
            clip.close()
        if not duration or duration <= 0:
            raise ValueError(f"No visual track in {path}")
        return float(duration)

    def render(
        self,
        plan: RenderPlan,
        output_path: Path,
        on_progress: Callable[[float], None],
        cancel_event: threading.Event,
    ) -> None:
        """Render the plan to ``output_path``."""
        output_path = Path(output_path)
        temp_audio = output_path.with_name(output_path.stem + ".temp-audio.m4a")
        all_clips_to_cleanup = []
        video = None

        try:
            if cancel_event.is_set():
                raise CompositionCancelledError()

            # Black base layer spanning the whole output
            background = ColorClip(size=plan.resolution, color=(0, 0, 0), duration=plan.output_duration)
            all_clips_to_cleanup.append(background)
            layers = [background]
            for planned in plan.clips:
                if cancel_event.is_set():
                    raise CompositionCancelledError()
                source = VideoFileClip(planned.media_path, audio=False)
                all_clips_to_cleanup.append(source)
                layers.append(self._create_layer(source, planned, plan.resolution))

            video = CompositeVideoClip(layers, size=plan.resolution, bg_color=(0, 0, 0))
            video = video.with_duration(plan.output_duration)

            music = AudioFileClip(plan.audio_path)
            all_clips_to_cleanup.append(music)
            video = video.with_audio(music)

            logger.info(
                f"Rendering {plan.output_duration:.2f}s video ({len(plan.clips)} clips, "
                f"{plan.duration:.2f}s of footage) to {output_path}"
            )
            video.write_videofile(
                str(output_path),
                fps=plan.fps,
                codec=self.codec,
                audio_codec=self.audio_codec,
                bitrate=self.bitrate,
                audio_bitrate=self.audio_bitrate,
                preset=self.preset,
                threads=self.threads,
                temp_audiofile=str(temp_audio),
                remove_temp=True,
                logger=RenderProgressLogger(on_progress, cancel_event),
            )

        finally:
            if video is not None:
                video.close()
            for clip in all_clips_to_cleanup:
                try:
                    clip.close()
                except Exception as e:
                    logger.debug(f"Error closing clip: {e}")
            temp_audio.unlink(missing_ok=True)

    def _create_layer(self, source, planned: PlannedClip, resolution: Tuple[int, int]):
        """Trim, fit, grade and position one planned clip."""
        clip = source.subclipped(planned.source_start, planned.source_end)
        clip = self._resize_clip(clip, resolution)

        if planned.color_grade is not None and not planned.color_grade.is_neutral:
            clip = clip.image_transform(make_frame_filter(planned.color_grade))

        if planned.transition_duration > 0:
            clip = clip.with_effects([vfx.CrossFadeIn(planned.transition_duration)])

        return clip.with_start(planned.timeline_start).with_position("center")

    def _resize_clip(self, clip, resolution: Tuple[int, int]):
        """Scale to fit the output while keeping the aspect ratio."""
        target_w, target_h = resolution
        clip_w, clip_h = clip.size

        if (clip_w, clip_h) == (target_w, target_h):
            return clip

        scale = min(target_w / clip_w, target_h / clip_h)
        new_size = (int(clip_w * scale), int(clip_h * scale))

        # Even dimensions are required by many codecs
        new_size = (max(2, new_size[0] // 2 * 2), max(2, new_size[1] // 2 * 2))
        return clip.resized(new_size=new_size)
