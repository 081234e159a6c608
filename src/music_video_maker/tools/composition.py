"""Composition engine: turns a timeline and a song into a rendered mp4."""

import asyncio
import logging
import os
import threading
import time
import uuid
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from ..config import settings
from ..errors import (
    AssetLoadError,
    CompositionCancelledError,
    CompositionError,
    ExportFailedError,
    NoClipsProvidedError,
)
from ..media.interface import MediaBackend
from ..models.clip import Clip, Transition
from ..models.project import ProjectStatus, VideoProject
from ..models.render_plan import PlannedClip, RenderPlan
from ..models.timeline import Timeline
from ..utils.simple_logger import log_complete, log_start, log_update

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class JobState(str, Enum):
    """Lifecycle of a single export attempt."""
    IDLE = "idle"
    COMPOSING = "composing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS = {
    JobState.IDLE: {JobState.COMPOSING},
    JobState.COMPOSING: {JobState.COMPLETED, JobState.FAILED, JobState.CANCELLED},
    JobState.COMPLETED: set(),
    JobState.FAILED: set(),
    JobState.CANCELLED: set(),
}


class CompositionJob:
    """One export attempt.

    States only move forward (Idle -> Composing -> Completed | Failed |
    Cancelled). Progress reaches the caller's callback on the event loop
    thread, clamped to [0, 1], never decreasing, at most once per
    ``progress_interval`` and ending with a single 1.0 on success.
    """

    def __init__(
        self,
        output_path: Path,
        progress_callback: Optional[ProgressCallback] = None,
        progress_interval: float = 0.1,
    ):
        self.id = uuid.uuid4().hex
        self.target_path = Path(output_path)
        self.output_path: Optional[Path] = None
        self.state = JobState.IDLE
        self.progress = 0.0
        self.error: Optional[BaseException] = None
        self.duration: Optional[float] = None
        self.skipped_clip_ids: List[str] = []

        self._progress_callback = progress_callback
        self._progress_interval = progress_interval
        self._last_emitted: Optional[float] = None
        self._last_emit_time = 0.0
        self._cancel_event = threading.Event()
        self._task: Optional[asyncio.Task] = None

    def __repr__(self) -> str:
        return f"CompositionJob(id={self.id[:8]}, state={self.state.value}, progress={self.progress:.2f})"

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self.state]

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()

    def cancel(self) -> bool:
        """Request cooperative cancellation.

        Returns:
            True if the request was registered, False if the job already finished
        """
        if self.is_terminal:
            return False
        self._cancel_event.set()
        logger.info(f"Cancellation requested for composition job {self.id[:8]}")
        return True

    async def wait(self) -> Path:
        """Wait for the job to finish.

        Returns:
            Path of the rendered artifact

        Raises:
            CompositionError: The terminal failure or cancellation
        """
        if self._task is None:
            raise RuntimeError("Composition job has not been started")
        return await self._task

    def _transition(self, new_state: JobState) -> None:
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid job transition {self.state.value} -> {new_state.value}")
        logger.debug(f"Job {self.id[:8]}: {self.state.value} -> {new_state.value}")
        self.state = new_state

    def _report_progress(self, fraction: float) -> None:
        if self.state != JobState.COMPOSING:
            return
        fraction = min(max(float(fraction), 0.0), 1.0)
        if fraction <= self.progress and self._last_emitted is not None:
            return
        self.progress = max(self.progress, fraction)

        # 1.0 is reserved for the final call after the artifact is committed
        if self.progress >= 1.0:
            return
        now = time.monotonic()
        if self._last_emitted is not None and now - self._last_emit_time < self._progress_interval:
            return
        self._emit(self.progress, now)

    def _finish_progress(self) -> None:
        self.progress = 1.0
        self._emit(1.0, time.monotonic())

    def _emit(self, fraction: float, now: float) -> None:
        self._last_emitted = fraction
        self._last_emit_time = now
        if self._progress_callback is None:
            return
        try:
            self._progress_callback(fraction)
        except Exception:
            logger.exception(f"Progress callback failed for job {self.id[:8]}")


class CompositionEngine:
    """Composes timelines over a song and exports them through a MediaBackend."""

    def __init__(
        self,
        backend: Optional[MediaBackend] = None,
        output_dir: Optional[Union[str, Path]] = None,
        progress_interval: Optional[float] = None,
    ):
        """Initialize the composition engine.

        Args:
            backend: Probe/render collaborator (MoviePy by default)
            output_dir: Directory for artifacts when no output path is given
            progress_interval: Minimum seconds between progress callbacks
        """
        if backend is None:
            from .video_renderer import MoviePyBackend
            backend = MoviePyBackend()
        self.backend = backend
        self.output_dir = Path(output_dir or settings.output_dir)
        self.progress_interval = (
            progress_interval if progress_interval is not None else settings.progress_interval
        )

    def start(
        self,
        timeline: Timeline,
        audio_path: Union[str, Path],
        output_path: Optional[Union[str, Path]] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> CompositionJob:
        """Schedule a composition on the running event loop.

        The clip list is snapshotted here; later timeline edits do not
        affect this job.
        """
        loop = asyncio.get_running_loop()
        target = Path(output_path) if output_path else self.output_dir / f"{uuid.uuid4().hex}.mp4"
        job = CompositionJob(target, progress_callback, self.progress_interval)
        job._task = loop.create_task(self._run(job, timeline.clips, str(audio_path)))
        return job

    async def compose(
        self,
        timeline: Timeline,
        audio_path: Union[str, Path],
        output_path: Optional[Union[str, Path]] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Path:
        """Compose and export a timeline.

        Args:
            timeline: Clips in play order
            audio_path: Song file; its audio track backs the whole video
            output_path: Target mp4 path (generated under output_dir if omitted)
            progress_callback: Receives fractions in [0, 1]

        Returns:
            Path to the rendered artifact

        Raises:
            NoClipsProvidedError: If the timeline is empty
            AssetLoadError: If the song's audio track cannot be loaded
            ExportFailedError: If rendering fails
            CompositionCancelledError: If the job was cancelled
        """
        job = self.start(timeline, audio_path, output_path, progress_callback)
        return await self._wait_for(job)

    async def export_project(
        self,
        project: VideoProject,
        output_path: Optional[Union[str, Path]] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Path:
        """Export a project, keeping its status in step with the job."""
        project.status = ProjectStatus.EXPORTING
        project.touch()
        try:
            job = self.start(project.timeline, project.song.path, output_path, progress_callback)
            path = await self._wait_for(job)
        except (CompositionCancelledError, asyncio.CancelledError):
            project.status = ProjectStatus.READY
            raise
        except Exception:
            project.status = ProjectStatus.FAILED
            raise

        project.export_path = str(path)
        project.export_duration = job.duration
        project.skipped_clip_ids = list(job.skipped_clip_ids)
        project.status = ProjectStatus.COMPLETED
        project.touch()
        return path

    @staticmethod
    async def _wait_for(job: CompositionJob) -> Path:
        try:
            return await job.wait()
        except asyncio.CancelledError:
            job.cancel()
            raise

    async def build_plan(
        self,
        clips: Sequence[Clip],
        audio_path: str,
        job: Optional[CompositionJob] = None,
    ) -> RenderPlan:
        """Probe the song and every clip and lay out what to render.

        Clips whose visual track cannot be loaded are skipped; the song
        failing to load is fatal. With no playable clips the plan is the
        song alone, rendered over black.
        """
        loop = asyncio.get_running_loop()

        try:
            audio_duration = await loop.run_in_executor(None, self.backend.probe_audio, audio_path)
        except Exception as e:
            raise AssetLoadError(f"Failed to load audio track of {audio_path}: {e}") from e
        if not audio_duration or audio_duration <= 0:
            raise AssetLoadError(f"Audio track of {audio_path} has no duration")

        planned: List[PlannedClip] = []
        current_time = 0.0
        for clip in clips:
            if job is not None and job.cancel_requested:
                raise CompositionCancelledError()

            try:
                source_duration = await loop.run_in_executor(None, self.backend.probe_video, clip.media_path)
            except Exception as e:
                logger.warning(f"Skipping clip {clip.id}: cannot load visual track of {clip.media_path}: {e}")
                if job is not None:
                    job.skipped_clip_ids.append(clip.id)
                continue

            source_start = clip.trim_start
            source_end = source_duration - clip.trim_end
            if source_end <= source_start:
                logger.warning(
                    f"Skipping clip {clip.id}: trims leave nothing of {source_duration:.2f}s source"
                )
                if job is not None:
                    job.skipped_clip_ids.append(clip.id)
                continue

            transition_duration = 0.0
            if planned and clip.transition != Transition.NONE:
                transition_duration = min(clip.transition_duration, source_end - source_start)

            planned.append(PlannedClip(
                clip_id=clip.id,
                media_path=clip.media_path,
                source_start=source_start,
                source_end=source_end,
                timeline_start=current_time,
                transition_duration=transition_duration,
                color_grade=clip.color_grade,
            ))
            log_update(logger, f"Planned {Path(clip.media_path).name} at {current_time:.2f}s ({source_end - source_start:.2f}s)")
            current_time += source_end - source_start

        if job is not None and job.cancel_requested:
            raise CompositionCancelledError()
        if not planned:
            logger.warning(f"None of the {len(clips)} timeline clips could be loaded; rendering the song over black")

        return RenderPlan(audio_path=audio_path, audio_duration=audio_duration, clips=tuple(planned))

    async def _run(self, job: CompositionJob, clips: Sequence[Clip], audio_path: str) -> Path:
        job._transition(JobState.COMPOSING)
        job._report_progress(0.0)
        temp_path: Optional[Path] = None

        try:
            if not clips:
                raise NoClipsProvidedError()

            log_start(logger, f"Composing {len(clips)} clips over {Path(audio_path).name}")
            plan = await self.build_plan(clips, audio_path, job)

            job.target_path.parent.mkdir(parents=True, exist_ok=True)
            temp_path = job.target_path.with_name(
                f".{job.target_path.stem}.{job.id[:8]}.partial.mp4"
            )
            await self._render(plan, temp_path, job)
            if job.cancel_requested:
                raise CompositionCancelledError()

            os.replace(temp_path, job.target_path)
            temp_path = None

        except asyncio.CancelledError:
            job._cancel_event.set()
            self._discard(temp_path)
            job._transition(JobState.CANCELLED)
            logger.info(f"Composition job {job.id[:8]} cancelled")
            raise
        except CompositionCancelledError as e:
            self._discard(temp_path)
            job.error = e
            job._transition(JobState.CANCELLED)
            logger.info(f"Composition job {job.id[:8]} cancelled")
            raise
        except CompositionError as e:
            self._discard(temp_path)
            job.error = e
            job._transition(JobState.FAILED)
            logger.error(f"Composition failed: {e}")
            raise
        except Exception as e:
            self._discard(temp_path)
            error = ExportFailedError(f"Failed to export video: {e}")
            job.error = error
            job._transition(JobState.FAILED)
            logger.error(f"Video export failed: {e}")
            raise error from e

        job.output_path = job.target_path
        job.duration = plan.output_duration
        job._transition(JobState.COMPLETED)
        job._finish_progress()
        log_complete(logger, f"Exported {plan.output_duration:.1f}s video to {job.output_path}")
        return job.output_path

    async def _render(self, plan: RenderPlan, temp_path: Path, job: CompositionJob) -> None:
        loop = asyncio.get_running_loop()

        def on_progress(fraction: float) -> None:
            loop.call_soon_threadsafe(job._report_progress, fraction)

        render = loop.run_in_executor(
            None, self.backend.render, plan, temp_path, on_progress, job._cancel_event
        )
        try:
            await asyncio.shield(render)
        except asyncio.CancelledError:
            # Wait for the worker to stop writing before the caller cleans up
            job._cancel_event.set()
            await asyncio.gather(render, return_exceptions=True)
            raise

    @staticmethod
    def _discard(path: Optional[Path]) -> None:
        if path is None:
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove partial artifact {path}: {e}")
