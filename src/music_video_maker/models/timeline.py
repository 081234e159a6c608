"""
Timeline model.

Owns the ordered clip list and keeps clip start times contiguous:
start_time[0] == 0 and start_time[i + 1] == start_time[i] + effective_duration[i]
after every mutation.
"""

import logging
import threading
from datetime import datetime
from typing import Iterable, Iterator, List, Optional, Tuple

from .clip import Clip


logger = logging.getLogger(__name__)

CONTINUITY_TOLERANCE = 1e-6


class Timeline:
    """Ordered clip list behind a single-writer handle.

    Every mutation builds a new list, re-derives all start times and then
    commits it in one assignment, so readers only ever see a fully
    consistent snapshot. Out-of-bounds indices make a mutation a logged
    no-op that returns False.
    """

    def __init__(self, clips: Optional[Iterable[Clip]] = None):
        self._lock = threading.RLock()
        self._clips: Tuple[Clip, ...] = ()
        self.version = 0
        self.modified_at = datetime.utcnow()
        if clips:
            initial = list(clips)
            self._check_unique_ids(initial)
            self._commit(initial)

    # Read access

    @property
    def clips(self) -> Tuple[Clip, ...]:
        """Immutable snapshot of the current clips."""
        return self._clips

    def __len__(self) -> int:
        return len(self._clips)

    def __iter__(self) -> Iterator[Clip]:
        return iter(self._clips)

    def __getitem__(self, index: int) -> Clip:
        return self._clips[index]

    def __bool__(self) -> bool:
        return bool(self._clips)

    def __repr__(self) -> str:
        return f"Timeline(clips={len(self._clips)}, total_duration={self.total_duration:.3f})"

    @property
    def is_empty(self) -> bool:
        return not self._clips

    @property
    def total_duration(self) -> float:
        """End time of the last clip, or 0 for an empty timeline."""
        clips = self._clips
        if not clips:
            return 0.0
        return clips[-1].end_time

    @property
    def start_times(self) -> List[float]:
        return [clip.start_time for clip in self._clips]

    def index_of(self, clip_id: str) -> Optional[int]:
        for index, clip in enumerate(self._clips):
            if clip.id == clip_id:
                return index
        return None

    def clip_at_time(self, time: float) -> Optional[Clip]:
        """Find the clip playing at a given time position."""
        for clip in self._clips:
            if clip.start_time <= time < clip.end_time:
                return clip
        return None

    def validate_continuity(self) -> List[str]:
        """Check for gaps or overlaps between consecutive clips."""
        issues = []
        clips = self._clips
        if clips and abs(clips[0].start_time) > CONTINUITY_TOLERANCE:
            issues.append(f"First clip starts at {clips[0].start_time:.3f}s instead of 0")

        for i in range(1, len(clips)):
            prev = clips[i - 1]
            curr = clips[i]
            gap = curr.start_time - prev.end_time
            if gap > CONTINUITY_TOLERANCE:
                issues.append(f"Gap of {gap:.3f}s between clips at {prev.end_time:.3f}s")
            elif gap < -CONTINUITY_TOLERANCE:
                issues.append(f"Overlap of {-gap:.3f}s between clips at {prev.end_time:.3f}s")

        return issues

    # Mutations

    def append(self, clip: Clip) -> bool:
        """Add a clip at the end of the timeline."""
        self._require_clip(clip)
        with self._lock:
            if self.index_of(clip.id) is not None:
                raise ValueError(f"Clip id already in timeline: {clip.id}")
            self._commit([*self._clips, clip])
        return True

    def remove_at(self, index: int) -> bool:
        """Remove the clip at ``index``."""
        with self._lock:
            if not self._in_bounds(index):
                self._log_out_of_bounds("remove_at", index)
                return False
            clips = list(self._clips)
            del clips[index]
            self._commit(clips)
        return True

    def move_clip(self, source: int, destination: int) -> bool:
        """Move the clip at ``source`` so it ends up at ``destination``."""
        with self._lock:
            if not (self._in_bounds(source) and self._in_bounds(destination)):
                self._log_out_of_bounds("move_clip", source, destination)
                return False
            clips = list(self._clips)
            clip = clips.pop(source)
            clips.insert(destination, clip)
            self._commit(clips)
        return True

    def update_at(self, index: int, clip: Clip) -> bool:
        """Replace the clip at ``index``."""
        self._require_clip(clip)
        with self._lock:
            if not self._in_bounds(index):
                self._log_out_of_bounds("update_at", index)
                return False
            existing = self.index_of(clip.id)
            if existing is not None and existing != index:
                raise ValueError(f"Clip id already in timeline: {clip.id}")
            clips = list(self._clips)
            clips[index] = clip
            self._commit(clips)
        return True

    # Internals

    def _in_bounds(self, index: int) -> bool:
        return 0 <= index < len(self._clips)

    def _log_out_of_bounds(self, operation: str, *indices: int) -> None:
        logger.warning(
            f"Timeline.{operation} ignored: index {indices} out of bounds "
            f"for {len(self._clips)} clips"
        )

    @staticmethod
    def _require_clip(clip) -> None:
        if not isinstance(clip, Clip):
            raise TypeError(f"Expected Clip, got {type(clip).__name__}")

    @staticmethod
    def _check_unique_ids(clips: List[Clip]) -> None:
        seen = set()
        for clip in clips:
            Timeline._require_clip(clip)
            if clip.id in seen:
                raise ValueError(f"Duplicate clip id: {clip.id}")
            seen.add(clip.id)

    def _commit(self, clips: List[Clip]) -> None:
        current_time = 0.0
        derived = []
        for clip in clips:
            if clip.start_time != current_time:
                clip = clip.model_copy(update={"start_time": current_time})
            derived.append(clip)
            current_time += clip.effective_duration

        self._clips = tuple(derived)
        self.version += 1
        self.modified_at = datetime.utcnow()
