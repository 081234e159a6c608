"""Abstract codec interfaces for Music Video Maker.

Analysis and composition never decode or encode media themselves. They
go through these two collaborators, whose concrete bindings are chosen
by the host environment.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import numpy as np

from ..models.render_plan import RenderPlan


ProgressFn = Callable[[float], None]


@dataclass(frozen=True)
class PCMBuffer:
    """Decoded mono audio."""
    samples: np.ndarray
    sample_rate: int
    duration: float


class PCMSource(ABC):
    """Supplies normalized float samples for an audio locator."""

    @abstractmethod
    def load(self, locator: str) -> PCMBuffer:
        """Decode an audio file to mono PCM.

        Args:
            locator: Path to the audio file

        Returns:
            PCMBuffer with samples in [-1, 1], sample rate and duration

        Raises:
            AudioLoadError: If the source cannot be read or decoded
        """
        pass


class MediaBackend(ABC):
    """Probes media files and renders a RenderPlan to an mp4 artifact."""

    @abstractmethod
    def probe_audio(self, path: str) -> float:
        """Return the duration of the file's audio track.

        Raises:
            Exception: If the audio track cannot be loaded
        """
        pass

    @abstractmethod
    def probe_video(self, path: str) -> float:
        """Return the duration of the file's visual track.

        Raises:
            Exception: If the visual track cannot be loaded
        """
        pass

    @abstractmethod
    def render(
        self,
        plan: RenderPlan,
        output_path: Path,
        on_progress: ProgressFn,
        cancel_event: threading.Event,
    ) -> None:
        """Render ``plan`` as h.264/aac mp4 to ``output_path``.

        Called from a worker thread. ``on_progress`` receives fractions in
        [0, 1]. Implementations should check ``cancel_event`` regularly
        and raise CompositionCancelledError once it is set.

        Raises:
            CompositionCancelledError: If cancellation was observed
            Exception: Any rendering failure
        """
        pass
