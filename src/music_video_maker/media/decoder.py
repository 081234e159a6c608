"""PCM source backed by librosa."""

import logging
from pathlib import Path
from typing import Optional

import librosa
import numpy as np

from ..errors import AudioLoadError, InvalidFormatError
from .interface import PCMBuffer, PCMSource


logger = logging.getLogger(__name__)


class LibrosaPCMSource(PCMSource):
    """Decodes audio files to mono float PCM with librosa.

    Files are loaded at their native sample rate unless ``sample_rate``
    is given, in which case librosa resamples.
    """

    def __init__(self, sample_rate: Optional[int] = None):
        self.sample_rate = sample_rate

    def load(self, locator: str) -> PCMBuffer:
        if not Path(locator).exists():
            raise AudioLoadError(f"Audio file not found: {locator}")

        try:
            y, sr = librosa.load(locator, sr=self.sample_rate, mono=True)
        except Exception as e:
            logger.error(f"Failed to decode audio {locator}: {e}")
            raise AudioLoadError(f"Failed to load audio file {locator}: {e}") from e

        if y.ndim != 1:
            raise InvalidFormatError(f"Expected mono samples, got shape {y.shape}")

        duration = float(librosa.get_duration(y=y, sr=sr))
        logger.debug(f"Decoded {locator}: {len(y)} samples @ {sr} Hz ({duration:.2f}s)")
        return PCMBuffer(samples=np.asarray(y, dtype=np.float32), sample_rate=int(sr), duration=duration)
