"""Audio feature analysis: energy, loudness, tempo, mood and segments."""

import asyncio
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple

import numpy as np
from scipy import signal

from ..config import settings
from ..errors import EmptySamplesError, InvalidFormatError
from ..media.decoder import LibrosaPCMSource
from ..media.interface import PCMSource
from ..models.audio_analysis import AudioAnalysis, AudioSegment, Mood


logger = logging.getLogger(__name__)


def _as_samples(samples) -> np.ndarray:
    return np.asarray(samples, dtype=np.float64).ravel()


class EnergyLoudnessAnalyzer:
    """RMS energy and dB loudness of a sample buffer."""

    LOUDNESS_FLOOR = 1e-5  # -100 dB

    @staticmethod
    def energy(samples) -> float:
        """Root-mean-square of the buffer, clamped to 1.0. Empty -> 0."""
        y = _as_samples(samples)
        if y.size == 0:
            return 0.0
        rms = float(np.sqrt(np.mean(np.square(y))))
        return min(rms, 1.0)

    @classmethod
    def loudness(cls, samples) -> float:
        """Loudness in dB; silence yields the finite floor."""
        return cls.loudness_from_energy(cls.energy(samples))

    @classmethod
    def loudness_from_energy(cls, energy: float) -> float:
        return 20.0 * math.log10(max(energy, cls.LOUDNESS_FLOOR))


class TempoEstimator:
    """Autocorrelation tempo estimate over the first few seconds of audio.

    Lags are scanned from the 180 BPM spacing up to the 60 BPM spacing.
    The first lag whose correlation strictly beats the running best
    (starting at 0.0 with the 180 BPM candidate) wins, so a silent buffer
    comes back as exactly 180 BPM. Buffers shorter than the analysis
    window return DEFAULT_BPM.
    """

    MIN_BPM = 60.0
    MAX_BPM = 180.0
    DEFAULT_BPM = 120.0
    CORRELATION_TOLERANCE = 1e-9  # relative to zero-lag energy

    def __init__(self, window_seconds: Optional[float] = None):
        self.window_seconds = window_seconds if window_seconds is not None else settings.tempo_window

    def estimate(self, samples, sample_rate: float) -> float:
        y = _as_samples(samples)
        window_size = int(sample_rate * self.window_seconds)
        if y.size < window_size or window_size <= 0:
            return self.DEFAULT_BPM

        window = y[:window_size]
        min_lag = int(sample_rate * 60.0 / self.MAX_BPM)
        max_lag = min(int(sample_rate * 60.0 / self.MIN_BPM), window.size - 1)
        if min_lag < 1 or max_lag < min_lag:
            return self.DEFAULT_BPM

        best_lag = self._best_lag(window, min_lag, max_lag)

        tempo = 60.0 * sample_rate / best_lag
        return min(max(tempo, self.MIN_BPM), self.MAX_BPM)

    @staticmethod
    def _autocorrelation(window: np.ndarray, min_lag: int, max_lag: int) -> np.ndarray:
        """Approximate sum(window[i] * window[i + lag]) for every lag in [min_lag, max_lag]."""
        full = signal.correlate(window, window, mode="full", method="auto")
        zero_lag = window.size - 1
        return full[zero_lag + min_lag:zero_lag + max_lag + 1]

    @staticmethod
    def _lag_correlation(window: np.ndarray, lag: int) -> float:
        return float(np.dot(window[:-lag], window[lag:]))

    @classmethod
    def _best_lag(cls, window: np.ndarray, min_lag: int, max_lag: int) -> int:
        """First lag whose exact correlation strictly beats the running best.

        FFT correlation is only accurate to a small fraction of the
        zero-lag energy, so values within that tolerance of zero count
        as zero, and lags within it of the maximum are re-scored exactly.
        """
        correlations = cls._autocorrelation(window, min_lag, max_lag)
        if correlations.size == 0:
            return min_lag

        tolerance = cls.CORRELATION_TOLERANCE * float(np.dot(window, window))
        peak = float(correlations.max())
        if peak <= tolerance:
            return min_lag

        best_lag, best = min_lag, 0.0
        for index in np.flatnonzero(correlations >= peak - tolerance):
            lag = min_lag + int(index)
            value = cls._lag_correlation(window, lag)
            if value > best:
                best_lag, best = lag, value
        return best_lag


# (tempo_low, tempo_high, energy_low, energy_high, energy_high_inclusive, mood)
MOOD_RULES: Tuple[Tuple[float, float, float, float, bool, Mood], ...] = (
    (0.0, 80.0, 0.0, 0.3, False, Mood.SAD),
    (0.0, 80.0, 0.3, 0.6, False, Mood.CALM),
    (0.0, 80.0, 0.6, 1.0, True, Mood.MELANCHOLIC),
    (80.0, 120.0, 0.0, 0.3, False, Mood.CALM),
    (80.0, 120.0, 0.3, 0.6, False, Mood.UPLIFTING),
    (80.0, 120.0, 0.6, 1.0, True, Mood.HAPPY),
    (120.0, 160.0, 0.0, 0.5, False, Mood.UPLIFTING),
    (120.0, 160.0, 0.5, 1.0, True, Mood.ENERGETIC),
)


class MoodClassifier:
    """Deterministic (tempo, energy) -> Mood lookup.

    Tempo at or above FAST_TEMPO is intense when energy exceeds
    INTENSE_ENERGY and energetic otherwise, whatever the energy value.
    Pairs no rule covers fall back to FALLBACK_MOOD.
    """

    FAST_TEMPO = 160.0
    INTENSE_ENERGY = 0.7
    FALLBACK_MOOD = Mood.HAPPY

    @classmethod
    def classify(cls, tempo: float, energy: float) -> Mood:
        if tempo >= cls.FAST_TEMPO:
            return Mood.INTENSE if energy > cls.INTENSE_ENERGY else Mood.ENERGETIC

        for tempo_low, tempo_high, energy_low, energy_high, inclusive, mood in MOOD_RULES:
            if not tempo_low <= tempo < tempo_high:
                continue
            if energy_low <= energy < energy_high or (inclusive and energy == energy_high):
                return mood

        logger.debug(f"No mood rule for tempo={tempo}, energy={energy}; using {cls.FALLBACK_MOOD.value}")
        return cls.FALLBACK_MOOD


class Segmenter:
    """Splits a waveform into fixed windows and measures each one."""

    def __init__(
        self,
        window_length: Optional[float] = None,
        tempo_estimator: Optional[TempoEstimator] = None,
        workers: Optional[int] = None,
    ):
        self.window_length = window_length if window_length is not None else settings.segment_length
        self.tempo_estimator = tempo_estimator or TempoEstimator()
        self.workers = workers if workers is not None else settings.analysis_workers
        if self.window_length <= 0:
            raise ValueError("window_length must be positive")

    def segment(self, samples, duration: float, sample_rate: float) -> Tuple[AudioSegment, ...]:
        y = _as_samples(samples)
        window_count = int(math.ceil(duration / self.window_length)) if duration > 0 else 0
        samples_per_window = int(sample_rate * self.window_length)

        windows: List[Tuple[int, np.ndarray]] = []
        for i in range(window_count):
            start_index = i * samples_per_window
            end_index = min(start_index + samples_per_window, y.size)
            if start_index >= end_index:
                break
            windows.append((i, y[start_index:end_index]))

        def measure(item: Tuple[int, np.ndarray]) -> AudioSegment:
            i, chunk = item
            energy = EnergyLoudnessAnalyzer.energy(chunk)
            return AudioSegment(
                start_time=i * self.window_length,
                duration=min(self.window_length, duration - i * self.window_length),
                tempo=self.tempo_estimator.estimate(chunk, sample_rate),
                energy=energy,
                loudness=EnergyLoudnessAnalyzer.loudness_from_energy(energy),
            )

        if self.workers > 1 and len(windows) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                return tuple(pool.map(measure, windows))
        return tuple(measure(item) for item in windows)


class AudioAnalysisEngine:
    """Builds an immutable AudioAnalysis from PCM samples."""

    def __init__(
        self,
        pcm_source: Optional[PCMSource] = None,
        tempo_estimator: Optional[TempoEstimator] = None,
        segmenter: Optional[Segmenter] = None,
    ):
        """Initialize the analysis engine.

        Args:
            pcm_source: Decoder used by analyze_file (librosa by default)
            tempo_estimator: Whole-track tempo estimator
            segmenter: Per-window analyzer
        """
        self.pcm_source = pcm_source or LibrosaPCMSource()
        self.tempo_estimator = tempo_estimator or TempoEstimator()
        self.segmenter = segmenter or Segmenter(tempo_estimator=self.tempo_estimator)

    def analyze(self, samples: Sequence[float], sample_rate: float, duration: float) -> AudioAnalysis:
        """Analyze a mono sample buffer.

        Args:
            samples: Normalized float samples
            sample_rate: Samples per second
            duration: Track duration in seconds

        Returns:
            AudioAnalysis with whole-track features and segments

        Raises:
            EmptySamplesError: If the buffer is empty
            InvalidFormatError: If buffer shape, sample rate or duration is unusable
        """
        y = np.asarray(samples, dtype=np.float64)
        if y.ndim != 1:
            raise InvalidFormatError(f"Expected a 1-D sample buffer, got shape {y.shape}")
        if y.size == 0:
            raise EmptySamplesError()
        if not sample_rate or sample_rate <= 0:
            raise InvalidFormatError(f"Invalid sample rate: {sample_rate}")
        if not math.isfinite(duration) or duration < 0:
            raise InvalidFormatError(f"Invalid duration: {duration}")

        tempo = self.tempo_estimator.estimate(y, sample_rate)
        energy = EnergyLoudnessAnalyzer.energy(y)
        loudness = EnergyLoudnessAnalyzer.loudness_from_energy(energy)
        mood = MoodClassifier.classify(tempo, energy)
        segments = self.segmenter.segment(y, duration, sample_rate)

        logger.info(
            f"Analyzed {duration:.1f}s of audio: {tempo:.1f} BPM, energy {energy:.3f}, "
            f"{loudness:.1f} dB, mood {mood.value}, {len(segments)} segments"
        )
        return AudioAnalysis(
            tempo=tempo,
            energy=energy,
            loudness=loudness,
            mood=mood,
            segments=segments,
        )

    async def analyze_file(self, audio_path: str) -> AudioAnalysis:
        """Decode an audio file and analyze it without blocking the event loop."""
        loop = asyncio.get_running_loop()
        try:
            buffer = await loop.run_in_executor(None, self.pcm_source.load, audio_path)
            return await loop.run_in_executor(
                None, self.analyze, buffer.samples, buffer.sample_rate, buffer.duration
            )
        except Exception as e:
            logger.error(f"Failed to analyze audio {audio_path}: {e}")
            raise
