"""Analysis and composition tools for Music Video Maker."""

from .audio_analysis import (
    AudioAnalysisEngine,
    EnergyLoudnessAnalyzer,
    MoodClassifier,
    Segmenter,
    TempoEstimator,
)
from .composition import CompositionEngine, CompositionJob, JobState

__all__ = [
    "AudioAnalysisEngine",
    "EnergyLoudnessAnalyzer",
    "MoodClassifier",
    "Segmenter",
    "TempoEstimator",
    "CompositionEngine",
    "CompositionJob",
    "JobState",
]
