"""Music Video Maker: audio mood/tempo analysis and timeline rendering."""

from .errors import (
    AnalysisError,
    AssetLoadError,
    AudioLoadError,
    CompositionCancelledError,
    CompositionError,
    EmptySamplesError,
    ExportFailedError,
    InvalidFormatError,
    MusicVideoError,
    NoClipsProvidedError,
)
from .models import (
    AudioAnalysis,
    AudioSegment,
    Clip,
    ColorGrade,
    ColorPreset,
    Mood,
    ProjectStatus,
    Song,
    Timeline,
    Transition,
    VideoProject,
    VideoSource,
)
from .tools import AudioAnalysisEngine, CompositionEngine, CompositionJob, JobState

__version__ = "0.1.0"

__all__ = [
    "AnalysisError",
    "AssetLoadError",
    "AudioLoadError",
    "CompositionCancelledError",
    "CompositionError",
    "EmptySamplesError",
    "ExportFailedError",
    "InvalidFormatError",
    "MusicVideoError",
    "NoClipsProvidedError",
    "AudioAnalysis",
    "AudioSegment",
    "Clip",
    "ColorGrade",
    "ColorPreset",
    "Mood",
    "ProjectStatus",
    "Song",
    "Timeline",
    "Transition",
    "VideoProject",
    "VideoSource",
    "AudioAnalysisEngine",
    "CompositionEngine",
    "CompositionJob",
    "JobState",
]
