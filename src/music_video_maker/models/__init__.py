"""
Data models for Music Video Maker.

This module provides Pydantic models for type safety and validation
throughout the application.
"""

from .audio_analysis import (
    AudioAnalysis,
    AudioSegment,
    Mood,
)
from .clip import (
    Clip,
    ColorGrade,
    ColorPreset,
    Transition,
    VideoSource,
)
from .timeline import Timeline
from .project import (
    ProjectStatus,
    Song,
    VideoProject,
)
from .render_plan import (
    PlannedClip,
    RenderPlan,
)

__all__ = [
    # Audio analysis
    "AudioAnalysis",
    "AudioSegment",
    "Mood",
    # Clips
    "Clip",
    "ColorGrade",
    "ColorPreset",
    "Transition",
    "VideoSource",
    # Timeline
    "Timeline",
    # Project
    "ProjectStatus",
    "Song",
    "VideoProject",
    # Rendering
    "PlannedClip",
    "RenderPlan",
]
