"""
Audio analysis data models.

Defines the immutable result of analyzing a song: whole-track tempo,
energy, loudness and mood, plus fixed-length chronological segments.
"""

from enum import Enum
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


CONTINUITY_TOLERANCE = 1e-6


class Mood(str, Enum):
    """Mood categories assigned from tempo and energy."""
    HAPPY = "happy"
    SAD = "sad"
    ENERGETIC = "energetic"
    CALM = "calm"
    INTENSE = "intense"
    MELANCHOLIC = "melancholic"
    UPLIFTING = "uplifting"
    DARK = "dark"

    @property
    def description(self) -> str:
        """Human-readable label."""
        return self.value.capitalize()


class AudioSegment(BaseModel):
    """Fixed-length window of a song with its own measurements."""
    model_config = ConfigDict(frozen=True)

    start_time: float = Field(..., ge=0, description="Start of the window (seconds)")
    duration: float = Field(..., ge=0, description="Window length; the last one may be shorter")
    tempo: float = Field(..., description="Estimated tempo (BPM)")
    energy: float = Field(..., ge=0, le=1, description="RMS energy (0-1)")
    loudness: float = Field(..., description="Loudness (dB)")

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration


class AudioAnalysis(BaseModel):
    """Complete analysis of one audio input. Never mutated after creation."""
    model_config = ConfigDict(frozen=True)

    tempo: float = Field(..., description="Whole-track tempo (BPM)")
    energy: float = Field(..., ge=0, le=1, description="Whole-track RMS energy (0-1)")
    loudness: float = Field(..., description="Whole-track loudness (dB)")
    mood: Mood = Field(..., description="Mood category")
    segments: Tuple[AudioSegment, ...] = Field(default_factory=tuple, description="Chronological segments")

    @model_validator(mode="after")
    def validate_segments_contiguous(self):
        expected_start = 0.0
        for index, segment in enumerate(self.segments):
            if abs(segment.start_time - expected_start) > CONTINUITY_TOLERANCE:
                raise ValueError(
                    f"segment {index} starts at {segment.start_time:.6f}s, "
                    f"expected {expected_start:.6f}s"
                )
            expected_start = segment.end_time
        return self

    @property
    def duration(self) -> float:
        """Covered duration, i.e. the end of the last segment."""
        if not self.segments:
            return 0.0
        return self.segments[-1].end_time

    def segment_at_time(self, time: float):
        """Find the segment covering a time position."""
        for segment in self.segments:
            if segment.start_time <= time < segment.end_time:
                return segment
        return None
