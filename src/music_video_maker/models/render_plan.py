"""
Render plan data models.

A render plan is what the composition engine hands to the render
backend: the song track, the exact source ranges of each playable clip,
where each one lands on the output timeline, and its transition and
color settings.
"""

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .clip import ColorGrade


OUTPUT_WIDTH = 1920
OUTPUT_HEIGHT = 1080
OUTPUT_FPS = 30


class PlannedClip(BaseModel):
    """A source range placed on the output timeline."""
    model_config = ConfigDict(frozen=True)

    clip_id: str = Field(..., description="Clip this range comes from")
    media_path: str = Field(..., description="Source media file")
    source_start: float = Field(..., ge=0, description="Start within the source (seconds)")
    source_end: float = Field(..., gt=0, description="End within the source (seconds)")
    timeline_start: float = Field(..., ge=0, description="Start on the output timeline")
    transition_duration: float = Field(0.0, ge=0, description="Opacity ramp 0 -> 1 at the start")
    color_grade: Optional[ColorGrade] = Field(None, description="Uniform color adjustment")

    @model_validator(mode="after")
    def validate_range(self):
        if self.source_end <= self.source_start:
            raise ValueError("source_end must be greater than source_start")
        return self

    @property
    def duration(self) -> float:
        return self.source_end - self.source_start

    @property
    def timeline_end(self) -> float:
        return self.timeline_start + self.duration


class RenderPlan(BaseModel):
    """Everything the render backend needs to write one artifact."""
    model_config = ConfigDict(frozen=True)

    audio_path: str = Field(..., description="Song file")
    audio_duration: float = Field(..., gt=0, description="Song duration; the audio track spans all of it")
    clips: Tuple[PlannedClip, ...] = Field(default_factory=tuple, description="Clips in output order")
    width: int = Field(OUTPUT_WIDTH, description="Output width")
    height: int = Field(OUTPUT_HEIGHT, description="Output height")
    fps: int = Field(OUTPUT_FPS, description="Output frame rate")

    @property
    def duration(self) -> float:
        """Visual extent of the plan."""
        if not self.clips:
            return 0.0
        return self.clips[-1].timeline_end

    @property
    def output_duration(self) -> float:
        """Length of the artifact: the full song, or longer if the clips run past it."""
        return max(self.duration, self.audio_duration)

    @property
    def resolution(self) -> Tuple[int, int]:
        return (self.width, self.height)
