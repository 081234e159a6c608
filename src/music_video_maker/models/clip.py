"""
Clip data models.

Defines a single video clip on the timeline together with its
transition and color grade settings.
"""

import uuid
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class VideoSource(str, Enum):
    """Where a clip's media came from."""
    LOCAL = "local"
    STOCK_FOOTAGE = "stock_footage"
    AI_GENERATED = "ai_generated"


class Transition(str, Enum):
    """Transition applied at the start of a clip."""
    NONE = "none"
    FADE = "fade"
    DISSOLVE = "dissolve"
    WIPE = "wipe"
    PUSH = "push"

    @property
    def duration(self) -> float:
        """Fixed transition length in seconds."""
        return TRANSITION_DURATIONS[self]

    @property
    def description(self) -> str:
        return self.value.capitalize()


TRANSITION_DURATIONS: Dict[Transition, float] = {
    Transition.NONE: 0.0,
    Transition.FADE: 0.5,
    Transition.DISSOLVE: 0.8,
    Transition.WIPE: 0.6,
    Transition.PUSH: 0.7,
}


class ColorPreset(str, Enum):
    """Named color grade presets."""
    NONE = "none"
    VINTAGE = "vintage"
    CINEMATIC = "cinematic"
    VIBRANT = "vibrant"
    BLACK_AND_WHITE = "black_and_white"
    COOL = "cool"
    WARM = "warm"
    DRAMATIC = "dramatic"

    @property
    def description(self) -> str:
        if self == ColorPreset.BLACK_AND_WHITE:
            return "Black & White"
        return self.value.capitalize()

    @property
    def parameters(self) -> Dict[str, float]:
        """The four grade parameters this preset selects."""
        return dict(PRESET_PARAMETERS[self])


# brightness, contrast, saturation, temperature
PRESET_PARAMETERS: Dict[ColorPreset, Dict[str, float]] = {
    ColorPreset.NONE: {"brightness": 0.0, "contrast": 0.0, "saturation": 0.0, "temperature": 0.0},
    ColorPreset.VINTAGE: {"brightness": -0.1, "contrast": 0.2, "saturation": -0.3, "temperature": 0.3},
    ColorPreset.CINEMATIC: {"brightness": -0.15, "contrast": 0.3, "saturation": -0.1, "temperature": -0.1},
    ColorPreset.VIBRANT: {"brightness": 0.1, "contrast": 0.2, "saturation": 0.5, "temperature": 0.0},
    ColorPreset.BLACK_AND_WHITE: {"brightness": 0.0, "contrast": 0.3, "saturation": -1.0, "temperature": 0.0},
    ColorPreset.COOL: {"brightness": 0.0, "contrast": 0.1, "saturation": 0.0, "temperature": -0.4},
    ColorPreset.WARM: {"brightness": 0.1, "contrast": 0.0, "saturation": 0.2, "temperature": 0.5},
    ColorPreset.DRAMATIC: {"brightness": -0.2, "contrast": 0.5, "saturation": 0.2, "temperature": -0.2},
}


class ColorGrade(BaseModel):
    """Normalized color adjustment, optionally selected through a preset.

    When ``preset`` is set its table values replace all four parameters
    during validation, so a grade is never observed half-applied.
    """
    model_config = ConfigDict(frozen=True)

    brightness: float = Field(0.0, ge=-1, le=1, description="Brightness offset")
    contrast: float = Field(0.0, ge=-1, le=1, description="Contrast adjustment")
    saturation: float = Field(0.0, ge=-1, le=1, description="Saturation adjustment")
    temperature: float = Field(0.0, ge=-1, le=1, description="Cool (-1) to warm (+1)")
    preset: Optional[ColorPreset] = Field(None, description="Named preset")

    @model_validator(mode="before")
    @classmethod
    def apply_preset(cls, data):
        if isinstance(data, dict) and data.get("preset") is not None:
            preset = ColorPreset(data["preset"])
            data = {**data, **preset.parameters, "preset": preset}
        return data

    @classmethod
    def from_preset(cls, preset: ColorPreset) -> "ColorGrade":
        return cls(preset=preset)

    def with_preset(self, preset: ColorPreset) -> "ColorGrade":
        """Return a new grade with all parameters taken from ``preset``."""
        return ColorGrade(preset=preset)

    def adjusted(self, **parameters: float) -> "ColorGrade":
        """Return a new grade with some parameters changed and no preset."""
        values = {
            "brightness": self.brightness,
            "contrast": self.contrast,
            "saturation": self.saturation,
            "temperature": self.temperature,
        }
        unknown = set(parameters) - set(values)
        if unknown:
            raise ValueError(f"Unknown color grade parameters: {sorted(unknown)}")
        values.update(parameters)
        return ColorGrade(**values)

    @property
    def is_neutral(self) -> bool:
        return not any((self.brightness, self.contrast, self.saturation, self.temperature))


class Clip(BaseModel):
    """Single video clip in the timeline.

    ``start_time`` is derived: the owning Timeline overwrites it on every
    mutation, so any value passed at construction is only provisional.
    """
    model_config = ConfigDict(frozen=True, use_enum_values=False)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="Unique identifier")
    media_path: str = Field(..., description="Path to the source media file")
    thumbnail_path: Optional[str] = Field(None, description="Path to a preview image")
    duration: float = Field(..., ge=0, description="Source media duration (seconds)")
    trim_start: float = Field(0.0, ge=0, description="Seconds trimmed from the beginning")
    trim_end: float = Field(0.0, ge=0, description="Seconds trimmed from the end")
    start_time: float = Field(0.0, ge=0, description="Start in the final video (derived)")
    transition: Transition = Field(Transition.FADE, description="Transition into this clip")
    color_grade: Optional[ColorGrade] = Field(None, description="Color adjustment")
    tags: Tuple[str, ...] = Field(default_factory=tuple, description="Content tags")
    source: VideoSource = Field(VideoSource.LOCAL, description="Media origin")

    @model_validator(mode="after")
    def validate_trims(self):
        if self.trim_start + self.trim_end > self.duration:
            raise ValueError(
                f"trim_start + trim_end ({self.trim_start + self.trim_end:.3f}s) "
                f"exceeds clip duration ({self.duration:.3f}s)"
            )
        return self

    @property
    def effective_duration(self) -> float:
        """Duration actually shown after trimming."""
        return max(0.0, self.duration - self.trim_start - self.trim_end)

    @property
    def end_time(self) -> float:
        return self.start_time + self.effective_duration

    @property
    def transition_duration(self) -> float:
        return self.transition.duration
