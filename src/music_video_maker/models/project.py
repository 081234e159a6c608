"""
Project data models.

A project ties a song (and its analysis) to the timeline being edited
and tracks where the project is in the analyze -> edit -> export flow.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .audio_analysis import AudioAnalysis
from .timeline import Timeline


class ProjectStatus(str, Enum):
    """Project lifecycle status shown to orchestration/UI."""
    ANALYZING = "analyzing"
    FETCHING_MEDIA = "fetching_media"
    READY = "ready"
    EXPORTING = "exporting"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def description(self) -> str:
        descriptions = {
            ProjectStatus.ANALYZING: "Analyzing audio...",
            ProjectStatus.FETCHING_MEDIA: "Fetching media...",
            ProjectStatus.READY: "Ready to edit",
            ProjectStatus.EXPORTING: "Exporting video...",
            ProjectStatus.COMPLETED: "Completed",
            ProjectStatus.FAILED: "Failed",
        }
        return descriptions[self]


class Song(BaseModel):
    """Audio track a video is built around."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="Unique identifier")
    path: str = Field(..., description="Path to the audio file")
    title: str = Field(..., description="Display title")
    duration: float = Field(..., ge=0, description="Duration in seconds")
    analysis: Optional[AudioAnalysis] = Field(None, description="Audio analysis result")
    lyrics: Optional[str] = Field(None, description="Transcribed lyrics")
    themes: List[str] = Field(default_factory=list, description="Extracted lyric themes")


class VideoProject(BaseModel):
    """A song plus the timeline of clips that will be rendered over it."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="Unique identifier")
    song: Song = Field(..., description="Backing song")
    timeline: Timeline = Field(default_factory=Timeline, description="Clips in play order")
    status: ProjectStatus = Field(ProjectStatus.ANALYZING, description="Lifecycle status")
    export_path: Optional[str] = Field(None, description="Last rendered artifact")
    export_duration: Optional[float] = Field(None, description="Length of the last rendered artifact (seconds)")
    skipped_clip_ids: List[str] = Field(default_factory=list, description="Clips left out of the last export")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    modified_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def total_duration(self) -> float:
        return self.timeline.total_duration

    def touch(self) -> None:
        self.modified_at = datetime.utcnow()
