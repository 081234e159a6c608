"""Configuration management for Music Video Maker."""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Output locations
    output_dir: str = "./data/exports"

    # Audio analysis
    segment_length: float = 10.0  # seconds per analysis segment
    tempo_window: float = 3.0  # seconds of audio used for tempo estimation
    analysis_workers: int = 1  # 1 = compute segments sequentially

    # Composition / export
    progress_interval: float = 0.1  # seconds between progress callbacks
    video_codec: str = "libx264"
    audio_codec: str = "aac"
    video_bitrate: str = "10M"
    audio_bitrate: str = "192k"
    encoder_preset: str = "medium"
    render_threads: Optional[int] = None

    # Development
    debug: bool = False
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
