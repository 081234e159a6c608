"""Exception hierarchy for Music Video Maker.

Analysis errors are terminal for a single analysis request. Composition
errors are terminal for a single export job. Nothing in the package
retries on its own.
"""


class MusicVideoError(Exception):
    """Base exception for all package errors."""
    pass


class AnalysisError(MusicVideoError):
    """Base exception for audio analysis failures."""
    pass


class AudioLoadError(AnalysisError):
    """The audio source could not be read or decoded."""
    pass


class EmptySamplesError(AnalysisError):
    """Decoding produced zero samples."""

    def __init__(self, message: str = "Audio buffer contains no samples"):
        super().__init__(message)


class InvalidFormatError(AnalysisError):
    """Sample buffer, sample rate or duration is unusable."""
    pass


class CompositionError(MusicVideoError):
    """Base exception for composition/export failures."""
    pass


class NoClipsProvidedError(CompositionError):
    """The timeline has no clips to compose."""

    def __init__(self, message: str = "No video clips provided"):
        super().__init__(message)


class AssetLoadError(CompositionError):
    """The song's audio track could not be loaded."""
    pass


class ExportFailedError(CompositionError):
    """Rendering the artifact failed."""
    pass


class CompositionCancelledError(CompositionError):
    """The caller cancelled the export."""

    def __init__(self, message: str = "Export was cancelled"):
        super().__init__(message)
