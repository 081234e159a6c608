"""Media codec module for Music Video Maker.

This module defines the decode/render collaborator interfaces and the
librosa-based PCM source.
"""

from .interface import MediaBackend, PCMBuffer, PCMSource
from .decoder import LibrosaPCMSource

__all__ = ["MediaBackend", "PCMBuffer", "PCMSource", "LibrosaPCMSource"]
