"""Input layer - audio file loading."""

from .loader import AudioLoader

__all__ = ["AudioLoader"]
