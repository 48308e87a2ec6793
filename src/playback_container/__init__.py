"""Playback container - overlay, supplement and hold-to-scrub state for a video player."""

__version__ = "0.1.0"
