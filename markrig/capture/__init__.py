"""Synchronized multi-camera frameset capture."""

from .source import VideoFramesetSource, parse_source

__all__ = ["VideoFramesetSource", "parse_source"]
