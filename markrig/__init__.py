"""
markrig: calibration and marker tracking for multi-camera rigs.
"""

__version__ = "0.1.0"

from .config import RigConfig, CalibrationConfig, TrackingConfig, PatternConfig, Parameters
from .frames import Frame, Frameset, Positset

__all__ = [
    "RigConfig",
    "CalibrationConfig",
    "TrackingConfig",
    "PatternConfig",
    "Parameters",
    "Frame",
    "Frameset",
    "Positset",
]
