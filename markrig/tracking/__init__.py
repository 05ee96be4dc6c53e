"""Per-camera mark tracking."""

from .algorithms import InnerTracker, OpticalFlowTracker, TemplateTracker, create_tracker
from .session import TrackingSession, TrackState, valid_positions

__all__ = [
    "InnerTracker",
    "OpticalFlowTracker",
    "TemplateTracker",
    "create_tracker",
    "TrackingSession",
    "TrackState",
    "valid_positions",
]
