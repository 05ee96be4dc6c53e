"""
Single-Camera Mark Trackers

An inner tracker follows one marked point in the image stream of one
camera. The tracking session clones a prototype once per camera, so every
camera owns an independent instance with its own temporal state.

Available algorithms:
- TemplateTracker: normalized cross-correlation of a patch cut around the mark
- OpticalFlowTracker: pyramidal Lucas-Kanade flow of the mark point
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

import cv2
import numpy as np

from ..config import TrackingConfig
from ..frames import Frame
from ..utils.image import to_gray


def _inside(position: np.ndarray, shape: Tuple[int, ...], margin: int = 0) -> bool:
    h, w = shape[:2]
    x, y = position
    return margin <= x < w - margin and margin <= y < h - margin


class InnerTracker(ABC):
    """Tracking algorithm for a single camera."""

    @abstractmethod
    def clone(self) -> "InnerTracker":
        """New instance with the same settings and no temporal state."""

    @abstractmethod
    def initialize_tracking(
        self, frame: Optional[Frame], mark: np.ndarray
    ) -> Tuple[bool, np.ndarray]:
        """
        Lock onto the mark in a frame.

        Args:
            frame: Current frame, None if the camera delivered nothing
            mark: (2,) seed position in pixels

        Returns:
            Tuple of (success, refined position)
        """

    @abstractmethod
    def track(self, frame: Optional[Frame]) -> Tuple[bool, np.ndarray]:
        """
        Follow the mark into the next frame.

        Returns:
            Tuple of (success, updated position)
        """


class TemplateTracker(InnerTracker):
    """
    Template matching tracker.

    A square template around the seed is searched for in a window around
    the last known position; the track is lost when the best normalized
    correlation falls below the threshold.
    """

    def __init__(
        self,
        template_radius: int = 12,
        search_radius: int = 32,
        threshold: float = 0.6,
    ):
        self.template_radius = template_radius
        self.search_radius = search_radius
        self.threshold = threshold

        self._template: Optional[np.ndarray] = None
        self._position: Optional[np.ndarray] = None
        self.last_score: float = 0.0

    def clone(self) -> "TemplateTracker":
        return TemplateTracker(self.template_radius, self.search_radius, self.threshold)

    def initialize_tracking(self, frame, mark):
        mark = np.asarray(mark, dtype=np.float64).reshape(2)
        if frame is None:
            return False, mark

        gray = to_gray(frame.image)
        r = self.template_radius
        x, y = int(round(mark[0])), int(round(mark[1]))

        if not _inside(np.array([x, y]), gray.shape, margin=r):
            return False, mark

        self._template = gray[y - r:y + r + 1, x - r:x + r + 1].copy()
        self._position = np.array([x, y], dtype=np.float64)
        return True, self._position.copy()

    def track(self, frame):
        if self._template is None:
            return False, np.zeros(2)
        if frame is None:
            return False, self._position.copy()

        gray = to_gray(frame.image)
        h, w = gray.shape[:2]
        r = self.template_radius
        reach = self.search_radius + r
        x, y = int(round(self._position[0])), int(round(self._position[1]))

        x0, y0 = max(0, x - reach), max(0, y - reach)
        x1, y1 = min(w, x + reach + 1), min(h, y + reach + 1)
        window = gray[y0:y1, x0:x1]

        if window.shape[0] < self._template.shape[0] or window.shape[1] < self._template.shape[1]:
            return False, self._position.copy()

        scores = cv2.matchTemplate(window, self._template, cv2.TM_CCOEFF_NORMED)
        _, best, _, best_loc = cv2.minMaxLoc(scores)
        self.last_score = float(best)

        if not best >= self.threshold:
            return False, self._position.copy()

        self._position = np.array([x0 + best_loc[0] + r, y0 + best_loc[1] + r], dtype=np.float64)
        return True, self._position.copy()


class OpticalFlowTracker(InnerTracker):
    """
    Sparse optical flow tracker.

    The seed is refined to sub-pixel accuracy, then carried from frame to
    frame with pyramidal Lucas-Kanade flow.
    """

    def __init__(self, window: int = 21, levels: int = 3):
        self.window = window
        self.levels = levels

        self._previous: Optional[np.ndarray] = None
        self._point: Optional[np.ndarray] = None

    def clone(self) -> "OpticalFlowTracker":
        return OpticalFlowTracker(self.window, self.levels)

    @property
    def _criteria(self):
        return (cv2.TERM_CRITERIA_EPS | cv2.TERM_CRITERIA_COUNT, 30, 0.01)

    def initialize_tracking(self, frame, mark):
        mark = np.asarray(mark, dtype=np.float64).reshape(2)
        if frame is None:
            return False, mark

        gray = to_gray(frame.image)
        half = self.window // 2
        if not _inside(mark, gray.shape, margin=half):
            return False, mark

        point = mark.astype(np.float32).reshape(1, 1, 2)
        point = cv2.cornerSubPix(gray, point, (half, half), (-1, -1), self._criteria)

        self._previous = gray
        self._point = point
        return True, point.reshape(2).astype(np.float64)

    def track(self, frame):
        if self._point is None:
            return False, np.zeros(2)
        position = self._point.reshape(2).astype(np.float64)
        if frame is None:
            return False, position

        gray = to_gray(frame.image)
        point, status, _ = cv2.calcOpticalFlowPyrLK(
            self._previous,
            gray,
            self._point,
            None,
            winSize=(self.window, self.window),
            maxLevel=self.levels,
            criteria=self._criteria,
        )

        if point is None or status is None or not status.flatten()[0]:
            return False, position

        new_position = point.reshape(2).astype(np.float64)
        if not _inside(new_position, gray.shape):
            return False, position

        self._previous = gray
        self._point = point
        return True, new_position


def create_tracker(config: TrackingConfig) -> InnerTracker:
    """Build the prototype tracker described by a TrackingConfig."""
    if config.algorithm == "optical_flow":
        return OpticalFlowTracker(config.flow_window, config.flow_levels)
    return TemplateTracker(
        config.template_radius,
        config.search_radius,
        config.match_threshold,
    )
