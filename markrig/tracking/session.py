"""
Tracking Session

Tracks one marked point independently in every camera of a rig. Each
camera runs its own clone of the tracking algorithm and advances through:

    UNINITIALIZED -> MARK_SET -> TRACKING -> LOST

A failed initialization keeps the camera in MARK_SET and it is retried on
the next frameset. A failed track moves the camera to LOST, where it stays
until set_mark() seeds it again. A camera whose frame slot is invalid is
skipped for that frameset and keeps its state.

Not thread safe; calls on one session must be serialized.
"""

from enum import Enum
from typing import List

import numpy as np

from .algorithms import InnerTracker
from ..frames import Frameset, Positset
from ..utils.logging import tracking_log


class TrackState(Enum):
    """Tracking state of a single camera."""
    UNINITIALIZED = "uninitialized"
    MARK_SET = "mark_set"
    TRACKING = "tracking"
    LOST = "lost"


class TrackingSession:
    """
    Per-camera mark tracking.

    Usage:
        session = TrackingSession(arity=3, inner_tracker=TemplateTracker())
        session.set_mark(0, (320, 240))

        # In capture loop:
        positset = session.track(frameset)
        if positset.is_valid(0):
            x, y = positset[0]
    """

    def __init__(self, arity: int, inner_tracker: InnerTracker):
        """
        Initialize tracking session.

        Args:
            arity: Number of cameras in the rig (>= 1)
            inner_tracker: Prototype algorithm, cloned once per camera
        """
        if arity < 1:
            raise ValueError(f"Tracking needs at least one camera, got arity {arity}")

        self._arity = arity
        self._trackers: List[InnerTracker] = [inner_tracker.clone() for _ in range(arity)]
        self._states: List[TrackState] = [TrackState.UNINITIALIZED] * arity
        self._positset = Positset(arity)

    @property
    def arity(self) -> int:
        return self._arity

    @property
    def positset(self) -> Positset:
        return self._positset

    def state(self, cam: int) -> TrackState:
        self._check_camera(cam)
        return self._states[cam]

    def tracker(self, cam: int) -> InnerTracker:
        self._check_camera(cam)
        return self._trackers[cam]

    def set_mark(self, cam: int, mark, project_other: bool = False) -> None:
        """
        Seed the tracked point of one camera.

        The seed is only a hint; the camera's output stays invalid until the
        algorithm locks onto it on a following track() call.

        Args:
            cam: Camera index
            mark: (x, y) seed position in pixels
            project_other: Propagate the seed to the other cameras. Not
                supported; passing True raises NotImplementedError.
        """
        self._check_camera(cam)
        if project_other:
            raise NotImplementedError("Projecting a mark into other cameras is not supported")

        self._positset.store(cam, mark, valid=False)
        self._states[cam] = TrackState.MARK_SET
        tracking_log.debug(f"Camera {cam}: mark set at {self._positset[cam]}")

    def track(self, frameset: Frameset) -> Positset:
        """
        Advance every camera by one frameset.

        Returns:
            The session's positset, updated in place
        """
        if frameset.arity != self._arity:
            raise ValueError(
                f"Frameset arity {frameset.arity} does not match session arity {self._arity}"
            )

        for cam in range(self._arity):
            if not frameset.is_valid(cam):
                # Dropped frame: no output this cycle, state unchanged
                self._positset.set_valid(cam, False)
                continue
            self._track_single(cam, frameset[cam])

        return self._positset

    def _check_camera(self, cam: int) -> None:
        if not 0 <= cam < self._arity:
            raise IndexError(f"Camera index {cam} out of range [0, {self._arity})")

    def _track_single(self, cam: int, frame) -> None:
        state = self._states[cam]
        tracker = self._trackers[cam]

        if state == TrackState.MARK_SET:
            success, position = tracker.initialize_tracking(frame, self._positset[cam])
            if success:
                self._positset.store(cam, position, valid=True)
                self._states[cam] = TrackState.TRACKING
                tracking_log.debug(f"Camera {cam}: tracking from {self._positset[cam]}")
            else:
                # Stay in MARK_SET, retried on the next frameset
                self._positset.set_valid(cam, False)

        elif state == TrackState.TRACKING:
            success, position = tracker.track(frame)
            if success:
                self._positset.store(cam, position, valid=True)
            else:
                self._states[cam] = TrackState.LOST
                self._positset.set_valid(cam, False)
                tracking_log.warn(f"Camera {cam}: track lost near {self._positset[cam]}")

        # UNINITIALIZED and LOST wait for set_mark()


def valid_positions(positset: Positset) -> dict:
    """Map of camera index to position for every valid slot."""
    return {cam: np.array(positset[cam]) for cam in positset.valid_indices()}
