"""
Synchronized Frameset Source

Reads all cameras of a rig in lockstep and bundles the frames of one
capture instant into a Frameset. Every source is grabbed first and decoded
afterwards so the grab instants lie as close together as the backend
allows. A camera whose read fails yields an invalid slot instead of
stalling the whole rig.
"""

import time
from typing import Callable, Iterator, List, Optional, Sequence, Union

import cv2

from ..frames import Frame, Frameset
from ..utils.logging import capture_log


Source = Union[int, str]


def parse_source(value: str) -> Source:
    """Device indices are given as integers, anything else is a path or URL."""
    try:
        return int(value)
    except ValueError:
        return value


class VideoFramesetSource:
    """
    Lockstep reader over several OpenCV video sources.

    Usage:
        with VideoFramesetSource(["left.mp4", "right.mp4"]) as source:
            for frameset in source:
                session.measure_frameset(frameset)
    """

    def __init__(
        self,
        sources: Sequence[Source],
        capture_factory: Callable[[Source], cv2.VideoCapture] = cv2.VideoCapture,
        max_failures: int = 30,
    ):
        """
        Open every source.

        Args:
            sources: Device index or file path/URL per camera
            capture_factory: Builds a capture object for one source
            max_failures: Consecutive failed grabs after which a device
                source is given up; file sources end on the first one

        Raises:
            ValueError: No sources given
            RuntimeError: A source could not be opened
        """
        if not sources:
            raise ValueError("At least one video source is required")

        self.sources = list(sources)
        self._captures: List[cv2.VideoCapture] = []
        self.max_failures = max_failures
        self._exhausted = [False] * len(self.sources)
        self._failures = [0] * len(self.sources)
        self._frame_count = 0
        self._released = False

        for cam, source in enumerate(self.sources):
            cap = capture_factory(source)
            if not cap.isOpened():
                self.release()
                raise RuntimeError(f"Failed to open video source {source!r} for camera {cam}")
            self._captures.append(cap)
            capture_log.info(f"Camera {cam}: opened {source!r}")

    @property
    def arity(self) -> int:
        return len(self.sources)

    @property
    def frame_count(self) -> int:
        return self._frame_count

    def _timestamp(self, cam: int) -> float:
        if isinstance(self.sources[cam], int):
            return time.time()
        return self._captures[cam].get(cv2.CAP_PROP_POS_MSEC) / 1000.0

    def read(self) -> Optional[Frameset]:
        """
        Read the next frameset.

        Returns:
            Frameset with invalid slots for failed cameras, or None once
            every source is exhausted or the source has been released
        """
        if self._released:
            return None

        grabbed = [
            not self._exhausted[cam] and cap.grab()
            for cam, cap in enumerate(self._captures)
        ]

        frameset = Frameset(self.arity)
        for cam, cap in enumerate(self._captures):
            if self._exhausted[cam]:
                continue
            if not grabbed[cam]:
                self._grab_failed(cam)
                continue
            self._failures[cam] = 0

            ok, image = cap.retrieve()
            if ok and image is not None:
                frameset[cam] = Frame(timestamp=self._timestamp(cam), image=image)

        if not frameset.valid_indices() and all(self._exhausted):
            return None

        self._frame_count += 1
        return frameset

    def _grab_failed(self, cam: int) -> None:
        self._failures[cam] += 1
        if isinstance(self.sources[cam], str):
            self._exhausted[cam] = True
            capture_log.info(f"Camera {cam}: end of stream")
        elif self._failures[cam] >= self.max_failures:
            self._exhausted[cam] = True
            capture_log.warn(f"Camera {cam}: giving up after {self._failures[cam]} failed reads")
        else:
            capture_log.warn(f"Camera {cam}: no frame")

    def __iter__(self) -> Iterator[Frameset]:
        while True:
            frameset = self.read()
            if frameset is None:
                return
            yield frameset

    def release(self) -> None:
        """Release all captures."""
        for cap in self._captures:
            cap.release()
        self._captures = []
        self._released = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
