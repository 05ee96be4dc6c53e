"""
Shared test fixtures for markrig testing.

Provides stub patterns, recording solvers, scripted trackers and
synthetic images.
"""

import pytest
import numpy as np
from typing import List, Optional, Sequence

from markrig.config import CalibrationConfig, Parameters
from markrig.calibration.solvers import CameraParameters, PairParameters
from markrig.frames import Frame, Frameset
from markrig.tracking.algorithms import InnerTracker


# ============================================================================
# Framesets
# ============================================================================

# A stub "board visible" image and a blank one
BOARD = np.ones((48, 64), dtype=np.uint8)
BLANK = np.zeros((48, 64), dtype=np.uint8)


def make_frameset(images: Sequence[Optional[np.ndarray]], timestamp: float = 0.0) -> Frameset:
    """Frameset with None entries as invalid slots."""
    return Frameset.from_images(images, timestamp)


def board_frameset(arity: int) -> Frameset:
    """Every camera sees the board."""
    return make_frameset([BOARD] * arity)


# ============================================================================
# Calibration stubs
# ============================================================================

class StubPattern:
    """Pattern that is found in every non-blank image."""

    def __init__(self, point_count: int = 4):
        self.point_count = point_count
        self.match_calls = 0

    def match(self, image: np.ndarray) -> Optional[np.ndarray]:
        self.match_calls += 1
        if not image.any():
            return None
        return np.full((self.point_count, 2), float(self.match_calls), dtype=np.float32)

    def object_points(self) -> np.ndarray:
        return np.zeros((self.point_count, 3), dtype=np.float32)


class RecordingSingleSolver:
    """Records every intrinsics solve and returns canned parameters."""

    def __init__(self):
        self.calls: List[dict] = []

    def __call__(self, object_points, image_points, image_size) -> CameraParameters:
        self.calls.append({
            "object_points": list(object_points),
            "image_points": list(image_points),
            "image_size": image_size,
        })
        return CameraParameters(
            camera_matrix=np.eye(3) * (len(self.calls) + 1),
            distortion_coefficients=np.zeros(5),
            reprojection_error=0.25,
        )


class RecordingStereoSolver:
    """Records every extrinsics solve and returns canned parameters."""

    def __init__(self):
        self.calls: List[dict] = []

    def __call__(self, object_points, image_points1, image_points2, camera1, camera2) -> PairParameters:
        self.calls.append({
            "object_points": list(object_points),
            "image_points1": list(image_points1),
            "image_points2": list(image_points2),
            "camera1": camera1,
            "camera2": camera2,
        })
        return PairParameters(
            rotation=np.eye(3),
            translation=np.array([[len(self.calls)], [0.0], [0.0]]),
            fundamental_matrix=np.zeros((3, 3)),
            reprojection_error=0.5,
        )


@pytest.fixture
def pattern():
    return StubPattern()


@pytest.fixture
def single_solver():
    return RecordingSingleSolver()


@pytest.fixture
def stereo_solver():
    return RecordingStereoSolver()


@pytest.fixture
def parameters():
    """Three samples per camera/pair, no skipping."""
    return Parameters(CalibrationConfig(calibration_frames=3, calibration_skip=0))


# ============================================================================
# Tracking stubs
# ============================================================================

class ScriptedTracker(InnerTracker):
    """
    Tracker whose outcomes are decided by the frames it is given.

    A frame image whose first pixel is 0 makes the algorithm fail;
    otherwise initialization refines the seed by +0.5 px and every track
    call moves the position by +1 px in x.
    """

    def __init__(self):
        self.position = None
        self.init_calls = 0
        self.track_calls = 0
        self.frames_seen: List[Optional[Frame]] = []

    def clone(self) -> "ScriptedTracker":
        return ScriptedTracker()

    @staticmethod
    def _ok(frame: Optional[Frame]) -> bool:
        return frame is not None and frame.image.flat[0] != 0

    def initialize_tracking(self, frame, mark):
        self.init_calls += 1
        self.frames_seen.append(frame)
        if not self._ok(frame):
            return False, np.asarray(mark, dtype=np.float64)
        self.position = np.asarray(mark, dtype=np.float64) + 0.5
        return True, self.position.copy()

    def track(self, frame):
        self.track_calls += 1
        self.frames_seen.append(frame)
        if not self._ok(frame):
            return False, self.position.copy()
        self.position = self.position + np.array([1.0, 0.0])
        return True, self.position.copy()


@pytest.fixture
def scripted_tracker():
    return ScriptedTracker()


# ============================================================================
# Synthetic images
# ============================================================================

def render_chessboard(
    rows: int = 6,
    cols: int = 9,
    square_px: int = 30,
    margin_px: int = 40,
) -> np.ndarray:
    """
    Render a chessboard with rows x cols inner corners.

    The board has (rows + 1) x (cols + 1) squares on a white margin.
    """
    height = (rows + 1) * square_px + 2 * margin_px
    width = (cols + 1) * square_px + 2 * margin_px
    image = np.full((height, width), 255, dtype=np.uint8)

    for r in range(rows + 1):
        for c in range(cols + 1):
            if (r + c) % 2 == 0:
                y0 = margin_px + r * square_px
                x0 = margin_px + c * square_px
                image[y0:y0 + square_px, x0:x0 + square_px] = 0
    return image


def render_blob(
    center: Sequence[float],
    shape: Sequence[int] = (240, 320),
    radius: int = 6,
) -> np.ndarray:
    """Textured bright square on a dark background, centered on center."""
    image = np.full(tuple(shape), 20, dtype=np.uint8)
    x, y = int(round(center[0])), int(round(center[1]))
    image[y - radius:y + radius + 1, x - radius:x + radius + 1] = 220
    # Asymmetric notch so correlation has a unique peak
    image[y - radius:y, x - radius:x] = 120
    return image


@pytest.fixture
def chessboard_image():
    return render_chessboard()
