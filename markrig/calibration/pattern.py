"""
Calibration Patterns

A calibration pattern is a known physical reference object. Detecting it in
an image yields the image coordinates of its reference points, which pair
with the fixed object coordinates returned by object_points().

Two families are provided:
- Chessboard: plain inner-corner grid
- ChArUco: ArUco markers combined with a chessboard, accepted only when
  the whole board is seen so every match lines up with object_points()
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

import cv2
import numpy as np

from ..config import PatternConfig
from ..utils.image import to_gray


# ArUco dictionary mapping
ARUCO_DICTS = {
    "DICT_4X4_50": cv2.aruco.DICT_4X4_50,
    "DICT_4X4_100": cv2.aruco.DICT_4X4_100,
    "DICT_4X4_250": cv2.aruco.DICT_4X4_250,
    "DICT_5X5_50": cv2.aruco.DICT_5X5_50,
    "DICT_5X5_100": cv2.aruco.DICT_5X5_100,
    "DICT_5X5_250": cv2.aruco.DICT_5X5_250,
    "DICT_6X6_50": cv2.aruco.DICT_6X6_50,
    "DICT_6X6_100": cv2.aruco.DICT_6X6_100,
    "DICT_6X6_250": cv2.aruco.DICT_6X6_250,
    "DICT_7X7_50": cv2.aruco.DICT_7X7_50,
    "DICT_7X7_100": cv2.aruco.DICT_7X7_100,
    "DICT_7X7_250": cv2.aruco.DICT_7X7_250,
}

SUBPIX_CRITERIA = (cv2.TERM_CRITERIA_EPS | cv2.TERM_CRITERIA_MAX_ITER, 30, 0.001)


class CalibrationPattern(ABC):
    """Detectable reference object used for calibration."""

    @abstractmethod
    def match(self, image: np.ndarray) -> Optional[np.ndarray]:
        """
        Find the pattern in an image.

        Returns:
            (N, 2) float32 image points, or None if the pattern is not found
        """

    @abstractmethod
    def object_points(self) -> np.ndarray:
        """(N, 3) float32 pattern points in pattern coordinates."""


class ChessboardPattern(CalibrationPattern):
    """Chessboard with rows x cols inner corners."""

    def __init__(self, rows: int = 6, cols: int = 9, square_length: float = 0.025):
        self.rows = rows
        self.cols = cols
        self.square_length = square_length

        grid = np.zeros((rows * cols, 3), np.float32)
        grid[:, :2] = np.mgrid[0:cols, 0:rows].T.reshape(-1, 2)
        self._object_points = grid * square_length

    @property
    def pattern_size(self) -> Tuple[int, int]:
        # OpenCV wants (points per row, points per column)
        return (self.cols, self.rows)

    def match(self, image: np.ndarray) -> Optional[np.ndarray]:
        gray = to_gray(image)
        flags = cv2.CALIB_CB_ADAPTIVE_THRESH | cv2.CALIB_CB_NORMALIZE_IMAGE
        found, corners = cv2.findChessboardCorners(gray, self.pattern_size, flags)
        if not found:
            return None

        corners = cv2.cornerSubPix(gray, corners, (5, 5), (-1, -1), SUBPIX_CRITERIA)
        return corners.reshape(-1, 2).astype(np.float32)

    def object_points(self) -> np.ndarray:
        return self._object_points.copy()


def create_charuco_board(
    squares_x: int = 7,
    squares_y: int = 5,
    square_length: float = 0.04,  # meters
    marker_length: float = 0.03,  # meters
    dictionary: str = "DICT_6X6_250",
) -> Tuple[cv2.aruco.CharucoBoard, cv2.aruco.Dictionary]:
    """
    Create a ChArUco board for calibration.

    Args:
        squares_x: Number of squares in X direction
        squares_y: Number of squares in Y direction
        square_length: Length of each square in meters
        marker_length: Length of ArUco marker in meters
        dictionary: ArUco dictionary name

    Returns:
        Tuple of (CharucoBoard, Dictionary)
    """
    if dictionary not in ARUCO_DICTS:
        raise ValueError(f"Unknown ArUco dictionary: {dictionary}")

    aruco_dict = cv2.aruco.getPredefinedDictionary(ARUCO_DICTS[dictionary])
    board = cv2.aruco.CharucoBoard(
        (squares_x, squares_y),
        square_length,
        marker_length,
        aruco_dict
    )
    return board, aruco_dict


class CharucoPattern(CalibrationPattern):
    """ChArUco board; a match requires every inner corner."""

    def __init__(
        self,
        squares_x: int = 7,
        squares_y: int = 5,
        square_length: float = 0.04,
        marker_length: float = 0.03,
        dictionary: str = "DICT_6X6_250",
    ):
        self.board, self.aruco_dict = create_charuco_board(
            squares_x, squares_y, square_length, marker_length, dictionary
        )
        self._object_points = np.asarray(
            self.board.getChessboardCorners(), dtype=np.float32
        ).reshape(-1, 3)
        self._detector = cv2.aruco.CharucoDetector(self.board)

    @property
    def corner_count(self) -> int:
        return len(self._object_points)

    def match(self, image: np.ndarray) -> Optional[np.ndarray]:
        gray = to_gray(image)
        charuco_corners, charuco_ids, _, _ = self._detector.detectBoard(gray)

        if charuco_ids is None or len(charuco_ids) < self.corner_count:
            return None

        order = np.argsort(charuco_ids.flatten())
        return charuco_corners.reshape(-1, 2)[order].astype(np.float32)

    def object_points(self) -> np.ndarray:
        return self._object_points.copy()

    def generate_image(self, size: Tuple[int, int], margin: int = 0) -> np.ndarray:
        """Render the board, e.g. for printing or synthetic tests."""
        return self.board.generateImage(size, marginSize=margin)


def create_pattern(config: PatternConfig) -> CalibrationPattern:
    """Build the pattern described by a PatternConfig."""
    if config.type == "chessboard":
        return ChessboardPattern(config.rows, config.cols, config.square_length)
    return CharucoPattern(
        config.cols,
        config.rows,
        config.square_length,
        config.marker_length,
        config.dictionary,
    )
