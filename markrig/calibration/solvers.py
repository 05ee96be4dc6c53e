"""
Calibration Solvers

Thin adapters over the OpenCV single-camera and stereo calibration
routines. Solver errors are not caught here; a degenerate sample set
surfaces as the cv2.error OpenCV raises.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import cv2
import numpy as np


@dataclass
class CameraParameters:
    """Intrinsic calibration of one camera."""
    camera_matrix: np.ndarray  # 3x3
    distortion_coefficients: np.ndarray
    reprojection_error: float


@dataclass
class PairParameters:
    """Extrinsic calibration of one camera pair (cam1 -> cam2)."""
    rotation: np.ndarray  # 3x3
    translation: np.ndarray  # 3x1
    fundamental_matrix: np.ndarray  # 3x3
    reprojection_error: float


def single_calibrate(
    object_points: List[np.ndarray],
    image_points: List[np.ndarray],
    image_size: Tuple[int, int],
) -> CameraParameters:
    """
    Calibrate camera intrinsics from pattern observations.

    Args:
        object_points: Pattern points, one (N, 3) array per sample
        image_points: Detected points, one (N, 2) array per sample
        image_size: (width, height) of the images

    Returns:
        CameraParameters with the RMS reprojection error
    """
    error, camera_matrix, dist_coeffs, _, _ = cv2.calibrateCamera(
        [np.asarray(p, dtype=np.float32) for p in object_points],
        [np.asarray(p, dtype=np.float32) for p in image_points],
        image_size,
        None,
        None,
    )

    return CameraParameters(
        camera_matrix=camera_matrix,
        distortion_coefficients=dist_coeffs.flatten(),
        reprojection_error=float(error),
    )


def stereo_calibrate(
    object_points: List[np.ndarray],
    image_points1: Sequence[np.ndarray],
    image_points2: Sequence[np.ndarray],
    camera1: CameraParameters,
    camera2: CameraParameters,
) -> PairParameters:
    """
    Calibrate the relative pose of two cameras with known intrinsics.

    The intrinsics are held fixed, so the image size argument OpenCV
    requires is not used for anything.

    Returns:
        PairParameters with rotation/translation from camera 1 to camera 2
    """
    result = cv2.stereoCalibrate(
        [np.asarray(p, dtype=np.float32) for p in object_points],
        [np.asarray(p, dtype=np.float32) for p in image_points1],
        [np.asarray(p, dtype=np.float32) for p in image_points2],
        camera1.camera_matrix,
        camera1.distortion_coefficients,
        camera2.camera_matrix,
        camera2.distortion_coefficients,
        (1, 1),
        flags=cv2.CALIB_FIX_INTRINSIC,
    )
    error, _, _, _, _, rotation, translation, _, fundamental = result

    return PairParameters(
        rotation=rotation,
        translation=translation,
        fundamental_matrix=fundamental,
        reprojection_error=float(error),
    )
