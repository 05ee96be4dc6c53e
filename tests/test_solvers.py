"""
Tests for the OpenCV calibration adapters using exact synthetic projections.
"""

import pytest
import numpy as np
import cv2

from markrig.calibration.pattern import ChessboardPattern
from markrig.calibration.solvers import CameraParameters, single_calibrate, stereo_calibrate


K = np.array([
    [800.0, 0.0, 320.0],
    [0.0, 800.0, 240.0],
    [0.0, 0.0, 1.0],
])
NO_DISTORTION = np.zeros(5)
IMAGE_SIZE = (640, 480)

# Camera 2 relative to camera 1
R_12 = cv2.Rodrigues(np.array([0.0, 0.1, 0.0]))[0]
T_12 = np.array([[-0.1], [0.0], [0.0]])


def board_poses(count: int = 10):
    """Varied board poses roughly 0.5 m in front of camera 1."""
    rng = np.random.default_rng(3)
    poses = []
    for _ in range(count):
        rvec = rng.uniform(-0.4, 0.4, size=3)
        tvec = np.array([
            rng.uniform(-0.12, 0.02),
            rng.uniform(-0.08, 0.0),
            rng.uniform(0.45, 0.6),
        ])
        poses.append((rvec, tvec))
    return poses


def project(object_points, rvec, tvec):
    points, _ = cv2.projectPoints(object_points, rvec, tvec, K, NO_DISTORTION)
    return points.reshape(-1, 2).astype(np.float32)


class TestSingleCalibrate:

    def test_recovers_intrinsics(self):
        object_points = ChessboardPattern(rows=6, cols=9, square_length=0.025).object_points()
        poses = board_poses()
        image_points = [project(object_points, r, t) for r, t in poses]

        params = single_calibrate([object_points] * len(poses), image_points, IMAGE_SIZE)

        assert isinstance(params, CameraParameters)
        assert params.camera_matrix.shape == (3, 3)
        assert params.reprojection_error < 0.1
        np.testing.assert_allclose(params.camera_matrix[0, 0], 800.0, rtol=0.02)
        np.testing.assert_allclose(params.camera_matrix[1, 1], 800.0, rtol=0.02)
        np.testing.assert_allclose(params.camera_matrix[:2, 2], [320.0, 240.0], atol=8.0)


class TestStereoCalibrate:

    def test_recovers_relative_pose(self):
        object_points = ChessboardPattern(rows=6, cols=9, square_length=0.025).object_points()
        poses = board_poses()

        points1, points2 = [], []
        for rvec, tvec in poses:
            R_b = cv2.Rodrigues(rvec)[0]
            points1.append(project(object_points, rvec, tvec))

            R_2 = R_12 @ R_b
            t_2 = R_12 @ tvec.reshape(3, 1) + T_12
            points2.append(project(object_points, cv2.Rodrigues(R_2)[0], t_2))

        camera = CameraParameters(K.copy(), NO_DISTORTION.copy(), 0.0)
        params = stereo_calibrate([object_points] * len(poses), points1, points2, camera, camera)

        assert params.reprojection_error < 0.1
        np.testing.assert_allclose(params.rotation, R_12, atol=1e-3)
        np.testing.assert_allclose(params.translation, T_12, atol=1e-3)
        assert params.fundamental_matrix.shape == (3, 3)
