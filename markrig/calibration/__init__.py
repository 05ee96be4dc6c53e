"""Calibration module for camera intrinsics and pairwise extrinsics."""

from .pairs import CameraPair, generate_pairs, pair_index, pairity
from .pattern import CalibrationPattern, ChessboardPattern, CharucoPattern, create_pattern
from .solvers import CameraParameters, PairParameters, single_calibrate, stereo_calibrate
from .session import CalibrationData, CalibrationSession, CalibrationState

__all__ = [
    "CameraPair",
    "generate_pairs",
    "pair_index",
    "pairity",
    "CalibrationPattern",
    "ChessboardPattern",
    "CharucoPattern",
    "create_pattern",
    "CameraParameters",
    "PairParameters",
    "single_calibrate",
    "stereo_calibrate",
    "CalibrationData",
    "CalibrationSession",
    "CalibrationState",
]
