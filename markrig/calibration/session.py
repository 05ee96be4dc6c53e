"""
Calibration Session

Drives single-camera and pairwise stereo calibration of a camera rig from
a stream of synchronized framesets:
1. Each camera collects pattern observations until it has enough samples,
   then its intrinsics are solved once
2. Once both cameras of a pair are calibrated, the pair collects
   observations seen by both cameras at the same instant, then its
   extrinsics are solved once with the known intrinsics held fixed
3. The session is complete when every camera and every pair is ready

Detection is only attempted on every (skip + 1)-th frameset so the
per-call cost stays bounded while the board moves between samples.

Not thread safe; calls on one session must be serialized.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

import numpy as np

from .pairs import CameraPair, generate_pairs, pairity
from .pattern import CalibrationPattern
from .solvers import CameraParameters, PairParameters, single_calibrate, stereo_calibrate
from ..config import Parameters
from ..frames import Frameset
from ..utils.logging import calibration_log


class CalibrationState(Enum):
    """Progress of one camera or one camera pair."""
    UNINITIALIZED = "uninitialized"
    COLLECTING = "collecting"
    READY = "ready"


@dataclass
class CameraRecord:
    """Calibration progress and result of a single camera."""
    state: CalibrationState = CalibrationState.UNINITIALIZED
    samples: List[np.ndarray] = field(default_factory=list)
    parameters: Optional[CameraParameters] = None

    @property
    def ready(self) -> bool:
        return self.state == CalibrationState.READY


@dataclass
class PairRecord:
    """Calibration progress and result of a camera pair."""
    pair: CameraPair
    state: CalibrationState = CalibrationState.UNINITIALIZED
    # Appended in lockstep, always the same length
    samples1: List[np.ndarray] = field(default_factory=list)
    samples2: List[np.ndarray] = field(default_factory=list)
    parameters: Optional[PairParameters] = None

    @property
    def ready(self) -> bool:
        return self.state == CalibrationState.READY

    @property
    def collected(self) -> int:
        return len(self.samples1)


@dataclass
class CalibrationData:
    """Snapshot of the calibration results of a rig."""
    pairs: List[CameraPair]
    cameras: List[Optional[CameraParameters]]
    pair_parameters: List[Optional[PairParameters]]

    @property
    def arity(self) -> int:
        return len(self.cameras)

    def is_complete(self) -> bool:
        return (
            all(c is not None for c in self.cameras)
            and all(p is not None for p in self.pair_parameters)
        )

    def summary(self) -> Dict[str, float]:
        """Reprojection error of every solved camera and pair."""
        errors = {}
        for cam, params in enumerate(self.cameras):
            if params is not None:
                errors[f"camera {cam}"] = params.reprojection_error
        for pair, params in zip(self.pairs, self.pair_parameters):
            if params is not None:
                errors[f"pair {pair.cam1}-{pair.cam2}"] = params.reprojection_error
        return errors


SingleSolver = Callable[..., CameraParameters]
StereoSolver = Callable[..., PairParameters]


class CalibrationSession:
    """
    Incremental calibration of every camera and camera pair of a rig.

    Usage:
        session = CalibrationSession(parameters, arity=3, pattern=pattern)

        # In capture loop:
        if session.measure_frameset(frameset):
            data = session.calibration_data()

    The pattern and parameters are borrowed and must outlive the session.
    """

    def __init__(
        self,
        parameters: Parameters,
        arity: int,
        pattern: CalibrationPattern,
        single_solver: SingleSolver = single_calibrate,
        stereo_solver: StereoSolver = stereo_calibrate,
    ):
        """
        Initialize calibration session.

        Args:
            parameters: Source of CALIBRATION_FRAMES and CALIBRATION_SKIP
            arity: Number of cameras in the rig (>= 1)
            pattern: Calibration pattern detector
            single_solver: Intrinsics solver, see solvers.single_calibrate
            stereo_solver: Extrinsics solver, see solvers.stereo_calibrate
        """
        if arity < 1:
            raise ValueError(f"Calibration needs at least one camera, got arity {arity}")

        self._parameters = parameters
        self._arity = arity
        self._pattern = pattern
        self._single_solver = single_solver
        self._stereo_solver = stereo_solver
        self._pairs = generate_pairs(arity)

        self._frames_to_collect = 0
        self._frames_skip = 0
        self._frame_no = 0
        self._last_result = False
        self._cameras: List[CameraRecord] = []
        self._pair_records: List[PairRecord] = []

        self.reset()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def arity(self) -> int:
        return self._arity

    @property
    def pairs(self) -> List[CameraPair]:
        return list(self._pairs)

    @property
    def frames_to_collect(self) -> int:
        return self._frames_to_collect

    @property
    def frames_skip(self) -> int:
        return self._frames_skip

    @property
    def is_complete(self) -> bool:
        return (
            all(record.ready for record in self._cameras)
            and all(record.ready for record in self._pair_records)
        )

    # ------------------------------------------------------------------
    # Session control
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Re-read thresholds and drop all progress."""
        frames = self._parameters.get(Parameters.CALIBRATION_FRAMES)
        skip = self._parameters.get(Parameters.CALIBRATION_SKIP)
        if frames <= 0:
            raise ValueError(f"CALIBRATION_FRAMES must be positive, got {frames}")
        if skip < 0:
            raise ValueError(f"CALIBRATION_SKIP must be non-negative, got {skip}")

        self._frames_to_collect = frames
        self._frames_skip = skip
        self._frame_no = 0
        self._last_result = False

        self._cameras = [CameraRecord() for _ in range(self._arity)]
        self._pair_records = [PairRecord(pair=pair) for pair in self._pairs]
        assert len(self._pair_records) == pairity(self._arity)

        calibration_log.debug(
            f"Session reset: {self._arity} cameras, {len(self._pairs)} pairs, "
            f"{frames} samples each, skip {skip}"
        )

    def measure_frameset(self, frameset: Frameset) -> bool:
        """
        Feed one synchronized frameset into the session.

        Args:
            frameset: One frame per camera, invalid slots are ignored

        Returns:
            True when every camera and every pair is calibrated
        """
        if frameset.arity != self._arity:
            raise ValueError(
                f"Frameset arity {frameset.arity} does not match session arity {self._arity}"
            )

        frame_no = self._frame_no
        self._frame_no += 1
        if frame_no % (self._frames_skip + 1) != 0:
            return self._last_result

        result = True

        # Single cameras first, pairs need both of their cameras ready
        for cam, record in enumerate(self._cameras):
            if record.ready:
                continue
            if frameset.is_valid(cam):
                self._measure_camera(cam, record, frameset)
            result = result and record.ready

        for record in self._pair_records:
            if not record.ready and self._pair_can_measure(record.pair, frameset):
                self._measure_pair(record, frameset)
            result = result and record.ready

        self._last_result = result
        return result

    # ------------------------------------------------------------------
    # Progress and results
    # ------------------------------------------------------------------

    def camera_state(self, cam: int) -> CalibrationState:
        return self._camera_record(cam).state

    def pair_state(self, index: int) -> CalibrationState:
        return self._pair_record(index).state

    def camera_progress(self, cam: int) -> float:
        """Fraction of samples collected for a camera, 1.0 once solved."""
        record = self._camera_record(cam)
        return self._progress(record.state, len(record.samples))

    def pair_progress(self, index: int) -> float:
        """Fraction of samples collected for a pair, 1.0 once solved."""
        record = self._pair_record(index)
        return self._progress(record.state, record.collected)

    def camera_parameters(self, cam: int) -> Optional[CameraParameters]:
        return self._camera_record(cam).parameters

    def pair_parameters(self, index: int) -> Optional[PairParameters]:
        return self._pair_record(index).parameters

    def calibration_data(self) -> CalibrationData:
        return CalibrationData(
            pairs=list(self._pairs),
            cameras=[record.parameters for record in self._cameras],
            pair_parameters=[record.parameters for record in self._pair_records],
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _camera_record(self, cam: int) -> CameraRecord:
        if not 0 <= cam < self._arity:
            raise IndexError(f"Camera index {cam} out of range [0, {self._arity})")
        return self._cameras[cam]

    def _pair_record(self, index: int) -> PairRecord:
        if not 0 <= index < len(self._pair_records):
            raise IndexError(
                f"Pair index {index} out of range [0, {len(self._pair_records)})"
            )
        return self._pair_records[index]

    def _progress(self, state: CalibrationState, collected: int) -> float:
        if state == CalibrationState.UNINITIALIZED:
            return 0.0
        if state == CalibrationState.READY:
            return 1.0
        return min(collected / self._frames_to_collect, 1.0)

    def _object_points(self, count: int) -> List[np.ndarray]:
        return [self._pattern.object_points() for _ in range(count)]

    def _measure_camera(self, cam: int, record: CameraRecord, frameset: Frameset) -> None:
        frame = frameset[cam]
        image_points = self._pattern.match(frame.image)
        if image_points is None:
            return

        record.samples.append(image_points)
        record.state = CalibrationState.COLLECTING
        calibration_log.debug(
            f"Camera {cam}: sample {len(record.samples)}/{self._frames_to_collect}"
        )

        if len(record.samples) < self._frames_to_collect:
            return

        record.parameters = self._single_solver(
            self._object_points(len(record.samples)),
            record.samples,
            frame.size,
        )
        record.state = CalibrationState.READY
        record.samples = []
        calibration_log.info(
            f"Camera {cam} calibrated, reprojection error "
            f"{record.parameters.reprojection_error:.4f}"
        )

    def _pair_can_measure(self, pair: CameraPair, frameset: Frameset) -> bool:
        return (
            self._cameras[pair.cam1].ready
            and self._cameras[pair.cam2].ready
            and frameset.is_valid(pair.cam1)
            and frameset.is_valid(pair.cam2)
        )

    def _measure_pair(self, record: PairRecord, frameset: Frameset) -> None:
        pair = record.pair
        image_points1 = self._pattern.match(frameset[pair.cam1].image)
        if image_points1 is None:
            return
        image_points2 = self._pattern.match(frameset[pair.cam2].image)
        if image_points2 is None:
            return

        record.samples1.append(image_points1)
        record.samples2.append(image_points2)
        record.state = CalibrationState.COLLECTING
        calibration_log.debug(
            f"Pair {pair.cam1}-{pair.cam2}: sample "
            f"{record.collected}/{self._frames_to_collect}"
        )

        if record.collected < self._frames_to_collect:
            return

        calibration_log.debug(f"Calibrating pair {pair.cam1}-{pair.cam2}")
        record.parameters = self._stereo_solver(
            self._object_points(record.collected),
            record.samples1,
            record.samples2,
            self._cameras[pair.cam1].parameters,
            self._cameras[pair.cam2].parameters,
        )
        record.state = CalibrationState.READY
        record.samples1 = []
        record.samples2 = []
        calibration_log.info(
            f"Pair {pair.cam1}-{pair.cam2} calibrated, reprojection error "
            f"{record.parameters.reprojection_error:.4f}"
        )
