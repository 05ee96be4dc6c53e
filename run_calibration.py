#!/usr/bin/env python3
"""
markrig Calibration Runner

Feeds synchronized framesets from several video sources into a
calibration session until every camera and every camera pair is solved:
1. Intrinsics: lens parameters for each camera
2. Extrinsics: relative pose of each camera pair

Usage:
    python run_calibration.py 0 1 2
    python run_calibration.py left.mp4 right.mp4 --frames 15 --skip 10

Requirements:
    - Printed calibration pattern (chessboard or ChArUco)
"""

import argparse
import sys
from pathlib import Path

import numpy as np

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from markrig.config import RigConfig, Parameters
from markrig.calibration import CalibrationSession, create_pattern
from markrig.capture import VideoFramesetSource, parse_source
from markrig.utils.logging import calibration_log, set_log_level


def print_results(session: CalibrationSession) -> None:
    """Print the solved calibration of every camera and pair."""
    data = session.calibration_data()

    for cam, params in enumerate(data.cameras):
        print(f"\nCamera {cam}:")
        if params is None:
            print("  not calibrated")
            continue
        print(f"  camera matrix:\n{np.array2string(params.camera_matrix, precision=3)}")
        print(f"  distortion: {np.array2string(params.distortion_coefficients, precision=4)}")
        print(f"  reprojection error: {params.reprojection_error:.4f} px")

    for pair, params in zip(data.pairs, data.pair_parameters):
        print(f"\nPair {pair.cam1}-{pair.cam2}:")
        if params is None:
            print("  not calibrated")
            continue
        print(f"  rotation:\n{np.array2string(params.rotation, precision=4)}")
        print(f"  translation: {np.array2string(params.translation.flatten(), precision=4)}")
        print(f"  reprojection error: {params.reprojection_error:.4f} px")


def progress_due(frame_count: int, skip: int) -> bool:
    """True when the frame_count-th frameset (1-based) was measured, not skipped."""
    return (frame_count - 1) % (skip + 1) == 0


def progress_line(session: CalibrationSession) -> str:
    cameras = " ".join(
        f"{cam}:{session.camera_progress(cam):4.0%}" for cam in range(session.arity)
    )
    pairs = " ".join(
        f"{pair.cam1}-{pair.cam2}:{session.pair_progress(pair.index):4.0%}"
        for pair in session.pairs
    )
    return f"cameras [{cameras}] pairs [{pairs}]"


def main():
    parser = argparse.ArgumentParser(description="markrig Camera Calibration")
    parser.add_argument(
        "sources",
        nargs="*",
        help="Video source per camera: device index or file path (default: from config)"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="YAML configuration file"
    )
    parser.add_argument(
        "--frames", "-n",
        type=int,
        default=None,
        help="Samples to collect per camera and per pair"
    )
    parser.add_argument(
        "--skip", "-s",
        type=int,
        default=None,
        help="Framesets skipped between detection attempts"
    )
    parser.add_argument(
        "--max-frames",
        type=int,
        default=0,
        help="Stop after this many framesets (0 = until done)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log every collected sample"
    )

    args = parser.parse_args()

    if args.verbose:
        set_log_level("DEBUG")

    config = RigConfig.load(args.config)
    parameters = Parameters(config.calibration)
    if args.frames is not None:
        parameters.set(Parameters.CALIBRATION_FRAMES, args.frames)
    if args.skip is not None:
        parameters.set(Parameters.CALIBRATION_SKIP, args.skip)

    sources = [parse_source(s) for s in (args.sources or config.cameras)]
    if not sources:
        print("No video sources given! Pass them on the command line or in the config.")
        return 1

    pattern = create_pattern(config.calibration.pattern)
    session = CalibrationSession(parameters, len(sources), pattern)

    print(f"\nCalibrating {len(sources)} cameras, {len(session.pairs)} pairs")
    print(f"Collecting {session.frames_to_collect} samples each, skipping {session.frames_skip} framesets")
    print("-" * 50)

    done = False
    with VideoFramesetSource(sources) as source:
        for frameset in source:
            done = session.measure_frameset(frameset)
            if progress_due(source.frame_count, session.frames_skip):
                calibration_log.info(progress_line(session))
            if done:
                break
            if args.max_frames and source.frame_count >= args.max_frames:
                break

    print_results(session)

    if not done:
        print("\nCalibration incomplete: sources ran out before every camera and pair was solved.")
        return 1

    print("\nCalibration complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
