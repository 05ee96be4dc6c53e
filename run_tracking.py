#!/usr/bin/env python3
"""
markrig Tracking Runner

Tracks a single marked point independently in every camera of a rig.
Each camera is seeded with --mark; a camera whose track is lost stays
lost until it is seeded again.

Usage:
    python run_tracking.py left.mp4 right.mp4 --mark 0 320 240 --mark 1 300 250
    python run_tracking.py 0 1 --mark 0 640 360 --algorithm optical_flow
"""

import argparse
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from markrig.config import RigConfig
from markrig.capture import VideoFramesetSource, parse_source
from markrig.tracking import TrackingSession, TrackState, create_tracker, valid_positions
from markrig.utils.logging import tracking_log, set_log_level


def main():
    parser = argparse.ArgumentParser(description="markrig Marker Tracking")
    parser.add_argument(
        "sources",
        nargs="*",
        help="Video source per camera: device index or file path (default: from config)"
    )
    parser.add_argument(
        "--mark", "-m",
        type=float,
        nargs=3,
        action="append",
        default=[],
        metavar=("CAM", "X", "Y"),
        help="Seed position of the mark in one camera (repeatable)"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="YAML configuration file"
    )
    parser.add_argument(
        "--algorithm", "-a",
        choices=["template", "optical_flow"],
        default=None,
        help="Tracking algorithm (default: from config)"
    )
    parser.add_argument(
        "--max-frames",
        type=int,
        default=0,
        help="Stop after this many framesets (0 = until sources end)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log state transitions"
    )

    args = parser.parse_args()

    if args.verbose:
        set_log_level("DEBUG")

    config = RigConfig.load(args.config)
    if args.algorithm:
        config.tracking.algorithm = args.algorithm

    sources = [parse_source(s) for s in (args.sources or config.cameras)]
    if not sources:
        print("No video sources given! Pass them on the command line or in the config.")
        return 1
    if not args.mark:
        print("No marks given! Seed at least one camera with --mark CAM X Y.")
        return 1

    session = TrackingSession(len(sources), create_tracker(config.tracking))
    for cam, x, y in args.mark:
        session.set_mark(int(cam), (x, y))

    with VideoFramesetSource(sources) as source:
        for frameset in source:
            positset = session.track(frameset)

            positions = valid_positions(positset)
            text = " ".join(
                f"{cam}:({p[0]:.1f}, {p[1]:.1f})" for cam, p in sorted(positions.items())
            )
            tracking_log.info(f"frame {source.frame_count}: {text or 'no valid positions'}")

            states = [session.state(cam) for cam in range(session.arity)]
            if all(s in (TrackState.LOST, TrackState.UNINITIALIZED) for s in states):
                print("\nEvery seeded camera lost the mark, stopping.")
                return 1

            if args.max_frames and source.frame_count >= args.max_frames:
                break

    return 0


if __name__ == "__main__":
    sys.exit(main())
