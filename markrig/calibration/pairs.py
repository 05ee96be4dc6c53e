"""
Camera Pairs

Canonical enumeration of the unordered camera pairs of a rig. Every
pair-indexed container in the calibration session is sized and indexed
by this enumeration.
"""

from dataclasses import dataclass
from typing import List


def pairity(camera_count: int) -> int:
    """
    Number of unordered camera pairs for a rig.

    Args:
        camera_count: Number of cameras

    Returns:
        camera_count * (camera_count - 1) / 2
    """
    if camera_count < 0:
        raise ValueError(f"Camera count must be non-negative, got {camera_count}")
    return camera_count * (camera_count - 1) // 2


@dataclass(frozen=True)
class CameraPair:
    """One unordered camera pair, cam1 < cam2."""
    index: int
    cam1: int
    cam2: int

    @staticmethod
    def generate_array(camera_count: int) -> List["CameraPair"]:
        """
        Generate all pairs, cam1 ascending then cam2 ascending.

        Each pair's index equals its position in the returned list.
        """
        pairs = []
        index = 0
        for cam1 in range(camera_count):
            for cam2 in range(cam1 + 1, camera_count):
                pairs.append(CameraPair(index=index, cam1=cam1, cam2=cam2))
                index += 1

        assert len(pairs) == pairity(camera_count)
        return pairs


def generate_pairs(camera_count: int) -> List[CameraPair]:
    """
    Canonical pair list for a rig of camera_count cameras.

    Raises:
        ValueError: Negative camera count
    """
    if camera_count < 0:
        raise ValueError(f"Camera count must be non-negative, got {camera_count}")
    return CameraPair.generate_array(camera_count)


def pair_index(cam1: int, cam2: int, camera_count: int) -> int:
    """
    Index of the pair formed by two cameras, in either order.

    Closed form of the position generate_pairs() assigns.
    """
    if cam1 == cam2:
        raise ValueError(f"A pair needs two distinct cameras, got {cam1} twice")
    if cam1 > cam2:
        cam1, cam2 = cam2, cam1
    if cam1 < 0 or cam2 >= camera_count:
        raise ValueError(f"Cameras ({cam1}, {cam2}) out of range for {camera_count} cameras")

    # Pairs emitted before cam1's block, then offset within it
    before = cam1 * camera_count - cam1 * (cam1 + 1) // 2
    return before + (cam2 - cam1 - 1)
