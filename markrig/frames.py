"""
Framesets and Positsets

Fixed-size, per-camera slot containers. A Frameset carries one synchronized
capture instant; a Positset carries the tracked 2D position of the mark in
every camera. Each slot is independently flagged valid or invalid.
"""

from dataclasses import dataclass
from typing import Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar

import numpy as np


T = TypeVar("T")


@dataclass
class Frame:
    """A single camera image with its capture time."""
    timestamp: float
    image: np.ndarray

    @property
    def size(self) -> Tuple[int, int]:
        """Image size as (width, height)."""
        return (self.image.shape[1], self.image.shape[0])


class Slotset(Generic[T]):
    """Fixed-arity collection of optional items with per-slot validity."""

    def __init__(self, arity: int):
        if arity < 0:
            raise ValueError(f"Arity must be non-negative, got {arity}")
        self._items: List[Optional[T]] = [None] * arity
        self._valid: List[bool] = [False] * arity

    @property
    def arity(self) -> int:
        return len(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def _check(self, cam: int) -> None:
        if not 0 <= cam < len(self._items):
            raise IndexError(f"Camera index {cam} out of range [0, {len(self._items)})")

    def __getitem__(self, cam: int) -> Optional[T]:
        self._check(cam)
        return self._items[cam]

    def __setitem__(self, cam: int, item: T) -> None:
        """Store an item and mark its slot valid."""
        self._check(cam)
        self._items[cam] = item
        self._valid[cam] = True

    def __iter__(self) -> Iterator[Optional[T]]:
        return iter(self._items)

    def is_valid(self, cam: int) -> bool:
        self._check(cam)
        return self._valid[cam]

    def set_valid(self, cam: int, valid: bool = True) -> None:
        self._check(cam)
        self._valid[cam] = valid

    def valid_indices(self) -> List[int]:
        return [cam for cam, valid in enumerate(self._valid) if valid]

    def __repr__(self) -> str:
        slots = ", ".join(
            f"{cam}:{'ok' if valid else '--'}" for cam, valid in enumerate(self._valid)
        )
        return f"{type(self).__name__}({slots})"


class Frameset(Slotset[Frame]):
    """Synchronized bundle of per-camera frames for one capture instant."""

    @classmethod
    def from_images(
        cls,
        images: Sequence[Optional[np.ndarray]],
        timestamp: float = 0.0,
    ) -> "Frameset":
        """
        Build a frameset from raw images; None entries become invalid slots.

        Args:
            images: One image (or None) per camera
            timestamp: Capture time shared by all frames
        """
        frameset = cls(len(images))
        for cam, image in enumerate(images):
            if image is not None:
                frameset[cam] = Frame(timestamp=timestamp, image=image)
        return frameset


class Positset(Slotset[np.ndarray]):
    """Per-camera tracked 2D positions of the mark."""

    def __setitem__(self, cam: int, position) -> None:
        super().__setitem__(cam, np.asarray(position, dtype=np.float64).reshape(2))

    def store(self, cam: int, position, valid: bool) -> None:
        """Store a position with an explicit validity flag."""
        self[cam] = position
        self.set_valid(cam, valid)
