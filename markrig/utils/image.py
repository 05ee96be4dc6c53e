"""Small image helpers shared by the pattern detectors and trackers."""

import cv2
import numpy as np


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert a BGR image to grayscale, pass grayscale through."""
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY) if len(image.shape) == 3 else image
