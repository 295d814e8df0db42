from typing import Optional
import math

import numpy as np

from ..models.color import Color
from ..models.pixel_buffer import PixelBuffer

# sqrt(255² * 3) = 441.6729..., truncated: pure black and pure white stay
# just outside each other even at 100 % tolerance
MAX_DISTANCE = 441.67


class ColorService:
    """Euclidean RGB distance and the tolerance -> threshold mapping."""

    @staticmethod
    def distance(a: Color, b: Color) -> float:
        return math.sqrt((a.r - b.r) ** 2 + (a.g - b.g) ** 2 + (a.b - b.b) ** 2)

    @staticmethod
    def threshold_for(tolerance: float) -> float:
        """Map a 0-100 slider value to an absolute distance threshold."""
        return (tolerance / 100) * MAX_DISTANCE

    def matches(self, pixel: Color, target: Color, threshold: float) -> bool:
        return self.distance(pixel, target) <= threshold

    @staticmethod
    def distance_map(rgb: np.ndarray, target: Color) -> np.ndarray:
        """
        Args:
            rgb (np.ndarray): (H, W, 3) pixels.
            target (Color): reference colour.

        Returns:
            (np.ndarray): (H, W) float64 distances to target.
        """
        diff = rgb.astype(np.float64) - target.as_array()
        return np.sqrt(np.sum(diff * diff, axis=-1))

    @staticmethod
    def pick_color(buffer: PixelBuffer, x: int, y: int) -> Optional[Color]:
        """Colour under (x, y), or None when the pixel is transparent or off-canvas."""
        if not buffer.contains(x, y):
            return None
        r, g, b, a = (int(v) for v in buffer.pixels[y, x])
        if a == 0:
            return None
        return Color(r, g, b)
