from __future__ import annotations
from dataclasses import dataclass
import numpy as np


@dataclass
class PixelBuffer:
    """
    Simple data object: RGBA pixels of one raster.
    Pixel (x, y) lives at pixels[y, x]; no OpenCV logic in this file.
    """
    pixels: np.ndarray  # Shape (H, W, 4), dtype uint8, RGBA order.

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"PixelBuffer expects (H, W, 4) RGBA pixels, got {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            self.pixels = self.pixels.astype(np.uint8)

    @classmethod
    def blank(cls, width: int, height: int) -> PixelBuffer:
        """Fully transparent buffer."""
        return cls(np.zeros((height, width, 4), dtype=np.uint8))

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[:, :, 3]

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def opaque_mask(self) -> np.ndarray:
        """Silhouette as a boolean (H, W) array: alpha != 0."""
        return self.pixels[:, :, 3] != 0

    def copy(self) -> PixelBuffer:
        return PixelBuffer(self.pixels.copy())
