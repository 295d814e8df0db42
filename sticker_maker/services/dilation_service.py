import logging
import math
import os

import cv2
import numpy as np
from dotenv import load_dotenv

from ..models.pixel_buffer import PixelBuffer

load_dotenv()

logger = logging.getLogger(__name__)

DILATION_METHODS = ("exact", "stamp")
DEFAULT_METHOD = os.getenv("DILATION_METHOD", "exact")

WHITE = (255, 255, 255, 255)


def pad_mask(mask: np.ndarray, pad: int) -> np.ndarray:
    """Surround a boolean mask with *pad* transparent pixels on every side."""
    if pad <= 0:
        return mask.copy()
    return np.pad(mask, pad, mode="constant", constant_values=False)


def distance_to(points: np.ndarray) -> np.ndarray:
    """
    Exact Euclidean distance from every pixel to the nearest True pixel
    of *points*. Must contain at least one True pixel.
    """
    # distanceTransform measures the distance to the nearest zero pixel
    src = np.where(points, 0, 255).astype(np.uint8)
    return cv2.distanceTransform(src, cv2.DIST_L2, cv2.DIST_MASK_PRECISE)


def stamp_count(radius: int) -> int:
    """Angular samples keeping the stamping error below one pixel."""
    return max(36, math.ceil(radius * 2 * math.pi))


class DilationService:
    """
    Minkowski sum of a silhouette with a disk.

    • "exact": distance transform, pixel kept iff within radius of the silhouette.
    • "stamp": union of copies shifted around a circle of the given radius,
      each shift snapped to a grid point no farther out than the radius.
    Both return a canvas grown by radius (+ margin) on every side, with the
    source content offset by the same amount.
    """

    def __init__(self, method: str = DEFAULT_METHOD):
        if method not in DILATION_METHODS:
            raise ValueError(f"Unknown dilation method: {method}")
        self.method = method

    def dilate(self, mask: np.ndarray, radius: int, margin: int = 0) -> np.ndarray:
        """
        Args:
            mask (np.ndarray): (H, W) bool silhouette.
            radius (int): disk radius in pixels, rounded up.
            margin (int): extra transparent border beyond the radius.

        Returns:
            (np.ndarray): (H + 2*(radius+margin), W + 2*(radius+margin)) bool mask.
        """
        radius = max(0, int(math.ceil(radius)))
        pad = radius + max(0, margin)

        if radius == 0 or not mask.any():
            return pad_mask(mask, pad)

        if self.method == "exact":
            canvas = pad_mask(mask, pad)
            return distance_to(canvas) <= radius

        out = self._stamp(mask, radius)
        return pad_mask(out, margin)

    @staticmethod
    def _stamp(mask: np.ndarray, radius: int) -> np.ndarray:
        h, w = mask.shape
        out = pad_mask(mask, radius)
        steps = stamp_count(radius)
        offsets = set()
        for i in range(steps):
            angle = (i * math.pi * 2) / steps
            dx = math.cos(angle) * radius
            dy = math.sin(angle) * radius
            # integer neighbours of the sub-pixel shift that stay inside the disk
            for ox in {math.floor(dx), math.ceil(dx)}:
                for oy in {math.floor(dy), math.ceil(dy)}:
                    if ox * ox + oy * oy <= radius * radius:
                        offsets.add((ox, oy))

        for ox, oy in sorted(offsets):
            top, left = radius + oy, radius + ox
            out[top:top + h, left:left + w] |= mask
        return out

    def dilate_buffer(self, buffer: PixelBuffer, radius: int) -> PixelBuffer:
        """Dilate the opaque region of buffer into a solid-white PixelBuffer."""
        grown = self.dilate(buffer.opaque_mask(), radius)
        return solid_fill(grown)


def solid_fill(mask: np.ndarray, color=WHITE) -> PixelBuffer:
    """Opaque *color* where mask is set, fully transparent elsewhere."""
    pixels = np.zeros(mask.shape + (4,), dtype=np.uint8)
    pixels[mask] = color
    return PixelBuffer(pixels)
