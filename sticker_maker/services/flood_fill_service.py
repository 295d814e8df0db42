import logging

import cv2
import numpy as np

from ..models.color import Color, Seed
from ..models.pixel_buffer import PixelBuffer
from .color_service import ColorService

logger = logging.getLogger(__name__)

# 4-connectivity, write into the mask only, fill value 1
_FLOOD_FLAGS = 4 | cv2.FLOODFILL_MASK_ONLY | (1 << 8)


def fill_region(passable: np.ndarray, seed: Seed) -> np.ndarray:
    """
    Maximal 4-connected region of *passable* that contains *seed*.

    cv2.floodFill runs a seeded scanline work-stack over the raster and
    records visited pixels in a (H+2, W+2) mask, so every pixel is tested
    at most once and no recursion is involved.

    Args:
        passable (np.ndarray): (H, W) bool, pixels the region may grow into.
        seed (Seed): start pixel; must be passable.

    Returns:
        (np.ndarray): (H, W) bool region mask.
    """
    h, w = passable.shape
    if not passable[seed.y, seed.x]:
        return np.zeros((h, w), dtype=bool)

    raster = passable.astype(np.uint8)
    visited = np.zeros((h + 2, w + 2), dtype=np.uint8)
    cv2.floodFill(raster, visited, (int(seed.x), int(seed.y)), 0, 0, 0, _FLOOD_FLAGS)
    return visited[1:-1, 1:-1].astype(bool)


class FloodFillService:
    """
    Magic-wand background removal: zero the alpha of the connected region
    around a seed whose colour stays within a threshold of a fixed target.
    """

    def __init__(self):
        self.color_service = ColorService()

    def removable_region(
        self,
        buffer: PixelBuffer,
        seed: Seed,
        target: Color,
        threshold: float,
    ) -> np.ndarray:
        """Boolean mask of the pixels remove() would clear."""
        if not buffer.contains(seed.x, seed.y) or buffer.alpha[seed.y, seed.x] == 0:
            return np.zeros((buffer.height, buffer.width), dtype=bool)

        distances = self.color_service.distance_map(buffer.pixels[:, :, :3], target)
        passable = (distances <= threshold) & buffer.opaque_mask()
        # The clicked pixel always goes, whatever target colour was supplied.
        passable[seed.y, seed.x] = True
        return fill_region(passable, seed)

    def remove(
        self,
        buffer: PixelBuffer,
        seed: Seed,
        target: Color,
        threshold: float,
    ) -> PixelBuffer:
        """
        Mutates buffer in place: alpha := 0 on the removable region.
        Colour channels are left untouched. No-op when the seed is transparent.
        """
        region = self.removable_region(buffer, seed, target, threshold)
        removed = int(region.sum())
        if removed:
            buffer.pixels[:, :, 3][region] = 0
        logger.debug(f"Flood fill from ({seed.x},{seed.y}) removed {removed} pixels (thr={threshold:.2f})")
        return buffer
