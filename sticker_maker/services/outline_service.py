import logging
from typing import Optional

import numpy as np
from PIL import Image as PILImage

from ..models.pixel_buffer import PixelBuffer
from .dilation_service import DilationService, WHITE, solid_fill

logger = logging.getLogger(__name__)


def pad_buffer(buffer: PixelBuffer, pad: int) -> PixelBuffer:
    """Pad a buffer with TRANSPARENT pixels (no edge replication)."""
    if pad <= 0:
        return buffer.copy()
    pixels = np.pad(buffer.pixels, ((pad, pad), (pad, pad), (0, 0)), mode="constant")
    return PixelBuffer(pixels)


class OutlineService:
    """
    Business-level helper for the sticker outline.

    • Dilates the silhouette by the outline thickness into a solid backing.
    • Draws the cleaned image back on top, so only the ring shows the backing.
    """

    def __init__(self, dilation_service: DilationService = None, color=WHITE):
        self.dilation_service = dilation_service or DilationService()
        self.color = color

    @staticmethod
    def _composite(backing: PixelBuffer, overlay: PixelBuffer) -> PixelBuffer:
        """Source-over alpha blend of overlay onto backing (same size)."""
        out = PILImage.alpha_composite(
            PILImage.fromarray(backing.pixels),
            PILImage.fromarray(np.ascontiguousarray(overlay.pixels)),
        )
        return PixelBuffer(np.array(out, dtype=np.uint8))

    def compose(
        self,
        clean: PixelBuffer,
        thickness_px: int,
        merge_gap_px: int = 0,
        silhouette: Optional[np.ndarray] = None,
    ) -> PixelBuffer:
        """
        Args:
            clean (PixelBuffer): background-removed image.
            thickness_px (int): outline width.
            merge_gap_px (int): bridging gap already applied to silhouette;
                the backing is drawn whenever it or the thickness is non-zero.
            silhouette (np.ndarray | None): (H, W) bool backing shape,
                defaults to the opaque region of clean.

        Returns:
            (PixelBuffer): (W + 2*thickness) x (H + 2*thickness) sticker.
        """
        if thickness_px <= 0 and merge_gap_px <= 0:
            return clean.copy()

        if silhouette is None:
            silhouette = clean.opaque_mask()
        if silhouette.shape != (clean.height, clean.width):
            raise ValueError(
                f"Silhouette shape {silhouette.shape} does not match image {clean.height}x{clean.width}"
            )

        thickness_px = max(0, thickness_px)
        backing = solid_fill(self.dilation_service.dilate(silhouette, thickness_px), self.color)
        overlay = pad_buffer(clean, thickness_px)

        logger.debug(
            f"Outline thickness={thickness_px}: canvas {backing.width}x{backing.height}"
        )
        return self._composite(backing, overlay)
