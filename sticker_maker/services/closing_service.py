import logging

import numpy as np

from ..models.color import Seed
from ..models.pixel_buffer import PixelBuffer
from .dilation_service import DilationService, distance_to, solid_fill
from .flood_fill_service import fill_region

logger = logging.getLogger(__name__)

# transparent ring kept around the dilated canvas so its corner is exterior
EXTERIOR_MARGIN = 1


def boundary_points(exterior: np.ndarray, solid: np.ndarray) -> np.ndarray:
    """Exterior pixels with at least one 4-neighbour inside *solid*."""
    touches = np.zeros_like(solid)
    touches[1:, :] |= solid[:-1, :]
    touches[:-1, :] |= solid[1:, :]
    touches[:, 1:] |= solid[:, :-1]
    touches[:, :-1] |= solid[:, 1:]
    return exterior & touches


class ClosingService:
    """
    Bridges fragments closer than a gap without ever shrinking them.

    1) dilate the silhouette by gap
    2) flood the exterior from the canvas corner over transparent pixels
    3) collect exterior pixels touching the dilated shape
    4) carve a gap-radius disk around each of them out of the dilated shape
    """

    def __init__(self, dilation_service: DilationService = None):
        self.dilation_service = dilation_service or DilationService()

    def close(self, mask: np.ndarray, gap: int) -> np.ndarray:
        """
        Args:
            mask (np.ndarray): (H, W) bool silhouette.
            gap (int): bridging radius in pixels.

        Returns:
            (np.ndarray): (H, W) bool, a superset of mask.
        """
        if gap <= 0 or not mask.any():
            return mask.copy()

        h, w = mask.shape
        pad = gap + EXTERIOR_MARGIN
        dilated = self.dilation_service.dilate(mask, gap, margin=EXTERIOR_MARGIN)

        exterior = fill_region(~dilated, Seed(0, 0))
        edges = boundary_points(exterior, dilated)

        closed = dilated.copy()
        if edges.any():
            closed &= distance_to(edges) > gap

        closed = closed[pad:pad + h, pad:pad + w]
        # carving starts outside the gap-dilation, so it cannot reach the source
        closed |= mask

        logger.debug(
            f"Closing gap={gap}: {int(edges.sum())} boundary points, "
            f"{int(mask.sum())} -> {int(closed.sum())} opaque pixels"
        )
        return closed

    def close_buffer(self, buffer: PixelBuffer, gap: int) -> PixelBuffer:
        """Closed silhouette of buffer as a solid-white PixelBuffer of the same size."""
        return solid_fill(self.close(buffer.opaque_mask(), gap))
