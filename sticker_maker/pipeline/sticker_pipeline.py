# pipeline/sticker_pipeline.py
import logging
from typing import Optional, Union

from ..models.color import Color, Seed
from ..models.parameters import DEFAULT_THICKNESS, DEFAULT_TOLERANCE, Parameters
from ..models.pixel_buffer import PixelBuffer
from ..services.closing_service import ClosingService
from ..services.color_service import ColorService
from ..services.flood_fill_service import FloodFillService
from ..services.image_service import ImageService
from ..services.outline_service import OutlineService

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
def render_sticker(
    source: PixelBuffer,
    seed: Optional[Seed] = None,
    target_color: Optional[Color] = None,
    tolerance: int = DEFAULT_TOLERANCE,
    thickness_px: int = DEFAULT_THICKNESS,
    merge_gap_px: int = 0,
    *,
    color_service: ColorService = ColorService(),
    flood_fill_service: FloodFillService = FloodFillService(),
    closing_service: ClosingService = ClosingService(),
    outline_service: OutlineService = OutlineService(),
) -> PixelBuffer:
    """
    One full run on a decoded source, which is never modified:
        • remove the background region around seed (if any)
        • bridge fragments closer than merge_gap_px (if > 0)
        • pad with a white outline of thickness_px
    Returns a new PixelBuffer.
    """
    params = Parameters(tolerance, thickness_px, merge_gap_px).clamped()
    clean = source.copy()

    if seed is not None:
        target = target_color or color_service.pick_color(source, seed.x, seed.y)
        if target is None:
            logger.info(f"Seed ({seed.x},{seed.y}) is transparent or off-canvas; skipping removal")
        else:
            threshold = color_service.threshold_for(params.tolerance)
            flood_fill_service.remove(clean, seed, target, threshold)

    silhouette = clean.opaque_mask()
    if params.merge_gap_px > 0:
        silhouette = closing_service.close(silhouette, params.merge_gap_px)

    sticker = outline_service.compose(
        clean,
        params.thickness_px,
        params.merge_gap_px,
        silhouette=silhouette,
    )
    logger.info(
        f"Rendered sticker {source.width}x{source.height} -> {sticker.width}x{sticker.height} "
        f"(tol={params.tolerance}, thickness={params.thickness_px}, gap={params.merge_gap_px})"
    )
    return sticker


def process_sticker(
    image: Union[bytes, PixelBuffer],
    seed: Optional[Seed] = None,
    target_color: Optional[Color] = None,
    tolerance: int = DEFAULT_TOLERANCE,
    thickness_px: int = DEFAULT_THICKNESS,
    merge_gap_px: int = 0,
    *,
    mime_type: Optional[str] = None,
    image_service: ImageService = ImageService(),
    **services,
) -> bytes:
    """
    Encoded image (or decoded buffer) in, sticker PNG bytes out.
    Deterministic for identical inputs.

    Raises:
        ImageDecodeError: image bytes are malformed or of an unsupported type.
        ImageEncodeError: the result could not be written as PNG.
    """
    source = image if isinstance(image, PixelBuffer) else image_service.decode(image, mime_type)
    sticker = render_sticker(
        source,
        seed,
        target_color,
        tolerance,
        thickness_px,
        merge_gap_px,
        **services,
    )
    return image_service.encode(sticker)
