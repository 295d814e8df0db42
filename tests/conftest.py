from io import BytesIO

import numpy as np
import pytest
from PIL import Image as PILImage

from sticker_maker.models.pixel_buffer import PixelBuffer


def make_buffer(rgb, alpha=255) -> PixelBuffer:
    """(H, W, 3) colours (or a single colour + shape) -> opaque PixelBuffer."""
    rgb = np.asarray(rgb, dtype=np.uint8)
    h, w = rgb.shape[:2]
    pixels = np.zeros((h, w, 4), dtype=np.uint8)
    pixels[:, :, :3] = rgb
    pixels[:, :, 3] = alpha
    return PixelBuffer(pixels)


def solid(width, height, color=(255, 255, 255), alpha=255) -> PixelBuffer:
    rgb = np.zeros((height, width, 3), dtype=np.uint8)
    rgb[:, :] = color
    return make_buffer(rgb, alpha)


def checkerboard(size=4, a=(255, 255, 255), b=(0, 0, 0)) -> PixelBuffer:
    rgb = np.zeros((size, size, 3), dtype=np.uint8)
    for y in range(size):
        for x in range(size):
            rgb[y, x] = a if (x + y) % 2 == 0 else b
    return make_buffer(rgb)


def two_squares(width=20, height=12, size=4, left=3, spacing=5, top=4) -> np.ndarray:
    """Two size x size squares with *spacing* empty columns between them."""
    mask = np.zeros((height, width), dtype=bool)
    mask[top:top + size, left:left + size] = True
    right = left + size + spacing
    mask[top:top + size, right:right + size] = True
    return mask


def encode(buffer: PixelBuffer, fmt="PNG") -> bytes:
    pil = PILImage.fromarray(buffer.pixels)
    if fmt in ("JPEG", "GIF"):
        pil = pil.convert("RGB")
    out = BytesIO()
    pil.save(out, format=fmt)
    return out.getvalue()


def decode(data: bytes) -> np.ndarray:
    return np.array(PILImage.open(BytesIO(data)).convert("RGBA"))


@pytest.fixture
def white_4x4() -> PixelBuffer:
    return solid(4, 4)
