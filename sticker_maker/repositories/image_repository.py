from io import BytesIO
from pathlib import Path
from typing import Optional, Union
import logging
import os

import numpy as np
from dotenv import load_dotenv
from PIL import Image as PILImage, ImageOps, UnidentifiedImageError

from ..exceptions import ImageDecodeError, ImageEncodeError, UnsupportedImageTypeError
from ..models.pixel_buffer import PixelBuffer

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Pillow format name -> MIME type
SUPPORTED_FORMATS = {"JPEG": "image/jpeg", "PNG": "image/png", "WEBP": "image/webp"}
# single-channel modes holding more than 8 bits per sample (16-bit PNG)
HIGH_DEPTH_MODES = ("I", "I;16", "I;16L", "I;16B", "I;16N")


def to_eight_bit(pil_image: PILImage.Image) -> PILImage.Image:
    """Scale 16-bit grayscale samples down to 8 bits by keeping the high byte."""
    if pil_image.mode not in HIGH_DEPTH_MODES:
        return pil_image
    values = np.array(pil_image).astype(np.int64) >> 8
    return PILImage.fromarray(np.clip(values, 0, 255).astype(np.uint8))


class ImageRepository:
    """
    Handles byte/file I/O for PixelBuffer entities.
    """
    def __init__(self):
        default_types = ",".join(SUPPORTED_FORMATS.values())
        self.ALLOWED_MIME_TYPES = {
            t.strip().lower()
            for t in os.getenv("ALLOWED_MIME_TYPES", default_types).split(",")
            if t.strip()
        }

    def is_supported_type(self, mime_type: Optional[str]) -> bool:
        if not mime_type:
            return False
        return mime_type.split(";")[0].strip().lower() in self.ALLOWED_MIME_TYPES

    def decode(self, data: bytes, mime_type: Optional[str] = None) -> PixelBuffer:
        """
        Decode a JPEG/PNG/WebP payload into an RGBA PixelBuffer.
        mime_type, when given, must be one of the allowed upload types.
        """
        if mime_type is not None and not self.is_supported_type(mime_type):
            raise UnsupportedImageTypeError(f"Unsupported image type: {mime_type}")
        if not data:
            raise ImageDecodeError("Empty image payload")

        try:
            with PILImage.open(BytesIO(data)) as pil_image:
                fmt = pil_image.format
                if fmt not in SUPPORTED_FORMATS:
                    raise UnsupportedImageTypeError(f"Unsupported image format: {fmt}")
                # pixel coordinates follow the orientation the photo is displayed in
                upright = ImageOps.exif_transpose(pil_image)
                rgba = to_eight_bit(upright).convert("RGBA")
        except UnsupportedImageTypeError:
            raise
        except (UnidentifiedImageError, OSError, ValueError, SyntaxError, PILImage.DecompressionBombError) as err:
            raise ImageDecodeError(f"Could not decode image: {err}") from err

        pixels = np.array(rgba, dtype=np.uint8)
        logger.debug(f"Decoded {fmt} image: {rgba.width}x{rgba.height}")
        return PixelBuffer(pixels=pixels)

    def load(self, path: Union[str, Path]) -> PixelBuffer:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Image not found or unreadable: {path}")
        return self.decode(path.read_bytes())

    @staticmethod
    def encode_png(buffer: PixelBuffer) -> bytes:
        """Serialise to PNG. No metadata is written, so equal buffers give equal bytes."""
        try:
            pil_image = PILImage.fromarray(np.ascontiguousarray(buffer.pixels))
            out = BytesIO()
            pil_image.save(out, format="PNG")
        except (OSError, ValueError, TypeError) as err:
            raise ImageEncodeError(f"Could not encode PNG: {err}") from err
        return out.getvalue()

    def save(self, buffer: PixelBuffer, path: Union[str, Path]) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.encode_png(buffer))
