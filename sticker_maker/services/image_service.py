from pathlib import Path
from typing import Optional, Union
import time

from ..models.pixel_buffer import PixelBuffer
from ..repositories.image_repository import ImageRepository


class ImageService:
    """I/O helpers.  No morphology here."""
    def __init__(self):
        self.image_repository = ImageRepository()

    def is_supported_type(self, mime_type: Optional[str]) -> bool:
        return self.image_repository.is_supported_type(mime_type)

    def decode(self, data: bytes, mime_type: Optional[str] = None) -> PixelBuffer:
        """Decode an uploaded payload (JPEG, PNG or WebP) into a PixelBuffer."""
        return self.image_repository.decode(data, mime_type)

    def load(self, path: Union[str, Path]) -> PixelBuffer:
        """Load a single image from disk into a PixelBuffer."""
        return self.image_repository.load(path)

    def encode(self, buffer: PixelBuffer) -> bytes:
        return self.image_repository.encode_png(buffer)

    def save(self, buffer: PixelBuffer, path: Union[str, Path]) -> None:
        """
        Business-level method to save the buffer as PNG to a specific path.
        """
        self.image_repository.save(buffer, path)

    @staticmethod
    def export_filename(now_ms: Optional[int] = None) -> str:
        """sticker_<unix millis>.png"""
        if now_ms is None:
            now_ms = int(time.time() * 1000)
        return f"sticker_{now_ms}.png"
