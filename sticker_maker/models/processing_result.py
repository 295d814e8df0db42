from __future__ import annotations
from dataclasses import dataclass

from .pixel_buffer import PixelBuffer


@dataclass(frozen=True)
class ProcessingResult:
    """
    Final sticker raster plus its PNG encoding.
    generation identifies the run that produced it.
    """
    buffer: PixelBuffer
    encoded: bytes
    generation: int = 0

    @property
    def width(self) -> int:
        return self.buffer.width

    @property
    def height(self) -> int:
        return self.buffer.height
