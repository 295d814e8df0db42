from .pixel_buffer import PixelBuffer
from .color import Color, Seed
from .parameters import Parameters
from .processing_result import ProcessingResult
from .processor_state import ProcessingStatus, ProcessorState

__all__ = [
    "PixelBuffer",
    "Color",
    "Seed",
    "Parameters",
    "ProcessingResult",
    "ProcessingStatus",
    "ProcessorState",
]
