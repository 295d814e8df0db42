from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .color import Color, Seed
from .parameters import Parameters
from .pixel_buffer import PixelBuffer
from .processing_result import ProcessingResult


class ProcessingStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    RUNNING = "running"
    READY = "ready"


@dataclass(frozen=True)
class ProcessorState:
    """
    Snapshot of one sticker session. Never mutated: every transition
    builds a new record with dataclasses.replace().
    """
    status: ProcessingStatus = ProcessingStatus.IDLE
    source: Optional[PixelBuffer] = None
    parameters: Parameters = field(default_factory=Parameters)
    seed: Optional[Seed] = None
    target_color: Optional[Color] = None
    result: Optional[ProcessingResult] = None
    error: Optional[str] = None

    @property
    def is_processing(self) -> bool:
        return self.status in (ProcessingStatus.LOADING, ProcessingStatus.RUNNING)

    def summary(self) -> dict:
        """JSON-friendly view (no pixel data)."""
        return {
            "status": self.status.value,
            "is_processing": self.is_processing,
            "has_source": self.source is not None,
            "source_size": [self.source.width, self.source.height] if self.source is not None else None,
            "parameters": self.parameters.as_dict(),
            "seed": {"x": self.seed.x, "y": self.seed.y} if self.seed else None,
            "target_color": self.target_color.as_dict() if self.target_color else None,
            "result_size": [self.result.width, self.result.height] if self.result else None,
            "generation": self.result.generation if self.result else None,
            "error": self.error,
        }
