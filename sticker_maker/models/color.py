from __future__ import annotations
from dataclasses import dataclass
import numpy as np


@dataclass(frozen=True)
class Color:
    """RGB colour value, each channel 0-255."""
    r: int
    g: int
    b: int

    def as_array(self) -> np.ndarray:
        return np.array([self.r, self.g, self.b], dtype=np.float64)

    def as_dict(self) -> dict:
        return {"r": self.r, "g": self.g, "b": self.b}


@dataclass(frozen=True)
class Seed:
    """Pixel coordinate the user clicked."""
    x: int
    y: int
