from __future__ import annotations
from dataclasses import dataclass, replace
import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_TOLERANCE = int(os.getenv("DEFAULT_TOLERANCE", "15"))
DEFAULT_THICKNESS = int(os.getenv("DEFAULT_THICKNESS", "15"))

TOLERANCE_RANGE = (0, 100)
THICKNESS_RANGE = (0, 50)
MERGE_GAP_RANGE = (0, 150)


def _clamp(value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return max(low, min(high, int(value)))


@dataclass(frozen=True)
class Parameters:
    """
    Value-object holding the three user controls.
    tolerance in percent, thickness and merge gap in pixels.
    """
    tolerance: int = DEFAULT_TOLERANCE        # [0 , 100]
    thickness_px: int = DEFAULT_THICKNESS     # [0 , 50]
    merge_gap_px: int = 0                     # [0 , 150]

    def clamped(self) -> Parameters:
        return Parameters(
            tolerance=_clamp(self.tolerance, TOLERANCE_RANGE),
            thickness_px=_clamp(self.thickness_px, THICKNESS_RANGE),
            merge_gap_px=_clamp(self.merge_gap_px, MERGE_GAP_RANGE),
        )

    def reset(self) -> Parameters:
        """Tolerance and thickness back to defaults; merge gap is kept."""
        return replace(self, tolerance=DEFAULT_TOLERANCE, thickness_px=DEFAULT_THICKNESS)

    def as_dict(self) -> dict:
        return {
            "tolerance": self.tolerance,
            "thickness": self.thickness_px,
            "merge_gap": self.merge_gap_px,
        }
