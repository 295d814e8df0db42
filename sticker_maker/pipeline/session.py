"""
Per-user sticker session.

Holds one ProcessorState record and replaces it on every transition.
Every upload, seed or parameter change starts a new run tagged with a
generation number; a run only publishes if no newer run was started in
the meantime, so a slow stale run can never overwrite a fresher result.
"""
from __future__ import annotations
from dataclasses import replace
from typing import Callable, Optional, Tuple
import logging
import threading

from ..exceptions import ImageDecodeError, ImageEncodeError
from ..models.color import Color, Seed
from ..models.parameters import Parameters
from ..models.pixel_buffer import PixelBuffer
from ..models.processing_result import ProcessingResult
from ..models.processor_state import ProcessingStatus, ProcessorState
from ..services.color_service import ColorService
from ..services.image_service import ImageService
from .sticker_pipeline import render_sticker

logger = logging.getLogger(__name__)

Renderer = Callable[..., PixelBuffer]


class StickerSession:
    """Manages state for a single user's sticker session."""

    def __init__(
        self,
        session_id: str,
        image_service: ImageService = None,
        color_service: ColorService = None,
        renderer: Renderer = render_sticker,
    ):
        self.session_id = session_id
        self.image_service = image_service or ImageService()
        self.color_service = color_service or ColorService()
        self.renderer = renderer
        self._state = ProcessorState()
        self._generation = 0
        self._uploads = 0
        self._lock = threading.Lock()

    @property
    def state(self) -> ProcessorState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    # ── transitions ──────────────────────────────────────────────────
    def _begin(self, **changes) -> Tuple[int, ProcessorState]:
        """Start a new generation and apply changes atomically."""
        with self._lock:
            self._generation += 1
            # a run only starts once a source is loaded, otherwise LOADING/IDLE stands
            status = ProcessingStatus.RUNNING if self._state.source is not None else self._state.status
            self._state = replace(self._state, status=status, **changes)
            return self._generation, self._state

    def _settle(self, generation: int, **changes) -> bool:
        """Apply changes only if generation is still the latest one."""
        with self._lock:
            if generation != self._generation:
                logger.info(
                    f"Session {self.session_id}: discarding stale run {generation} "
                    f"(latest is {self._generation})"
                )
                return False
            self._state = replace(self._state, **changes)
            return True

    def _trigger(self, **changes) -> ProcessorState:
        """Apply a seed/parameter change and recompute if an image is loaded."""
        generation, snapshot = self._begin(**changes)
        if snapshot.source is None:
            return snapshot
        self._run(generation, snapshot)
        return self._state

    def _run(self, generation: int, snapshot: ProcessorState) -> None:
        params = snapshot.parameters
        buffer = self.renderer(
            snapshot.source,
            seed=snapshot.seed,
            target_color=snapshot.target_color,
            tolerance=params.tolerance,
            thickness_px=params.thickness_px,
            merge_gap_px=params.merge_gap_px,
        )
        try:
            encoded = self.image_service.encode(buffer)
        except ImageEncodeError as err:
            logger.error(f"Session {self.session_id}: encode failed: {err}")
            fallback = ProcessingStatus.READY if self._state.result is not None else ProcessingStatus.IDLE
            self._settle(generation, status=fallback, error=str(err))
            raise

        result = ProcessingResult(buffer=buffer, encoded=encoded, generation=generation)
        if self._settle(generation, status=ProcessingStatus.READY, result=result, error=None):
            logger.info(
                f"Session {self.session_id}: run {generation} ready ({result.width}x{result.height})"
            )

    # ── public API ───────────────────────────────────────────────────
    def upload(self, data: bytes, mime_type: Optional[str] = None) -> ProcessorState:
        """
        Decode a new source image. Seed and colour are cleared, parameters kept.

        Raises:
            ImageDecodeError: state returns to IDLE with the error recorded,
                the previous image and result are left as they were.
        """
        with self._lock:
            self._uploads += 1
            token = self._uploads
            self._state = replace(self._state, status=ProcessingStatus.LOADING, error=None)

        try:
            source = self.image_service.decode(data, mime_type)
        except ImageDecodeError as err:
            logger.error(f"Session {self.session_id}: decode failed: {err}")
            with self._lock:
                if token == self._uploads:
                    self._state = replace(self._state, status=ProcessingStatus.IDLE, error=str(err))
            raise

        logger.info(f"Session {self.session_id}: loaded {source.width}x{source.height} image")
        with self._lock:
            if token != self._uploads:
                logger.info(f"Session {self.session_id}: upload superseded before decoding finished")
                return self._state
            self._generation += 1
            generation = self._generation
            self._state = replace(
                self._state,
                status=ProcessingStatus.RUNNING,
                source=source,
                seed=None,
                target_color=None,
                result=None,
            )
            snapshot = self._state
        self._run(generation, snapshot)
        return self._state

    def pick_color(self, x: int, y: int) -> Optional[Color]:
        """
        Select the background colour under (x, y) of the source image.
        A transparent or off-canvas pixel is ignored and returns None.
        """
        source = self._state.source
        if source is None:
            return None
        color = self.color_service.pick_color(source, x, y)
        if color is None:
            logger.debug(f"Session {self.session_id}: ignoring seed ({x},{y}) on transparent pixel")
            return None
        self._trigger(seed=Seed(x, y), target_color=color)
        return color

    def set_parameters(
        self,
        tolerance: Optional[int] = None,
        thickness_px: Optional[int] = None,
        merge_gap_px: Optional[int] = None,
    ) -> ProcessorState:
        current = self._state.parameters
        params = Parameters(
            tolerance=current.tolerance if tolerance is None else tolerance,
            thickness_px=current.thickness_px if thickness_px is None else thickness_px,
            merge_gap_px=current.merge_gap_px if merge_gap_px is None else merge_gap_px,
        ).clamped()
        return self._trigger(parameters=params)

    def set_tolerance(self, tolerance: int) -> ProcessorState:
        return self.set_parameters(tolerance=tolerance)

    def set_thickness(self, thickness_px: int) -> ProcessorState:
        return self.set_parameters(thickness_px=thickness_px)

    def set_merge_gap(self, merge_gap_px: int) -> ProcessorState:
        return self.set_parameters(merge_gap_px=merge_gap_px)

    def reset(self) -> ProcessorState:
        """Tolerance/thickness back to defaults, selection cleared; merge gap kept."""
        return self._trigger(
            parameters=self._state.parameters.reset(),
            seed=None,
            target_color=None,
            result=None,
        )

    def export(self) -> Optional[Tuple[str, bytes]]:
        """(filename, PNG bytes) of the current result, or None."""
        result = self._state.result
        if result is None:
            return None
        return self.image_service.export_filename(), result.encoded

    def clear(self) -> None:
        """Drop the image and result; any run still in flight becomes stale."""
        with self._lock:
            self._generation += 1
            self._uploads += 1
            self._state = ProcessorState(parameters=self._state.parameters)
