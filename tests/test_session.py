import threading

import pytest

from sticker_maker.exceptions import ImageDecodeError, ImageEncodeError
from sticker_maker.models.color import Color, Seed
from sticker_maker.models.parameters import DEFAULT_THICKNESS, DEFAULT_TOLERANCE
from sticker_maker.models.processor_state import ProcessingStatus
from sticker_maker.pipeline.session import StickerSession
from sticker_maker.pipeline.sticker_pipeline import render_sticker

from .conftest import encode, solid


@pytest.fixture
def png():
    buffer = solid(6, 4, color=(0, 255, 0))
    buffer.pixels[3, 5, 3] = 0
    return encode(buffer)


def test_new_session_is_idle():
    session = StickerSession("s1")
    assert session.state.status is ProcessingStatus.IDLE
    assert session.export() is None


def test_parameter_changes_without_image_do_not_run():
    session = StickerSession("s1")

    state = session.set_parameters(tolerance=40, thickness_px=99)

    assert state.status is ProcessingStatus.IDLE
    assert state.parameters.tolerance == 40
    assert state.parameters.thickness_px == 50
    assert state.result is None


def test_upload_renders_immediately(png):
    session = StickerSession("s1")

    state = session.upload(png, "image/png")

    assert state.status is ProcessingStatus.READY
    assert state.seed is None and state.target_color is None
    assert (state.result.width, state.result.height) == (6 + 2 * DEFAULT_THICKNESS, 4 + 2 * DEFAULT_THICKNESS)
    assert state.result.encoded.startswith(b"\x89PNG")


def test_pick_color_selects_and_reruns(png):
    session = StickerSession("s1")
    session.upload(png, "image/png")
    before = session.state.result.generation

    color = session.pick_color(1, 1)

    assert color == Color(0, 255, 0)
    assert session.state.seed == Seed(1, 1)
    assert session.state.result.generation > before


def test_pick_color_on_transparent_pixel_keeps_selection(png):
    session = StickerSession("s1")
    session.upload(png, "image/png")
    session.pick_color(0, 0)
    generation = session.generation

    assert session.pick_color(5, 3) is None
    assert session.state.seed == Seed(0, 0)
    assert session.generation == generation


def test_reset_keeps_merge_gap(png):
    session = StickerSession("s1")
    session.upload(png, "image/png")
    session.set_parameters(tolerance=70, thickness_px=3, merge_gap_px=12)
    session.pick_color(0, 0)

    state = session.reset()

    assert state.parameters.tolerance == DEFAULT_TOLERANCE
    assert state.parameters.thickness_px == DEFAULT_THICKNESS
    assert state.parameters.merge_gap_px == 12
    assert state.seed is None and state.target_color is None
    assert state.status is ProcessingStatus.READY


def test_parameters_persist_across_uploads(png):
    session = StickerSession("s1")
    session.set_parameters(thickness_px=2, merge_gap_px=5)
    session.upload(png, "image/png")
    session.pick_color(0, 0)

    state = session.upload(png, "image/png")

    assert state.parameters.thickness_px == 2
    assert state.parameters.merge_gap_px == 5
    assert state.seed is None
    assert state.result.width == 6 + 4


def test_decode_failure_goes_idle_and_keeps_previous_output(png):
    session = StickerSession("s1")
    session.upload(png, "image/png")
    previous = session.state.result

    with pytest.raises(ImageDecodeError):
        session.upload(b"nope", "image/png")

    assert session.state.status is ProcessingStatus.IDLE
    assert session.state.error
    assert session.state.result is previous


def test_encode_failure_keeps_previous_result(png, monkeypatch):
    session = StickerSession("s1")
    session.upload(png, "image/png")
    previous = session.state.result

    def fail(buffer):
        raise ImageEncodeError("no space left")

    monkeypatch.setattr(session.image_service, "encode", fail)
    with pytest.raises(ImageEncodeError):
        session.set_tolerance(50)

    assert session.state.result is previous
    assert session.state.status is ProcessingStatus.READY
    assert "no space left" in session.state.error


def test_stale_run_never_overwrites_newer_result(png):
    entered = threading.Event()
    release = threading.Event()
    calls = []

    def slow_first(source, **kwargs):
        calls.append(kwargs["tolerance"])
        if kwargs["tolerance"] == 10:
            entered.set()
            release.wait(timeout=10)
        return render_sticker(source, **kwargs)

    session = StickerSession("s1", renderer=slow_first)
    session.upload(png, "image/png")

    worker = threading.Thread(target=session.set_tolerance, args=(10,))
    worker.start()
    assert entered.wait(timeout=10)

    session.set_tolerance(20)
    fresh = session.state.result
    release.set()
    worker.join(timeout=10)

    assert calls[-2:] == [10, 20]
    assert session.state.result is fresh
    assert session.state.result.generation == session.generation
    assert session.state.parameters.tolerance == 20
    assert session.state.status is ProcessingStatus.READY


def test_export_uses_sticker_filename(png):
    session = StickerSession("s1")
    session.upload(png, "image/png")

    filename, data = session.export()

    assert filename.startswith("sticker_") and filename.endswith(".png")
    assert data == session.state.result.encoded


def test_clear_drops_image_but_keeps_parameters(png):
    session = StickerSession("s1")
    session.set_merge_gap(7)
    session.upload(png, "image/png")

    session.clear()

    assert session.state.source is None
    assert session.state.result is None
    assert session.state.parameters.merge_gap_px == 7


def test_parameter_change_during_first_upload_keeps_loading_status(png):
    session = StickerSession("s1")
    decoding = threading.Event()
    release = threading.Event()
    decode = session.image_service.decode

    def slow_decode(data, mime_type=None):
        decoding.set()
        release.wait(timeout=10)
        return decode(data, mime_type)

    session.image_service.decode = slow_decode
    worker = threading.Thread(target=session.upload, args=(png, "image/png"))
    worker.start()
    assert decoding.wait(timeout=10)

    state = session.set_tolerance(40)
    assert state.status is ProcessingStatus.LOADING
    assert state.result is None

    release.set()
    worker.join(timeout=10)

    assert session.state.status is ProcessingStatus.READY
    assert session.state.parameters.tolerance == 40
    assert session.state.result is not None
