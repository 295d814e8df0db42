import numpy as np
import pytest

from sticker_maker.services.dilation_service import DilationService, stamp_count

from .conftest import solid


def dot(size=1):
    return np.ones((size, size), dtype=bool)


def test_exact_dilation_of_a_point_is_a_disk():
    out = DilationService("exact").dilate(dot(), 3)

    assert out.shape == (7, 7)
    # integer points with x² + y² <= 9
    assert int(out.sum()) == 29
    assert out[3, 0] and out[0, 3] and out[3, 6] and out[6, 3]
    assert not out[0, 0]


@pytest.mark.parametrize("method", ["exact", "stamp"])
def test_output_is_padded_by_radius_and_contains_source(method):
    mask = np.zeros((5, 8), dtype=bool)
    mask[1:4, 2:6] = True

    out = DilationService(method).dilate(mask, 4)

    assert out.shape == (5 + 8, 8 + 8)
    assert (out[4:9, 4:12] | ~mask).all()


@pytest.mark.parametrize("method", ["exact", "stamp"])
def test_margin_adds_transparent_border(method):
    out = DilationService(method).dilate(dot(2), 2, margin=3)

    assert out.shape == (2 + 10, 2 + 10)
    assert not out[:3].any() and not out[-3:].any()
    assert not out[:, :3].any() and not out[:, -3:].any()


def test_zero_radius_and_empty_mask_are_padded_copies():
    service = DilationService()
    mask = np.zeros((3, 3), dtype=bool)
    mask[1, 1] = True

    assert np.array_equal(service.dilate(mask, 0), mask)
    empty = service.dilate(np.zeros((3, 3), dtype=bool), 5)
    assert empty.shape == (13, 13) and not empty.any()


def test_stamp_count_keeps_angular_step_under_a_pixel():
    assert stamp_count(0) == 36
    assert stamp_count(5) == 36
    assert stamp_count(10) == 63
    assert stamp_count(50) == 315


def test_stamp_dilation_stays_close_to_exact_disk():
    mask = np.zeros((12, 12), dtype=bool)
    mask[3:9, 3:9] = True
    radius = 6

    stamped = DilationService("stamp").dilate(mask, radius)
    inner = DilationService("exact").dilate(mask, radius - 2, margin=2)
    outer = DilationService("exact").dilate(mask, radius + 2)[2:-2, 2:-2]

    assert stamped.shape == inner.shape == outer.shape
    assert not (inner & ~stamped).any()
    assert not (stamped & ~outer).any()


@pytest.mark.parametrize("radius", [1, 3, 6, 11])
def test_stamp_never_reaches_past_the_exact_disk(radius):
    stamped = DilationService("stamp").dilate(dot(), radius)
    exact = DilationService("exact").dilate(dot(), radius)

    assert not (stamped & ~exact).any()
    assert stamped[radius, 0] and stamped[0, radius]


def test_unknown_method_is_rejected():
    with pytest.raises(ValueError):
        DilationService("box")


def test_dilate_buffer_is_solid_white():
    buffer = solid(2, 2, color=(10, 200, 30))
    buffer.pixels[0, 0, 3] = 0

    out = DilationService().dilate_buffer(buffer, 2)

    assert (out.width, out.height) == (6, 6)
    opaque = out.alpha != 0
    assert (out.pixels[opaque] == (255, 255, 255, 255)).all()
    assert (out.pixels[~opaque] == 0).all()
