import numpy as np
import pytest

from conftest import make_rgba
from sketchbook.sim.core.pixels import BrightnessField, PixelBuffer, brightness


def _sample_buffer() -> PixelBuffer:
    rgba = make_rgba(4, 3)
    rgba[1, 2, :3] = (30, 60, 90)
    rgba[0, 0, :3] = (0, 0, 1)
    return PixelBuffer.from_rgba(rgba)


def test_out_of_bounds_reads_as_white():
    buffer = _sample_buffer()
    for x, y in [(-1, 0), (0, -0.01), (4, 0), (0, 3), (1e9, 1e9), (-1e9, 2)]:
        assert brightness(buffer, x, y) == 255


def test_brightness_is_channel_mean_of_floored_cell():
    buffer = _sample_buffer()
    assert brightness(buffer, 2, 1) == pytest.approx(60.0)
    assert brightness(buffer, 2.9, 1.99) == pytest.approx(60.0)
    assert brightness(buffer, 0, 0) == pytest.approx(1 / 3)
    assert brightness(buffer, 3, 2) == 255


def test_buffer_is_read_only_copy():
    rgba = make_rgba(2, 2, value=10)
    buffer = PixelBuffer.from_rgba(rgba)
    rgba[0, 0, :3] = 200
    assert buffer.brightness(0, 0) == pytest.approx(10.0)
    with pytest.raises(ValueError):
        buffer.rgba[0, 0, 0] = 1


def test_buffer_rejects_mismatched_shape():
    with pytest.raises(ValueError):
        PixelBuffer(3, 3, np.zeros((2, 3, 4), dtype=np.uint8))


def test_filled_buffer():
    buffer = PixelBuffer.filled(5, 2, (90, 90, 90))
    assert (buffer.width, buffer.height) == (5, 2)
    assert buffer.brightness(4, 1) == pytest.approx(90.0)


def test_field_matches_buffer():
    buffer = _sample_buffer()
    field = BrightnessField(buffer)
    for y in range(-1, 4):
        for x in range(-1, 5):
            assert field.brightness(x + 0.5, y + 0.5) == pytest.approx(buffer.brightness(x + 0.5, y + 0.5))


def test_lighten_segment_only_touches_field():
    buffer = PixelBuffer.filled(10, 10, (100, 100, 100))
    field = BrightnessField(buffer)
    touched = field.lighten_segment(2, 5, 8, 5, 30)
    assert touched == 6
    for x in range(2, 8):
        assert field.brightness(x, 5) == pytest.approx(130.0)
    assert field.brightness(8, 5) == pytest.approx(100.0)
    assert field.brightness(4, 4) == pytest.approx(100.0)
    assert buffer.brightness(4, 5) == pytest.approx(100.0)


def test_lighten_saturates_and_reset_restores():
    field = BrightnessField(PixelBuffer.filled(4, 4, (240, 240, 240)))
    field.lighten_segment(0, 0, 0, 3, 30)
    assert field.brightness(0, 1) == 255
    # segments running off the grid only count cells inside it
    assert field.lighten_segment(-5, 0, 5, 0, 10) == 4
    field.reset()
    assert field.brightness(0, 1) == pytest.approx(240.0)
