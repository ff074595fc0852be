"""Tests for posterize and Floyd-Steinberg dithering."""

import numpy as np
import pytest

from models import Sample
from pixel_effects.buffer import PixelBuffer
from pixel_effects.quantization import (
    diffuse_error,
    quantize_buffer,
    quantize_samples,
    quantize_value,
)


@pytest.mark.parametrize("levels", [2, 3, 4, 7, 8, 16, 256])
def test_flat_quantization_is_idempotent(levels):
    for value in range(256):
        once = quantize_value(value, levels)
        assert quantize_value(once, levels) == once


def test_quantize_value_endpoints():
    assert quantize_value(0, 2) == 0
    assert quantize_value(127, 2) == 0
    assert quantize_value(128, 2) == 255
    assert quantize_value(255, 8) == 255
    # 1 * 255 / 2 = 127.5 rounds up
    assert quantize_value(128, 3) == 128


def test_levels_are_clamped():
    assert quantize_value(200, 1) == quantize_value(200, 2)
    assert quantize_value(200, 1000) == 200


def test_diffuse_error_interior_conserves_error():
    channel = [100] * 25
    added = diffuse_error(channel, 5, 5, 2, 2, 32)
    assert added == 32
    assert channel[2 * 5 + 3] == 114  # right, 7/16
    assert channel[3 * 5 + 1] == 106  # bottom-left, 3/16
    assert channel[3 * 5 + 2] == 110  # bottom, 5/16
    assert channel[3 * 5 + 3] == 102  # bottom-right, 1/16


def test_diffuse_error_drops_out_of_bounds_shares():
    channel = [100] * 25
    added = diffuse_error(channel, 5, 5, 4, 4, 32)
    assert added == 0
    assert channel == [100] * 25


def test_flat_buffer_matches_scalar(gradient_buffer):
    result = quantize_buffer(gradient_buffer, 4)
    for x, y in [(0, 0), (13, 7), (40, 20), (63, 47)]:
        r, g, b, a = gradient_buffer.get_pixel(x, y)
        assert result.get_pixel(x, y) == (
            quantize_value(r, 4),
            quantize_value(g, 4),
            quantize_value(b, 4),
            a,
        )


def test_quantize_buffer_leaves_source_untouched(gradient_buffer):
    before = gradient_buffer.data.copy()
    quantize_buffer(gradient_buffer, 2, dither=True)
    assert np.array_equal(gradient_buffer.data, before)


def test_dithered_gray_mixes_black_and_white():
    buffer = PixelBuffer.blank(16, 16, (128, 128, 128, 255))
    result = quantize_buffer(buffer, 2, dither=True)
    values = set(np.unique(result.data[:, :, 0]).tolist())
    assert values == {0, 255}
    white = (result.data[:, :, 0] == 255).mean()
    assert 0.3 < white < 0.7


def test_gray_128_two_levels_goes_white(gray_buffer):
    result = quantize_buffer(gray_buffer, 2)
    assert (result.data[:, :, :3] == 255).all()


def test_quantize_samples_refreshes_brightness(make_grid_samples):
    samples = make_grid_samples(3, 3, color=(128, 128, 128))
    quantize_samples(samples, 2)
    assert all(s.color == (255, 255, 255) for s in samples)
    assert all(s.brightness == pytest.approx(1.0) for s in samples)


def test_sample_dither_follows_raster_order(make_grid_samples):
    samples = make_grid_samples(2, 1, color=(100, 100, 100))
    quantize_samples(samples, 2, dither=True)
    # 100 -> 0, error 100 * 7/16 = 43.75 pushes the right neighbor to 144 -> 255
    assert samples[0].color == (0, 0, 0)
    assert samples[1].color == (255, 255, 255)


def test_sample_dither_without_cells_falls_back_to_flat():
    samples = [Sample.from_color(1.5, 2.5, (200, 10, 130))]
    quantize_samples(samples, 2, dither=True)
    assert samples[0].color == (255, 0, 255)


# 3x3 red channel, levels 2, worked through Floyd-Steinberg in raster order
DITHER_INPUT = [
    [100, 200, 50],
    [150, 30, 220],
    [90, 180, 120],
]
DITHER_EXPECTED = [
    [0, 255, 0],
    [255, 0, 255],
    [0, 255, 0],
]


def test_raster_dither_exact_output():
    data = np.zeros((3, 3, 4), dtype=np.uint8)
    data[:, :, 0] = DITHER_INPUT
    data[:, :, 3] = 255
    result = quantize_buffer(PixelBuffer(data), 2, dither=True)
    assert result.data[:, :, 0].tolist() == DITHER_EXPECTED
    assert (result.data[:, :, 1:3] == 0).all()
    assert (result.data[:, :, 3] == 255).all()


def test_sample_dither_exact_output():
    samples = [
        Sample.from_color(col + 0.5, row + 0.5, (DITHER_INPUT[row][col], 0, 0), col, row)
        for row in range(3)
        for col in range(3)
    ]
    quantize_samples(samples, 2, dither=True, cols=3, rows=3)
    grid = [[0] * 3 for _ in range(3)]
    for s in samples:
        grid[s.row][s.col] = s.r
    assert grid == DITHER_EXPECTED


def test_sample_dither_drops_share_of_missing_cell():
    # (1, 0) is missing: its 7/16 share of the first error is lost
    samples = [
        Sample.from_color(0.5, 0.5, (100, 100, 100), 0, 0),
        Sample.from_color(0.5, 1.5, (100, 100, 100), 0, 1),
        Sample.from_color(1.5, 1.5, (100, 100, 100), 1, 1),
    ]
    quantize_samples(samples, 2, dither=True, cols=2, rows=2)
    # (0,1): 100 + 31.25 -> 131 -> 255; (1,1): 100 + 6.25 - 54.25 -> 52 -> 0
    assert [s.r for s in samples] == [0, 255, 0]
    assert len(samples) == 3
