"""Shared test fixtures."""

import numpy as np
import pytest

from models import Sample, Stop
from pixel_effects.buffer import PixelBuffer


@pytest.fixture
def gray_buffer():
    """100x100 opaque mid-gray (128) buffer."""
    return PixelBuffer.blank(100, 100, (128, 128, 128, 255))


@pytest.fixture
def gradient_buffer():
    """64x48 buffer, red ramps left to right, green top to bottom."""
    height, width = 48, 64
    data = np.zeros((height, width, 4), dtype=np.uint8)
    data[:, :, 0] = np.linspace(0, 255, width, dtype=np.uint8)[np.newaxis, :]
    data[:, :, 1] = np.linspace(0, 255, height, dtype=np.uint8)[:, np.newaxis]
    data[:, :, 2] = 64
    data[:, :, 3] = 255
    return PixelBuffer(data)


@pytest.fixture
def make_grid_samples():
    """Factory for a cols x rows grid of same-colored samples."""

    def factory(cols, rows, color=(0, 0, 0), cell_size=10.0):
        half = cell_size / 2
        return [
            Sample.from_color(
                col * cell_size + half, row * cell_size + half, color, col=col, row=row
            )
            for row in range(rows)
            for col in range(cols)
        ]

    return factory


@pytest.fixture
def three_stops():
    return [
        Stop(id=0, percentage=0.0, value=" "),
        Stop(id=1, percentage=50.0, value="x"),
        Stop(id=2, percentage=100.0, value="#"),
    ]
