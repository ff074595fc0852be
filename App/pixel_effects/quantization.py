"""Per-channel color quantization (posterize) with Floyd-Steinberg dithering.

AIDEV-NOTE: Quantization is the two-step mapping
    level = floor(value * levels / 256)
    out   = round_half_up(level * 255 / (levels - 1))
so the output spans the full 0-255 range with even spacing. Error diffusion
is order sensitive: pixels (or grid samples) must be visited in raster order,
row by row, left to right, and every neighbor update is rounded and clamped
immediately, exactly as integer channel storage would.
"""

import logging

import numpy as np

from models import Sample

from .buffer import PixelBuffer
from .utils import clamp_channel, round_half_up

logger = logging.getLogger(__name__)

MIN_LEVELS = 2
MAX_LEVELS = 256

# (dx, dy, weight) for forward neighbors
FLOYD_STEINBERG_WEIGHTS = (
    (1, 0, 7 / 16),  # right
    (-1, 1, 3 / 16),  # bottom-left
    (0, 1, 5 / 16),  # bottom
    (1, 1, 1 / 16),  # bottom-right
)


def clamp_levels(levels: int) -> int:
    clamped = max(MIN_LEVELS, min(MAX_LEVELS, int(levels)))
    if clamped != levels:
        logger.debug("Quantization levels %s clamped to %d", levels, clamped)
    return clamped


def quantize_value(value: float, levels: int) -> int:
    """Quantize a color value (0-255) to a number of levels (2-256)."""
    levels = max(MIN_LEVELS, min(MAX_LEVELS, int(levels)))
    level = int(value * levels // 256)
    return round_half_up(level * 255 / (levels - 1))


def quantize_buffer(
    buffer: PixelBuffer, levels: int, dither: bool = False
) -> PixelBuffer:
    """Posterize every pixel of a buffer.

    Args:
        buffer: Source pixels (left untouched)
        levels: Levels per channel, clamped to 2-256
        dither: Apply Floyd-Steinberg error diffusion

    Returns:
        New buffer with quantized RGB channels and the original alpha
    """
    levels = clamp_levels(levels)
    result = buffer.copy()
    if buffer.is_empty():
        return result

    if dither:
        _dither_raster(result, levels)
    else:
        rgb = result.data[:, :, :3].astype(np.int64)
        level = (rgb * levels) // 256
        result.data[:, :, :3] = np.floor(level * 255 / (levels - 1) + 0.5).astype(
            np.uint8
        )
    return result


def diffuse_error(
    channel: "list[int]",
    width: int,
    height: int,
    x: int,
    y: int,
    error: float,
) -> float:
    """Spread one pixel's quantization error to its forward neighbors.

    Args:
        channel: Flat row-major list of one channel's values, updated in place
        width: Row length
        height: Number of rows
        x: Column of the pixel that was just quantized
        y: Row of the pixel that was just quantized
        error: old value - new value

    Returns:
        Total amount actually added to in-bounds neighbors (after rounding
        and clamping)
    """
    added = 0
    for dx, dy, weight in FLOYD_STEINBERG_WEIGHTS:
        nx = x + dx
        ny = y + dy
        if 0 <= nx < width and ny < height:
            index = ny * width + nx
            before = channel[index]
            channel[index] = clamp_channel(before + error * weight)
            added += channel[index] - before
    return added


def _dither_raster(buffer: PixelBuffer, levels: int) -> None:
    """Floyd-Steinberg over a whole buffer, in place."""
    width, height = buffer.size
    # Plain lists are much faster than numpy element access in this loop
    channels = [buffer.data[:, :, c].ravel().tolist() for c in range(3)]

    for y in range(height):
        row_start = y * width
        for x in range(width):
            index = row_start + x
            for channel in channels:
                old = channel[index]
                new = quantize_value(old, levels)
                channel[index] = new
                if old != new:
                    diffuse_error(channel, width, height, x, y, old - new)

    for c, channel in enumerate(channels):
        buffer.data[:, :, c] = np.asarray(channel, dtype=np.uint8).reshape(
            height, width
        )


def quantize_samples(
    samples: "list[Sample]",
    levels: int,
    dither: bool = False,
    cols: "int | None" = None,
    rows: "int | None" = None,
) -> "list[Sample]":
    """Posterize sample colors in place.

    Args:
        samples: Samples to quantize (mutated, metrics refreshed)
        levels: Levels per channel, clamped to 2-256
        dither: Apply Floyd-Steinberg over the samples' logical grid
        cols: Grid width, derived from the samples when None
        rows: Grid height, derived from the samples when None

    Returns:
        The same list, for chaining

    AIDEV-NOTE: Dithering needs a dense (col, row) grid. Samples without a
    cell (random / Poisson strategies) are only flat-quantized; callers are
    expected to turn dithering off for those strategies.
    """
    if not samples:
        return samples
    levels = clamp_levels(levels)

    if not dither:
        for item in samples:
            _quantize_sample(item, levels)
        return samples

    grid: "dict[tuple[int, int], Sample]" = {}
    loose = []
    for item in samples:
        cell = item.cell
        if cell is None:
            loose.append(item)
        else:
            grid[cell] = item

    if loose:
        logger.warning(
            "%d samples have no grid cell, dithering skipped for them", len(loose)
        )
        for item in loose:
            _quantize_sample(item, levels)

    if not grid:
        return samples

    if cols is None:
        cols = max(col for col, _ in grid) + 1
    if rows is None:
        rows = max(row for _, row in grid) + 1

    for row in range(rows):
        for col in range(cols):
            current = grid.get((col, row))
            if current is None:
                continue

            old = current.color
            _quantize_sample(current, levels)
            errors = [o - n for o, n in zip(old, current.color)]
            if not any(errors):
                continue

            for dx, dy, weight in FLOYD_STEINBERG_WEIGHTS:
                nx = col + dx
                ny = row + dy
                if not (0 <= nx < cols and ny < rows):
                    continue
                neighbor = grid.get((nx, ny))
                if neighbor is None:
                    # No sample there: this share of the error is dropped
                    continue
                neighbor.r = clamp_channel(neighbor.r + errors[0] * weight)
                neighbor.g = clamp_channel(neighbor.g + errors[1] * weight)
                neighbor.b = clamp_channel(neighbor.b + errors[2] * weight)

    return samples


def _quantize_sample(item: Sample, levels: int) -> None:
    item.r = quantize_value(item.r, levels)
    item.g = quantize_value(item.g, levels)
    item.b = quantize_value(item.b, levels)
    item.refresh_metrics()
