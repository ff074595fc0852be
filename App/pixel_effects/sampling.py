"""Spatial sampling strategies.

AIDEV-NOTE: Every strategy reads colors through PixelBuffer.sample_color,
which clamps coordinates into the buffer. Randomized strategies take an
explicit seed; seed=None draws from an unseeded generator and the output is
not reproducible.
"""

import logging
import math

import numpy as np

from models import SamplingMethod, Sample

from .buffer import PixelBuffer

logger = logging.getLogger(__name__)

DEFAULT_JITTER = 0.4
POISSON_ATTEMPTS = 30  # Bridson's k


def grid_shape(buffer: "PixelBuffer | None", cell_size: float) -> "tuple[int, int]":
    """Number of logical (cols, rows) covering the buffer."""
    if buffer is None or buffer.is_empty() or cell_size <= 0:
        return (0, 0)
    return (
        math.ceil(buffer.width / cell_size),
        math.ceil(buffer.height / cell_size),
    )


def sample(
    buffer: "PixelBuffer | None",
    cell_size: float,
    strategy: "SamplingMethod | str" = SamplingMethod.GRID,
    *,
    jitter_amount: float = DEFAULT_JITTER,
    seed: "int | None" = None,
) -> "list[Sample]":
    """Sample points from a buffer.

    Args:
        buffer: Source pixels
        cell_size: Size of each logical cell in pixels
        strategy: Sampling method (enum or its string value)
        jitter_amount: Jitter as a fraction of a cell (jittered grid only)
        seed: Seed for randomized strategies

    Returns:
        List of samples, empty when there is nothing to sample
    """
    if buffer is None or buffer.is_empty():
        logger.debug("No buffer to sample")
        return []
    if cell_size is None or cell_size <= 0:
        logger.debug("Non-positive cell size %s, nothing to sample", cell_size)
        return []

    try:
        method = SamplingMethod(strategy)
    except ValueError:
        logger.warning("Unknown sampling method %r", strategy)
        return []

    if method == SamplingMethod.GRID:
        return sample_grid(buffer, cell_size)
    rng = np.random.default_rng(seed)
    if method == SamplingMethod.RANDOM:
        return sample_random(buffer, cell_size, rng)
    elif method == SamplingMethod.STRATIFIED:
        return sample_stratified(buffer, cell_size, rng)
    elif method == SamplingMethod.JITTERED:
        return sample_jittered(buffer, cell_size, rng, jitter_amount)
    return sample_poisson(buffer, cell_size, rng)


def _make_sample(
    buffer: PixelBuffer,
    x: float,
    y: float,
    col: "int | None" = None,
    row: "int | None" = None,
) -> Sample:
    return Sample.from_color(x, y, buffer.sample_color(x, y), col=col, row=row)


def sample_grid(buffer: PixelBuffer, cell_size: float) -> "list[Sample]":
    """One sample per cell at the cell center.

    AIDEV-NOTE: The last row/column may spill past the image; cells whose
    center falls outside are dropped rather than clamped.
    """
    width, height = buffer.size
    cols, rows = grid_shape(buffer, cell_size)
    half = cell_size / 2

    samples = []
    for row in range(rows):
        y = row * cell_size + half
        if y >= height:
            continue
        for col in range(cols):
            x = col * cell_size + half
            if x < width:
                samples.append(_make_sample(buffer, x, y, col, row))
    return samples


def sample_random(
    buffer: PixelBuffer, cell_size: float, rng: np.random.Generator
) -> "list[Sample]":
    """cols x rows uniformly random samples with no cell assignment."""
    width, height = buffer.size
    cols, rows = grid_shape(buffer, cell_size)

    samples = []
    for _ in range(cols * rows):
        x = rng.random() * width
        y = rng.random() * height
        samples.append(_make_sample(buffer, x, y))
    return samples


def sample_stratified(
    buffer: PixelBuffer, cell_size: float, rng: np.random.Generator
) -> "list[Sample]":
    """One uniformly random sample inside each cell.

    Edge cells only draw from their in-bounds part.
    """
    width, height = buffer.size
    cols, rows = grid_shape(buffer, cell_size)

    samples = []
    for row in range(rows):
        y0 = row * cell_size
        cell_h = min(cell_size, height - y0)
        for col in range(cols):
            x0 = col * cell_size
            cell_w = min(cell_size, width - x0)
            x = x0 + rng.random() * cell_w
            y = y0 + rng.random() * cell_h
            samples.append(_make_sample(buffer, x, y, col, row))
    return samples


def sample_jittered(
    buffer: PixelBuffer,
    cell_size: float,
    rng: np.random.Generator,
    jitter_amount: float = DEFAULT_JITTER,
) -> "list[Sample]":
    """Cell centers displaced by an independent per-axis random offset.

    Offsets are uniform in +/-(jitter_amount / 2) * cell_size and the result
    is clamped to the buffer.
    """
    width, height = buffer.size
    cols, rows = grid_shape(buffer, cell_size)
    half = cell_size / 2
    spread = max(0.0, jitter_amount) * cell_size

    samples = []
    for row in range(rows):
        cy = row * cell_size + half
        if cy >= height:
            continue
        for col in range(cols):
            cx = col * cell_size + half
            if cx >= width:
                continue
            x = cx + (rng.random() - 0.5) * spread
            y = cy + (rng.random() - 0.5) * spread
            x = min(max(x, 0.0), width - 1)
            y = min(max(y, 0.0), height - 1)
            samples.append(_make_sample(buffer, x, y, col, row))
    return samples


def sample_poisson(
    buffer: PixelBuffer,
    cell_size: float,
    rng: np.random.Generator,
    attempts: int = POISSON_ATTEMPTS,
) -> "list[Sample]":
    """Poisson-disk sampling with Bridson's algorithm.

    Guarantees a minimum distance of cell_size between any two samples.

    AIDEV-NOTE: The background grid has cells of r/sqrt(2), so each holds at
    most one point and a candidate only needs the 5x5 block of grid cells
    around it. Never replace this with a scan over all accepted points.
    """
    width, height = buffer.size
    radius = float(cell_size)
    radius_sq = radius * radius
    grid_cell = radius / math.sqrt(2)
    grid_w = max(1, math.ceil(width / grid_cell))
    grid_h = max(1, math.ceil(height / grid_cell))

    # Index into points, -1 for empty
    grid = [[-1] * grid_w for _ in range(grid_h)]
    points: "list[tuple[float, float]]" = []
    active: "list[int]" = []

    def grid_coords(px: float, py: float) -> "tuple[int, int]":
        return (
            min(int(px / grid_cell), grid_w - 1),
            min(int(py / grid_cell), grid_h - 1),
        )

    def accept(px: float, py: float) -> None:
        gx, gy = grid_coords(px, py)
        grid[gy][gx] = len(points)
        active.append(len(points))
        points.append((px, py))

    def far_enough(px: float, py: float) -> bool:
        gx, gy = grid_coords(px, py)
        for ny in range(max(0, gy - 2), min(grid_h, gy + 3)):
            grid_row = grid[ny]
            for nx in range(max(0, gx - 2), min(grid_w, gx + 3)):
                index = grid_row[nx]
                if index < 0:
                    continue
                qx, qy = points[index]
                if (qx - px) ** 2 + (qy - py) ** 2 < radius_sq:
                    return False
        return True

    accept(rng.random() * width, rng.random() * height)

    while active:
        slot = int(rng.integers(len(active)))
        ox, oy = points[active[slot]]

        for _ in range(attempts):
            angle = rng.random() * 2 * math.pi
            distance = radius * (1.0 + rng.random())  # [r, 2r)
            cx = ox + distance * math.cos(angle)
            cy = oy + distance * math.sin(angle)
            if 0 <= cx < width and 0 <= cy < height and far_enough(cx, cy):
                accept(cx, cy)
                break
        else:
            # k consecutive failures: retire the point
            active[slot] = active[-1]
            active.pop()

    logger.debug("Poisson-disk sampling produced %d points", len(points))
    return [_make_sample(buffer, px, py) for px, py in points]
