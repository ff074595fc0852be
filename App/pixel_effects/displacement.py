"""Multi-scale deterministic noise and UV-remap displacement.

AIDEV-NOTE: The hash works in explicit 32-bit arithmetic (wrap to signed
int32 after the additions and after the multiply, arithmetic right shifts) so
that the same integer inputs give bit-identical noise everywhere. The scalar
noise_at and the vectorized noise_field must stay in lockstep; tests compare
them pixel for pixel.

Layers are composited with a running maximum, not a sum. Maximum
compositing is what gives the blocky, stratified look.
"""

import logging
import math
import warnings

import numpy as np

from models import DisplacementParams, Interpolation, Sample

from .buffer import PixelBuffer

logger = logging.getLogger(__name__)

HASH_X = 374761393
HASH_Y = 668265263
HASH_MIX = 1274126177
UINT32_RANGE = 4294967296.0  # 2**32

MIN_EXPONENT = 0.01


def _int32(value: int) -> int:
    """Wrap an integer to signed 32-bit."""
    return ((value & 0xFFFFFFFF) ^ 0x80000000) - 0x80000000


def hash_noise(cell_x: int, cell_y: int, seed: int) -> float:
    """Deterministic pseudo-random value in [0, 1) for an integer cell."""
    h = _int32(seed + cell_x * HASH_X + cell_y * HASH_Y)
    h = _int32((h ^ (h >> 13)) * HASH_MIX)
    return ((h ^ (h >> 16)) & 0xFFFFFFFF) / UINT32_RANGE


def _hash_noise_array(cell_x: np.ndarray, cell_y: np.ndarray, seed: int) -> np.ndarray:
    """Vectorized hash_noise over int64 cell index arrays."""
    seed = _int32(seed)
    h = seed + cell_x * HASH_X + cell_y * HASH_Y
    h = ((h & 0xFFFFFFFF) ^ 0x80000000) - 0x80000000
    h = (h ^ (h >> 13)) * HASH_MIX
    h = ((h & 0xFFFFFFFF) ^ 0x80000000) - 0x80000000
    return ((h ^ (h >> 16)) & 0xFFFFFFFF) / UINT32_RANGE


def _clamp_params(layer_count: int, exponent: float) -> "tuple[int, float]":
    layers = max(1, int(layer_count))
    exp = exponent if exponent >= MIN_EXPONENT else MIN_EXPONENT
    if layers != layer_count or exp != exponent:
        logger.debug(
            "Displacement params clamped: layers %s -> %d, exponent %s -> %s",
            layer_count,
            layers,
            exponent,
            exp,
        )
    return layers, exp


def _layer_size(ref_width: int, ref_height: int, layer: int) -> "tuple[int, int]":
    scale = 2**layer
    return max(1, ref_width // scale), max(1, ref_height // scale)


def noise_at(
    x: float,
    y: float,
    layer_count: int,
    exponent: float,
    seed: int,
    ref_width: int,
    ref_height: int,
) -> float:
    """Evaluate the multi-scale noise at one point.

    Args:
        x: X coordinate in reference space
        y: Y coordinate in reference space
        layer_count: Number of octave layers (>= 1)
        exponent: Contrast exponent (> 0); higher keeps only the brightest cells
        seed: Base seed, layer L hashes with seed + L
        ref_width: Width of the reference image
        ref_height: Height of the reference image

    Returns:
        Noise value in [0, 1]
    """
    layers, exponent = _clamp_params(layer_count, exponent)
    ref_width = max(1, int(ref_width))
    ref_height = max(1, int(ref_height))

    max_noise = 0.0
    for layer in range(layers):
        layer_w, layer_h = _layer_size(ref_width, ref_height, layer)
        cell_x = math.floor(x / ref_width * layer_w)
        cell_y = math.floor(y / ref_height * layer_h)
        powered = hash_noise(cell_x, cell_y, seed + layer) ** exponent
        max_noise = max(max_noise, powered)
    return max_noise


def noise_field(width: int, height: int, params: DisplacementParams) -> np.ndarray:
    """Noise for every pixel of a width x height image.

    Returns:
        Float array of shape (height, width), matching
        noise_at(x, y, ...) with the image as reference
    """
    width = max(0, int(width))
    height = max(0, int(height))
    field = np.zeros((height, width), dtype=np.float64)
    if width == 0 or height == 0:
        return field

    layers, exponent = _clamp_params(params.layer_count, params.exponent)
    xs = np.arange(width, dtype=np.float64)
    ys = np.arange(height, dtype=np.float64)

    for layer in range(layers):
        layer_w, layer_h = _layer_size(width, height, layer)
        cell_x = np.floor(xs / width * layer_w).astype(np.int64)
        cell_y = np.floor(ys / height * layer_h).astype(np.int64)
        noise = _hash_noise_array(
            cell_x[np.newaxis, :], cell_y[:, np.newaxis], params.seed + layer
        )
        np.maximum(field, noise**exponent, out=field)
    return field


def displacement_field(width: int, height: int, params: DisplacementParams) -> np.ndarray:
    """Per-pixel displacement in pixels: (noise - 0.5) * strength."""
    return (noise_field(width, height, params) - 0.5) * params.strength


def displace_buffer(
    buffer: PixelBuffer,
    params: DisplacementParams,
    interpolation: "Interpolation | str" = Interpolation.NEAREST,
) -> PixelBuffer:
    """Remap a buffer through the displacement field (UV remap).

    Every destination pixel looks up its color at its own coordinates shifted
    by the displacement on both axes, clamped to the buffer. Run the sampler
    on the result.

    Args:
        buffer: Source pixels (left untouched)
        params: Displacement settings
        interpolation: Nearest or bilinear source lookup

    Returns:
        New displaced buffer
    """
    if buffer.is_empty():
        return buffer.copy()

    width, height = buffer.size
    disp = displacement_field(width, height, params)
    src_x = np.clip(np.arange(width, dtype=np.float64)[np.newaxis, :] + disp, 0, width - 1)
    src_y = np.clip(np.arange(height, dtype=np.float64)[:, np.newaxis] + disp, 0, height - 1)

    source = buffer.data
    if Interpolation(interpolation) == Interpolation.NEAREST:
        ix = np.floor(src_x + 0.5).astype(np.intp)
        iy = np.floor(src_y + 0.5).astype(np.intp)
        return PixelBuffer(source[iy, ix])

    x0 = np.floor(src_x).astype(np.intp)
    y0 = np.floor(src_y).astype(np.intp)
    x1 = np.minimum(x0 + 1, width - 1)
    y1 = np.minimum(y0 + 1, height - 1)
    fx = (src_x - x0)[:, :, np.newaxis]
    fy = (src_y - y0)[:, :, np.newaxis]

    pixels = source.astype(np.float64)
    top = pixels[y0, x0] * (1 - fx) + pixels[y0, x1] * fx
    bottom = pixels[y1, x0] * (1 - fx) + pixels[y1, x1] * fx
    blended = top * (1 - fy) + bottom * fy
    return PixelBuffer(np.clip(np.floor(blended + 0.5), 0, 255).astype(np.uint8))


def displace_samples(
    samples: "list[Sample]",
    params: DisplacementParams,
    ref_width: int,
    ref_height: int,
) -> "list[Sample]":
    """Shift sample coordinates by the displacement (legacy mode).

    Deprecated: the result depends on the sampling resolution. Use
    displace_buffer before sampling instead.
    """
    warnings.warn(
        "displace_samples is resolution dependent; use displace_buffer",
        DeprecationWarning,
        stacklevel=2,
    )
    for item in samples:
        noise = noise_at(
            item.x,
            item.y,
            params.layer_count,
            params.exponent,
            params.seed,
            ref_width,
            ref_height,
        )
        disp = (noise - 0.5) * params.strength
        item.x += disp
        item.y += disp
    return samples
