"""Tests for hash noise and UV-remap displacement."""

import numpy as np
import pytest

from models import DisplacementParams, Interpolation, Sample
from pixel_effects.buffer import PixelBuffer
from pixel_effects.displacement import (
    displace_buffer,
    displace_samples,
    displacement_field,
    hash_noise,
    noise_at,
    noise_field,
)


def test_hash_noise_origin_is_zero():
    assert hash_noise(0, 0, 0) == 0.0


def test_hash_noise_is_deterministic_and_in_range():
    values = [hash_noise(x, y, 17) for x in range(-20, 20) for y in range(-5, 5)]
    assert values == [hash_noise(x, y, 17) for x in range(-20, 20) for y in range(-5, 5)]
    assert all(0.0 <= v < 1.0 for v in values)
    assert len(set(values)) > len(values) * 0.9


def test_hash_noise_wraps_large_inputs():
    value = hash_noise(2**20, 2**21, 2**30)
    assert 0.0 <= value < 1.0


def test_noise_field_matches_noise_at():
    params = DisplacementParams(layer_count=4, exponent=1.5, seed=9)
    field = noise_field(37, 23, params)
    assert field.shape == (23, 37)
    expected = np.array(
        [
            [noise_at(x, y, 4, 1.5, 9, 37, 23) for x in range(37)]
            for y in range(23)
        ]
    )
    assert np.allclose(field, expected, rtol=0, atol=1e-12)


def test_noise_is_seed_sensitive():
    a = noise_field(32, 32, DisplacementParams(seed=1))
    b = noise_field(32, 32, DisplacementParams(seed=2))
    assert not np.array_equal(a, b)


def test_noise_is_blocky_in_single_layer():
    field = noise_field(16, 16, DisplacementParams(layer_count=1, exponent=1.0))
    # Layer 0 has one cell per pixel, layer sizes shrink from there
    assert np.all((field >= 0) & (field <= 1))
    coarse = noise_field(16, 16, DisplacementParams(layer_count=5, exponent=1.0))
    assert np.all(coarse >= field - 1e-12)


def test_invalid_params_are_clamped():
    value = noise_at(3, 4, 0, 0.0, 1, 10, 10)
    assert 0.0 <= value <= 1.0
    field = noise_field(8, 8, DisplacementParams(layer_count=0, exponent=-2))
    assert field.shape == (8, 8)


def test_displacement_field_range():
    params = DisplacementParams(strength=20.0)
    disp = displacement_field(24, 24, params)
    assert disp.min() >= -10.0
    assert disp.max() <= 10.0


def test_zero_strength_is_identity(gradient_buffer):
    params = DisplacementParams(strength=0.0)
    for interpolation in (Interpolation.NEAREST, Interpolation.BILINEAR):
        result = displace_buffer(gradient_buffer, params, interpolation)
        assert np.array_equal(result.data, gradient_buffer.data)


def test_uniform_buffer_stays_uniform():
    buffer = PixelBuffer.blank(30, 20, (70, 80, 90, 255))
    result = displace_buffer(buffer, DisplacementParams(strength=15.0, seed=3))
    assert np.array_equal(result.data, buffer.data)


def test_displacement_moves_pixels(gradient_buffer):
    result = displace_buffer(gradient_buffer, DisplacementParams(strength=30.0, seed=4))
    assert result.size == gradient_buffer.size
    assert not np.array_equal(result.data, gradient_buffer.data)


def test_displacement_is_deterministic(gradient_buffer):
    params = DisplacementParams(strength=12.0, seed=8)
    first = displace_buffer(gradient_buffer, params, "bilinear")
    second = displace_buffer(gradient_buffer, params, "bilinear")
    assert np.array_equal(first.data, second.data)


def test_displace_samples_is_deprecated():
    samples = [Sample.from_color(5.0, 5.0, (0, 0, 0))]
    params = DisplacementParams(strength=10.0, seed=2)
    with pytest.warns(DeprecationWarning):
        displace_samples(samples, params, 20, 20)
    noise = noise_at(5.0, 5.0, 5, 2.0, 2, 20, 20)
    assert samples[0].x == pytest.approx(5.0 + (noise - 0.5) * 10.0)
    assert samples[0].x == samples[0].y
