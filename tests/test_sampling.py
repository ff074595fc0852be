"""Tests for spatial sampling strategies."""

import itertools
import math

import pytest

from models import SamplingMethod
from pixel_effects.buffer import PixelBuffer
from pixel_effects.sampling import grid_shape, sample


def test_grid_sample_count(gray_buffer):
    samples = sample(gray_buffer, 10, SamplingMethod.GRID)
    assert len(samples) == 100
    assert {s.cell for s in samples} == {(c, r) for c in range(10) for r in range(10)}


def test_grid_drops_centers_outside_buffer():
    buffer = PixelBuffer.blank(95, 95)
    assert grid_shape(buffer, 10) == (10, 10)
    # The last column/row center sits at 95, outside a 95px image
    assert len(sample(buffer, 10, "grid")) == 81


def test_grid_samples_at_cell_centers(gradient_buffer):
    samples = sample(gradient_buffer, 8)
    first = samples[0]
    assert (first.x, first.y) == (4.0, 4.0)
    assert first.color == gradient_buffer.get_color(4, 4)
    assert 0.0 <= first.brightness <= 1.0


@pytest.mark.parametrize(
    "method",
    [
        SamplingMethod.RANDOM,
        SamplingMethod.STRATIFIED,
        SamplingMethod.JITTERED,
        SamplingMethod.POISSON,
    ],
)
def test_seeded_sampling_is_reproducible(gradient_buffer, method):
    first = sample(gradient_buffer, 6, method, seed=7)
    second = sample(gradient_buffer, 6, method, seed=7)
    assert [(s.x, s.y) for s in first] == [(s.x, s.y) for s in second]


def test_different_seeds_differ(gradient_buffer):
    first = sample(gradient_buffer, 6, SamplingMethod.RANDOM, seed=1)
    second = sample(gradient_buffer, 6, SamplingMethod.RANDOM, seed=2)
    assert [(s.x, s.y) for s in first] != [(s.x, s.y) for s in second]


def test_random_has_no_cells(gradient_buffer):
    samples = sample(gradient_buffer, 8, SamplingMethod.RANDOM, seed=3)
    assert len(samples) == 8 * 6
    assert all(s.cell is None for s in samples)
    assert all(0 <= s.x < 64 and 0 <= s.y < 48 for s in samples)


def test_stratified_stays_inside_its_cell(gradient_buffer):
    samples = sample(gradient_buffer, 10, SamplingMethod.STRATIFIED, seed=5)
    assert len(samples) == 7 * 5
    for s in samples:
        assert s.col * 10 <= s.x < min((s.col + 1) * 10, 64)
        assert s.row * 10 <= s.y < min((s.row + 1) * 10, 48)


def test_jittered_offsets_are_bounded(gradient_buffer):
    samples = sample(
        gradient_buffer, 8, SamplingMethod.JITTERED, jitter_amount=0.5, seed=11
    )
    assert len(samples) == 8 * 6
    for s in samples:
        cx = s.col * 8 + 4
        cy = s.row * 8 + 4
        assert abs(s.x - cx) <= 2.0
        assert abs(s.y - cy) <= 2.0
        assert 0 <= s.x <= 63 and 0 <= s.y <= 47


def test_poisson_minimum_distance():
    buffer = PixelBuffer.blank(80, 60)
    samples = sample(buffer, 8, SamplingMethod.POISSON, seed=42)
    assert len(samples) > 10
    for a, b in itertools.combinations(samples, 2):
        assert math.hypot(a.x - b.x, a.y - b.y) >= 8 - 1e-9
    assert all(s.cell is None for s in samples)


def test_poisson_fills_the_area():
    buffer = PixelBuffer.blank(80, 80)
    samples = sample(buffer, 10, SamplingMethod.POISSON, seed=0)
    # Max packing is ~ area / (r^2 * sqrt(3) / 2); Bridson reaches well over a third
    assert len(samples) >= 25


def test_invalid_input_yields_nothing(gray_buffer):
    assert sample(None, 10) == []
    assert sample(PixelBuffer.blank(0, 0), 10) == []
    assert sample(gray_buffer, 0) == []
    assert sample(gray_buffer, -3) == []


def test_unknown_method_yields_nothing(gray_buffer, caplog):
    assert sample(gray_buffer, 10, "hexagonal") == []
    assert "Unknown sampling method" in caplog.text
