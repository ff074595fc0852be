"""Rendering methods that turn samples into drawable records.

AIDEV-NOTE: This module contains the three output styles: shapes (one
geometric outline per sample), ascii (one charset glyph per sample) and
stops (brightness stops mapped to glyphs or bitmaps, optionally merged).
Records come out in sample order; nothing here draws anything.
"""

import math
import random

from models import (
    BitmapRecord,
    ColorMode,
    GlyphRecord,
    RectRecord,
    RenderConfig,
    Sample,
    ShapeRecord,
    ShapeType,
    Stop,
    StopKind,
)

from .anchors import rect_offset, text_placement
from .utils import interpolate_color, rgb_to_css, round_half_up

CHARSETS = {
    "standard": " .:-=+*#%@",
    "blocks": " ░▒▓█",
    "numeric": " 123456789",
    "binary": " 01",
}


# --- Colors ---


def sample_fill(sample: "Sample", config: "RenderConfig") -> str:
    """Fill color for a sample under the configured color mode."""
    mode = ColorMode(config.color_mode)
    if mode == ColorMode.GRAYSCALE:
        gray = round_half_up(sample.brightness * 255)
        return rgb_to_css((gray, gray, gray))
    if mode == ColorMode.DUOTONE:
        return rgb_to_css(
            interpolate_color(config.duotone_dark, config.duotone_light, sample.brightness)
        )
    return rgb_to_css(sample.color)


# --- Shapes ---


def shape_outline(
    shape: "ShapeType", size: float, circle_points: int = 16
) -> "list[tuple[float, float]]":
    """Outline points of a shape inside a size x size box at the origin.

    Args:
        shape: Shape kind
        size: Box side length
        circle_points: Number of points approximating a circle

    Returns:
        Closed outline as a list of (x, y) points (first point not repeated)
    """
    shape = ShapeType(shape)
    half = size / 2
    third = size / 3

    if shape == ShapeType.SQUARE:
        return [(0, 0), (size, 0), (size, size), (0, size)]
    elif shape == ShapeType.TRIANGLE:
        return [(half, 0), (size, size), (0, size)]
    elif shape == ShapeType.DIAMOND:
        return [(half, 0), (size, half), (half, size), (0, half)]
    elif shape == ShapeType.STAR:
        points = []
        outer = half
        inner = size / 4
        for i in range(10):
            radius = outer if i % 2 == 0 else inner
            angle = math.pi / 5 * i - math.pi / 2
            points.append((half + radius * math.cos(angle), half + radius * math.sin(angle)))
        return points
    elif shape == ShapeType.CROSS:
        return [
            (third, 0),
            (third * 2, 0),
            (third * 2, third),
            (size, third),
            (size, third * 2),
            (third * 2, third * 2),
            (third * 2, size),
            (third, size),
            (third, third * 2),
            (0, third * 2),
            (0, third),
            (third, third),
        ]

    # Circle
    count = max(3, circle_points)
    return [
        (half + half * math.cos(angle), half + half * math.sin(angle))
        for angle in (2 * math.pi * i / count for i in range(count))
    ]


def place_outline(
    outline: "list[tuple[float, float]]",
    size: float,
    center_x: float,
    center_y: float,
    rotation: float,
) -> "list[tuple[float, float]]":
    """Rotate an outline about its box center and center it on a point."""
    half = size / 2
    angle = math.radians(rotation)
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    return [
        (
            center_x + (px - half) * cos_a - (py - half) * sin_a,
            center_y + (px - half) * sin_a + (py - half) * cos_a,
        )
        for px, py in outline
    ]


def shape_size(sample: "Sample", config: "RenderConfig", base_size: float) -> float:
    """Shape size, optionally scaled by brightness between scale_min/max %."""
    if not config.scale_enabled:
        return base_size
    percent = config.scale_min + sample.brightness * (config.scale_max - config.scale_min)
    return base_size * percent / 100


def shape_rotation(
    sample: "Sample", config: "RenderConfig", rng: "random.Random | None" = None
) -> float:
    """Rotation in degrees.

    AIDEV-NOTE: Rotation by brightness takes precedence over random jitter.
    """
    if config.rotation_by_brightness:
        return sample.brightness * 360
    rotation = config.rotation
    if config.rotation_random:
        rotation += ((rng or random).random() - 0.5) * config.rotation_range
    return rotation


def render_shapes(
    samples: "list[Sample]", config: "RenderConfig", cell_size: float
) -> "list[ShapeRecord]":
    """Render samples as geometric shapes.

    Args:
        samples: Samples to draw
        config: Render configuration (shape, scale, rotation, color)
        cell_size: Base shape size, normally the sampling cell size

    Returns:
        One ShapeRecord per sample
    """
    shape = ShapeType(config.shape_type)
    rng = random.Random(config.rotation_seed)
    records = []
    for sample in samples:
        size = shape_size(sample, config, cell_size)
        rotation = shape_rotation(sample, config, rng)
        outline = shape_outline(shape, size, config.circle_points)
        records.append(
            ShapeRecord(
                shape=shape,
                x=sample.x,
                y=sample.y,
                size=size,
                rotation=rotation,
                fill=sample_fill(sample, config),
                points=place_outline(outline, size, sample.x, sample.y, rotation),
                stroke=config.stroke,
                stroke_width=config.stroke_width,
            )
        )
    return records


# --- ASCII ---


def resolve_charset(name: str, custom: str = "") -> str:
    """Characters for a charset name; 'custom' uses the given string."""
    if name == "custom" and custom:
        return custom
    return CHARSETS.get(name, CHARSETS["standard"])


def map_brightness(brightness: float, charset: str, invert: bool = False) -> str:
    """Map brightness (0-1) to a character of the charset."""
    if not charset:
        charset = CHARSETS["standard"]
    last = len(charset) - 1
    index = math.floor(brightness * last)
    if invert:
        index = last - index
    return charset[max(0, min(index, last))]


def render_ascii(samples: "list[Sample]", config: "RenderConfig") -> "list[GlyphRecord]":
    """Render samples as charset glyphs centered on each sample."""
    charset = resolve_charset(config.charset, config.custom_charset)
    return [
        GlyphRecord(
            text=map_brightness(sample.brightness, charset, config.invert_brightness),
            x=sample.x,
            y=sample.y,
            font_size=config.font_size,
            fill=sample_fill(sample, config),
            font_family=config.font_family,
            letter_spacing=config.char_spacing,
        )
        for sample in samples
    ]


# --- Stops ---


def render_stops(
    pairs: "list[tuple[Sample, Stop]]", config: "RenderConfig", cell_size: float
) -> "list[GlyphRecord | BitmapRecord]":
    """Render (sample, stop) pairs as glyphs or bitmap stamps.

    Args:
        pairs: Resolved (and optionally merged) samples with their stops
        config: Render configuration (anchor, image size, font)
        cell_size: Size of one logical cell in pixels

    Returns:
        One record per pair

    AIDEV-NOTE: A merged sample covers merge_width x merge_height cells, so
    glyph size, background rect and bitmap size all scale with the extent.
    """
    records = []
    for sample, stop in pairs:
        extent_w = cell_size * (sample.merge_width or 1)
        extent_h = cell_size * (sample.merge_height or 1)

        if StopKind(stop.kind) == StopKind.BITMAP:
            width = extent_w * config.image_size / 100
            height = extent_h * config.image_size / 100
            dx, dy = rect_offset(config.anchor, extent_w, extent_h, width, height)
            records.append(
                BitmapRecord(
                    x=sample.x + dx,
                    y=sample.y + dy,
                    width=width,
                    height=height,
                    image=stop.value,
                )
            )
            continue

        background = None
        if stop.has_background:
            background = RectRecord(
                x=sample.x - extent_w / 2,
                y=sample.y - extent_h / 2,
                width=extent_w,
                height=extent_h,
                fill=stop.background,
            )

        placement = text_placement(config.anchor, extent_w, extent_h)
        records.append(
            GlyphRecord(
                text=str(stop.value),
                x=sample.x + placement.dx,
                y=sample.y + placement.dy,
                font_size=min(extent_w, extent_h),
                fill=stop.color,
                font_family=config.font_family,
                text_anchor=placement.text_anchor,
                dominant_baseline=placement.dominant_baseline,
                background=background,
            )
        )
    return records
