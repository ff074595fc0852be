"""Data models and constants for the pixel effects pipeline."""

import colorsys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

# Luminance weights (ITU-R BT.601), shared by every brightness computation
LUMA_R = 0.299
LUMA_G = 0.587
LUMA_B = 0.114

# Configuration file path
CONFIG_FILE = Path.home() / ".pixel_effects_config.json"


def luminance(r: float, g: float, b: float) -> float:
    """Perceived brightness (0-1) of an RGB color with 0-255 channels."""
    return (LUMA_R * r + LUMA_G * g + LUMA_B * b) / 255.0


def saturation(r: float, g: float, b: float) -> float:
    """HSV saturation (0-1) of an RGB color with 0-255 channels."""
    return colorsys.rgb_to_hsv(r / 255.0, g / 255.0, b / 255.0)[1]


class SamplingMethod(Enum):
    """Spatial sampling strategies.

    AIDEV-NOTE: Only GRID, STRATIFIED and JITTERED record a (col, row) cell.
    RANDOM and POISSON produce cell-less samples, which rules out sample-mode
    dithering and adjacent merging.
    """

    GRID = "grid"
    RANDOM = "random"
    STRATIFIED = "stratified"
    JITTERED = "jittered"
    POISSON = "poisson"


class RenderMode(Enum):
    """How samples are turned into drawable records."""

    SHAPES = "shapes"  # One geometric shape per sample
    ASCII = "ascii"  # One charset glyph per sample
    STOPS = "stops"  # Brightness stops (glyph or bitmap), optionally merged


class QuantizeTarget(Enum):
    """Where posterization is applied."""

    RASTER = "raster"  # Every pixel, before sampling
    SAMPLES = "samples"  # Sampled colors, on the logical grid


class ColorMode(Enum):
    ORIGINAL = "original"
    GRAYSCALE = "grayscale"
    DUOTONE = "duotone"


class ShapeType(Enum):
    CIRCLE = "circle"
    SQUARE = "square"
    TRIANGLE = "triangle"
    DIAMOND = "diamond"
    STAR = "star"
    CROSS = "cross"


class StopKind(Enum):
    CHARACTER = "character"
    BITMAP = "bitmap"


class Anchor(Enum):
    """Placement of an element inside its cell."""

    TOP_LEFT = "top-left"
    TOP = "top"
    TOP_RIGHT = "top-right"
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM = "bottom"
    BOTTOM_RIGHT = "bottom-right"


class Interpolation(Enum):
    NEAREST = "nearest"
    BILINEAR = "bilinear"


# --- Pipeline Models ---


@dataclass
class Sample:
    """A single point extracted from an image.

    AIDEV-NOTE: Created by the sampler, mutated in place by quantization,
    read-only afterwards. col/row are None for strategies without a logical
    grid; merge_width/merge_height stay None until merging runs.
    """

    x: float  # Continuous image-space coordinates
    y: float
    r: int  # RGB color (0-255)
    g: int
    b: int
    brightness: float = 0.0  # 0-1, luminance weighted
    saturation: float = 0.0  # 0-1, HSV saturation
    col: "int | None" = None
    row: "int | None" = None
    merge_width: "int | None" = None
    merge_height: "int | None" = None

    @classmethod
    def from_color(
        cls,
        x: float,
        y: float,
        color: "tuple[int, int, int]",
        col: "int | None" = None,
        row: "int | None" = None,
    ) -> "Sample":
        r, g, b = color
        sample = cls(x=x, y=y, r=int(r), g=int(g), b=int(b), col=col, row=row)
        sample.refresh_metrics()
        return sample

    @property
    def color(self) -> "tuple[int, int, int]":
        return (self.r, self.g, self.b)

    @property
    def cell(self) -> "tuple[int, int] | None":
        if self.col is None or self.row is None:
            return None
        return (self.col, self.row)

    def refresh_metrics(self) -> None:
        """Recompute brightness and saturation after a color change."""
        self.brightness = luminance(self.r, self.g, self.b)
        self.saturation = saturation(self.r, self.g, self.b)


@dataclass
class Stop:
    """A brightness-indexed mapping entry.

    AIDEV-NOTE: percentage is the position on the brightness axis (0-100).
    For BITMAP stops, value is an opaque image reference handed through to
    the renderer untouched.
    """

    id: int
    percentage: float
    kind: StopKind = StopKind.CHARACTER
    value: Any = " "
    color: str = "#ffffff"  # Foreground
    background: str = "#000000"  # Hex color or "none"

    def __post_init__(self):
        self.kind = StopKind(self.kind)

    @property
    def has_background(self) -> bool:
        return bool(self.background) and self.background.lower() != "none"


@dataclass(frozen=True)
class DisplacementParams:
    """Multi-scale noise displacement settings, immutable per render pass."""

    layer_count: int = 5  # >= 1
    exponent: float = 2.0  # > 0, contrast sharpening
    strength: float = 20.0  # Pixels
    seed: int = 0


@dataclass
class RectRecord:
    """Background rectangle drawn behind a glyph."""

    x: float
    y: float
    width: float
    height: float
    fill: str


@dataclass
class ShapeRecord:
    """A filled geometric shape.

    Points are absolute image-space coordinates of the closed outline,
    already rotated and translated.
    """

    shape: ShapeType
    x: float  # Center
    y: float
    size: float
    rotation: float  # Degrees
    fill: str
    points: "list[tuple[float, float]]" = field(default_factory=list)
    stroke: str = "none"
    stroke_width: float = 0.0


@dataclass
class GlyphRecord:
    """A text glyph, optionally with a background rectangle."""

    text: str
    x: float
    y: float
    font_size: float
    fill: str
    font_family: str = "monospace"
    text_anchor: str = "middle"
    dominant_baseline: str = "middle"
    letter_spacing: float = 1.0  # Multiple of the natural advance
    background: "RectRecord | None" = None

    @property
    def letter_spacing_px(self) -> float:
        """Extra spacing in pixels for renderers with a CSS letter-spacing."""
        return (self.letter_spacing - 1) * self.font_size


@dataclass
class BitmapRecord:
    """A bitmap stamp placed at (x, y) top-left."""

    x: float
    y: float
    width: float
    height: float
    image: Any


DrawableRecord = ShapeRecord | GlyphRecord | BitmapRecord


_CONFIG_ENUMS = {
    "render_mode": RenderMode,
    "sampling_method": SamplingMethod,
    "quantize_target": QuantizeTarget,
    "interpolation": Interpolation,
    "color_mode": ColorMode,
    "shape_type": ShapeType,
    "anchor": Anchor,
}


@dataclass
class RenderConfig:
    """Configuration for sampling, quantization, displacement and rendering."""

    # Rendering mode
    render_mode: RenderMode = RenderMode.SHAPES

    # Sampling
    cell_size: float = 10.0  # Pixels per logical cell (> 0)
    sampling_method: SamplingMethod = SamplingMethod.GRID
    jitter_amount: float = 0.4  # Fraction of a cell, jittered grid only
    sampling_seed: "int | None" = None  # None = not reproducible

    # Posterize / dither
    posterize: bool = False
    posterize_levels: int = 8  # Levels per channel (2-256)
    dither: bool = False
    quantize_target: QuantizeTarget = QuantizeTarget.RASTER

    # Displacement (UV remap before sampling)
    displacement_enabled: bool = False
    displacement: DisplacementParams = field(default_factory=DisplacementParams)
    interpolation: Interpolation = Interpolation.NEAREST

    # Color
    color_mode: ColorMode = ColorMode.ORIGINAL
    duotone_dark: str = "#000000"
    duotone_light: str = "#ffffff"

    # Shapes mode
    shape_type: ShapeType = ShapeType.CIRCLE
    scale_enabled: bool = False
    scale_min: float = 20.0  # Percent of cell size at brightness 0
    scale_max: float = 100.0  # Percent of cell size at brightness 1
    rotation: float = 0.0  # Degrees
    rotation_by_brightness: bool = False
    rotation_random: bool = False
    rotation_range: float = 90.0  # Degrees, total spread of random rotation
    rotation_seed: "int | None" = None
    stroke: str = "none"
    stroke_width: float = 0.0
    circle_points: int = 16  # Outline points per circle

    # ASCII mode
    charset: str = "standard"
    custom_charset: str = ""
    invert_brightness: bool = False
    font_family: str = "monospace"
    font_size: float = 10.0
    char_spacing: float = 1.0  # Letter spacing multiple, 1 = natural

    # Stops mode
    merge_enabled: bool = False
    merge_min: int = 2
    merge_max: int = 4
    anchor: Anchor = Anchor.CENTER
    image_size: float = 100.0  # Bitmap size, percent of the (merged) cell
    random_stop_pick: bool = False
    stop_seed: "int | None" = None

    def __post_init__(self):
        # Plain string values (e.g. from JSON or callers) become enum members
        for name, enum_type in _CONFIG_ENUMS.items():
            setattr(self, name, enum_type(getattr(self, name)))


@dataclass
class RenderResult:
    """Result of a render pass."""

    # Drawable records in sample order
    records: "list[DrawableRecord]"

    # Samples after quantization (and merging, in stops mode)
    samples: "list[Sample]"

    render_mode: RenderMode

    # Source buffer dimensions (pixels)
    width: int = 0
    height: int = 0

    # Statistics
    sample_count: int = 0  # Samples drawn from the buffer, before merging
    merged_count: int = 0  # Samples absorbed into merged blocks

    @property
    def record_count(self) -> int:
        return len(self.records)
