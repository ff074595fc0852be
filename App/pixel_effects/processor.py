"""Main pixel effects processor orchestrating the complete pipeline.

AIDEV-NOTE: This module handles the complete pipeline from a pixel buffer
to drawable records:
    displacement (UV remap) -> raster quantization -> sampling ->
    sample quantization -> shapes / ascii / stops rendering
Every stage is optional except sampling and rendering, and each stage works
on a fresh buffer or sample list so the caller's input is never modified.
"""

import logging
from pathlib import Path

from PIL import Image

from models import (
    QuantizeTarget,
    RenderConfig,
    RenderMode,
    RenderResult,
    SamplingMethod,
    Stop,
)

from .buffer import PixelBuffer
from .displacement import displace_buffer
from .quantization import quantize_buffer, quantize_samples
from .rendering import render_ascii, render_shapes, render_stops
from .sampling import grid_shape, sample
from .stops import DEFAULT_STOPS, map_samples, merge_adjacent

logger = logging.getLogger(__name__)

# Levels per channel when dithering is on without posterize
DITHER_ONLY_LEVELS = 8

# Strategies whose samples sit on a dense (col, row) grid
GRID_STRATEGIES = (
    SamplingMethod.GRID,
    SamplingMethod.STRATIFIED,
    SamplingMethod.JITTERED,
)


class PixelEffectsProcessor:
    """Turns images into shape, glyph or stop-mapped records."""

    def __init__(self, config: "RenderConfig | None" = None):
        if config is None:
            config = RenderConfig()
        if not isinstance(config, RenderConfig):
            raise ValueError(
                f"Expected RenderConfig, got {type(config).__name__}"
            )
        self.config = config

    def load_image(self, file_path: str | Path) -> Image.Image:
        """Load and validate an image file.

        Args:
            file_path: Path to image file (PNG, JPG, etc.)

        Returns:
            PIL Image in RGBA mode

        Raises:
            ValueError: If file cannot be loaded or is invalid
        """
        try:
            image = Image.open(file_path)
            # AIDEV-NOTE: Always convert to RGBA for consistent processing
            if image.mode != "RGBA":
                image = image.convert("RGBA")
            return image
        except (OSError, Image.DecompressionBombError) as e:
            raise ValueError(f"Failed to load image: {e}") from e

    def prepare_buffer(self, buffer: PixelBuffer) -> PixelBuffer:
        """Apply displacement and raster quantization to a buffer.

        Args:
            buffer: Source pixels (left untouched)

        Returns:
            The buffer to sample from
        """
        config = self.config
        if config.displacement_enabled:
            logger.info(
                "Displacing buffer (layers=%d, exponent=%s, strength=%s)",
                config.displacement.layer_count,
                config.displacement.exponent,
                config.displacement.strength,
            )
            buffer = displace_buffer(buffer, config.displacement, config.interpolation)

        levels = self.quantize_levels()
        target = QuantizeTarget(config.quantize_target)
        if levels is not None and target == QuantizeTarget.RASTER:
            logger.info(
                "Posterizing raster to %d levels%s",
                levels,
                " with dithering" if config.dither else "",
            )
            buffer = quantize_buffer(buffer, levels, config.dither)
        return buffer

    def quantize_levels(self) -> "int | None":
        """Levels per channel for the quantize stage, None when it is off.

        AIDEV-NOTE: Dithering without posterize still quantizes, at
        DITHER_ONLY_LEVELS.
        """
        if self.config.posterize:
            return self.config.posterize_levels
        if self.config.dither:
            return DITHER_ONLY_LEVELS
        return None

    def sample_dither_enabled(self) -> bool:
        """Whether sample-mode quantization may diffuse error.

        Random and Poisson samples have no dense grid to diffuse over.
        """
        if not self.config.dither:
            return False
        if SamplingMethod(self.config.sampling_method) in GRID_STRATEGIES:
            return True
        logger.info(
            "Dithering disabled for %s sampling (no grid)",
            SamplingMethod(self.config.sampling_method).value,
        )
        return False

    def render(
        self,
        source: "PixelBuffer | Image.Image | None",
        stops: "list[Stop] | None" = None,
    ) -> RenderResult:
        """Execute the complete pipeline.

        Args:
            source: PixelBuffer or Pillow image
            stops: Stops for stops mode, defaults to the default stop set

        Returns:
            RenderResult with records in sample order; empty when there is
            nothing to sample
        """
        config = self.config
        mode = RenderMode(config.render_mode)

        if isinstance(source, Image.Image):
            source = PixelBuffer.from_image(source)
        if source is None or source.is_empty():
            logger.debug("Nothing to render: no pixels")
            return RenderResult(records=[], samples=[], render_mode=mode)

        width, height = source.size
        logger.info("Rendering %dx%d buffer in %s mode", width, height, mode.value)

        buffer = self.prepare_buffer(source)

        samples = sample(
            buffer,
            config.cell_size,
            config.sampling_method,
            jitter_amount=config.jitter_amount,
            seed=config.sampling_seed,
        )
        sample_count = len(samples)
        logger.info("Sampled %d points", sample_count)

        levels = self.quantize_levels()
        if (
            samples
            and levels is not None
            and QuantizeTarget(config.quantize_target) == QuantizeTarget.SAMPLES
        ):
            cols, rows = grid_shape(buffer, config.cell_size)
            quantize_samples(
                samples,
                levels,
                self.sample_dither_enabled(),
                cols=cols,
                rows=rows,
            )

        merged_count = 0
        if mode == RenderMode.SHAPES:
            records = render_shapes(samples, config, config.cell_size)
        elif mode == RenderMode.ASCII:
            records = render_ascii(samples, config)
        else:
            if stops is None:
                stops = default_stops()
            pairs = map_samples(
                samples, stops, config.random_stop_pick, config.stop_seed
            )
            if config.merge_enabled:
                resolved = len(pairs)
                pairs = merge_adjacent(pairs, config.merge_min, config.merge_max)
                merged_count = resolved - len(pairs)
                logger.info("Merged %d samples into blocks", merged_count)
            samples = [item for item, _ in pairs]
            records = render_stops(pairs, config, config.cell_size)

        logger.info("Render complete: %d records", len(records))
        return RenderResult(
            records=records,
            samples=samples,
            render_mode=mode,
            width=width,
            height=height,
            sample_count=sample_count,
            merged_count=merged_count,
        )

    def process(self, image: "Image.Image | str | Path") -> RenderResult:
        """Render a Pillow image, loading it first when given a path.

        Args:
            image: Pillow image or path to an image file

        Returns:
            RenderResult for the image
        """
        if not isinstance(image, Image.Image):
            logger.info("Loading image %s", image)
            image = self.load_image(image)
        return self.render(image)


def default_stops() -> "list[Stop]":
    """A fresh copy of the default stop set."""
    return [
        Stop(id=index, percentage=float(percentage), value=value)
        for index, (percentage, value) in enumerate(DEFAULT_STOPS)
    ]
