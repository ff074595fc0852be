"""Pixel effects pipeline: images to shape, glyph and stop-mapped records.

AIDEV-NOTE: This package handles the complete pipeline from a pixel buffer
to ordered drawable records. Organized into modular components:
- processor: Main PixelEffectsProcessor orchestrator
- buffer: RGBA pixel buffer backed by numpy
- sampling: Grid, random, stratified, jittered and Poisson-disk sampling
- quantization: Posterize with Floyd-Steinberg dithering
- displacement: Multi-scale hash noise and UV remap
- stops: Brightness stops, merging and the editable stop collection
- anchors: Element placement inside a cell
- rendering: Shapes, charset glyphs and stop-mapped records
"""

from .buffer import PixelBuffer
from .processor import PixelEffectsProcessor
from .stops import StopCollection

__all__ = ["PixelBuffer", "PixelEffectsProcessor", "StopCollection"]
