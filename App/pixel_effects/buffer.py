"""RGBA pixel buffer shared by every stage of the pipeline.

AIDEV-NOTE: Image decoding happens outside this package. Callers hand us
either a Pillow image (adapted with PixelBuffer.from_image) or a raw
(height, width, 4) uint8 array. Out-of-bounds reads never fail: they return
transparent black, since sample coordinates can legitimately leave the image
after displacement.
"""

import math

import numpy as np
from PIL import Image

OUT_OF_BOUNDS_PIXEL = (0, 0, 0, 0)


class PixelBuffer:
    """Width x height RGBA grid backed by a numpy uint8 array."""

    def __init__(self, data: np.ndarray):
        """Wrap an existing pixel array.

        Args:
            data: Array of shape (height, width, 4). RGB arrays of shape
                (height, width, 3) get an opaque alpha channel.

        Raises:
            ValueError: If the array does not describe an RGB(A) image
        """
        array = np.asarray(data)
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise ValueError(
                f"Expected (height, width, 3|4) pixel array, got shape {array.shape}"
            )

        if array.shape[2] == 3:
            alpha = np.full(array.shape[:2] + (1,), 255, dtype=np.uint8)
            array = np.concatenate(
                [np.clip(array, 0, 255).astype(np.uint8), alpha], axis=2
            )
        elif array.dtype != np.uint8:
            array = np.clip(np.rint(array), 0, 255).astype(np.uint8)

        self.data = np.ascontiguousarray(array)

    @classmethod
    def blank(
        cls,
        width: int,
        height: int,
        color: "tuple[int, int, int, int]" = (0, 0, 0, 255),
    ) -> "PixelBuffer":
        data = np.empty((max(0, height), max(0, width), 4), dtype=np.uint8)
        data[:, :] = color
        return cls(data)

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        """Adapt a decoded Pillow image.

        AIDEV-NOTE: Always convert to RGBA for consistent processing.
        """
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls(np.array(image, dtype=np.uint8))

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.data)

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.data.copy())

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def size(self) -> "tuple[int, int]":
        return (self.width, self.height)

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_pixel(self, x: int, y: int) -> "tuple[int, int, int, int]":
        """Get RGBA color at a pixel location.

        Returns:
            RGBA tuple (0-255 each channel), transparent black when
            (x, y) lies outside the buffer
        """
        if not self.in_bounds(x, y):
            return OUT_OF_BOUNDS_PIXEL
        r, g, b, a = self.data[y, x]
        return (int(r), int(g), int(b), int(a))

    def get_color(self, x: int, y: int) -> "tuple[int, int, int]":
        """Get RGB color at a pixel location (black when out of bounds)."""
        return self.get_pixel(x, y)[:3]

    def sample_color(self, x: float, y: float) -> "tuple[int, int, int]":
        """Get RGB color at continuous coordinates.

        The position is clamped into the buffer before reading, so any
        finite coordinate maps to a real pixel. NaN or infinite coordinates
        read as black.
        """
        if self.is_empty() or not (math.isfinite(x) and math.isfinite(y)):
            return OUT_OF_BOUNDS_PIXEL[:3]
        px = min(max(math.floor(x), 0), self.width - 1)
        py = min(max(math.floor(y), 0), self.height - 1)
        return self.get_color(px, py)

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height})"
