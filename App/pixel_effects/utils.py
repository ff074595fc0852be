"""Utility functions for color arithmetic and value clamping.

AIDEV-NOTE: round_half_up is used everywhere a channel value is rounded.
Python's built-in round() rounds half to even, which would change
posterize and dither output at exact .5 boundaries (e.g. 127.5).
"""

import math
import re

_HEX_COLOR = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 rounding towards +infinity."""
    return math.floor(value + 0.5)


def clamp_channel(value: float) -> int:
    """Round and clamp a color channel to [0, 255]."""
    return max(0, min(255, round_half_up(value)))


def hex_to_rgb(color: str) -> "tuple[int, int, int]":
    """Convert a hex color string to an RGB tuple.

    Args:
        color: "#rrggbb" or "rrggbb"

    Returns:
        RGB tuple (0-255 each channel), black if the string is not a color
    """
    match = _HEX_COLOR.match(color.strip()) if color else None
    if match is None:
        return (0, 0, 0)
    return (
        int(match.group(1), 16),
        int(match.group(2), 16),
        int(match.group(3), 16),
    )


def rgb_to_css(color: "tuple[int, int, int]") -> str:
    r, g, b = color
    return f"rgb({r}, {g}, {b})"


def interpolate_color(dark: str, light: str, factor: float) -> "tuple[int, int, int]":
    """Linearly interpolate between two hex colors.

    Args:
        dark: Color at factor 0
        light: Color at factor 1
        factor: Interpolation factor (0-1)

    Returns:
        Interpolated RGB tuple
    """
    r1, g1, b1 = hex_to_rgb(dark)
    r2, g2, b2 = hex_to_rgb(light)
    return (
        round_half_up(r1 + (r2 - r1) * factor),
        round_half_up(g1 + (g2 - g1) * factor),
        round_half_up(b1 + (b2 - b1) * factor),
    )
