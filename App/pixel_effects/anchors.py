"""Anchor placement of elements inside a sample's cell.

AIDEV-NOTE: Rects and bitmaps are positioned by their top-left corner, so
their table yields a corner offset. Glyphs keep their reference point on the
cell edge and let the renderer's text-anchor / dominant-baseline attributes
do the alignment, which is why they get a separate table.
"""

from typing import NamedTuple

from models import Anchor

# Horizontal and vertical alignment factors: -1 = left/top, 0 = center,
# 1 = right/bottom
_ALIGNMENT = {
    Anchor.TOP_LEFT: (-1, -1),
    Anchor.TOP: (0, -1),
    Anchor.TOP_RIGHT: (1, -1),
    Anchor.LEFT: (-1, 0),
    Anchor.CENTER: (0, 0),
    Anchor.RIGHT: (1, 0),
    Anchor.BOTTOM_LEFT: (-1, 1),
    Anchor.BOTTOM: (0, 1),
    Anchor.BOTTOM_RIGHT: (1, 1),
}

_TEXT_ANCHOR = {-1: "start", 0: "middle", 1: "end"}
_BASELINE = {-1: "hanging", 0: "middle", 1: "text-after-edge"}


class TextPlacement(NamedTuple):
    dx: float
    dy: float
    text_anchor: str
    dominant_baseline: str


def _alignment(anchor: "Anchor | str") -> "tuple[int, int]":
    return _ALIGNMENT[Anchor(anchor)]


def rect_offset(
    anchor: "Anchor | str",
    cell_width: float,
    cell_height: float,
    width: float,
    height: float,
) -> "tuple[float, float]":
    """Offset from the cell center to an element's top-left corner.

    Args:
        anchor: Where the element sits inside the cell
        cell_width: Cell width
        cell_height: Cell height
        width: Element width
        height: Element height

    Returns:
        (dx, dy) to add to the cell center
    """
    ax, ay = _alignment(anchor)
    return (
        _edge_offset(ax, cell_width, width),
        _edge_offset(ay, cell_height, height),
    )


def _edge_offset(alignment: int, cell_extent: float, extent: float) -> float:
    if alignment < 0:
        return -cell_extent / 2
    if alignment > 0:
        return cell_extent / 2 - extent
    return -extent / 2


def text_placement(
    anchor: "Anchor | str", cell_width: float, cell_height: float
) -> TextPlacement:
    """Glyph reference point offset and text alignment attributes."""
    ax, ay = _alignment(anchor)
    return TextPlacement(
        dx=ax * cell_width / 2,
        dy=ay * cell_height / 2,
        text_anchor=_TEXT_ANCHOR[ax],
        dominant_baseline=_BASELINE[ay],
    )
