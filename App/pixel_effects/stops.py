"""Brightness stops: resolution, adjacent-cell merging and stop editing.

AIDEV-NOTE: Stops are always read as a snapshot sorted ascending by
percentage. Python's sort is stable, so equal percentages keep list order,
which is also how ties are resolved.
"""

import logging
import random
from dataclasses import replace
from itertools import count

from models import Sample, Stop, StopKind

from .utils import round_half_up

logger = logging.getLogger(__name__)

# Character presets, darkest to brightest
CHARACTER_PRESETS = {
    "basic": [" ", ".", ":", "-", "=", "+", "*", "#", "%", "@"],
    "blocks": [" ", "░", "▒", "▓", "█"],
    "shades": [" ", "·", "•", "●", "◉", "⬤"],
    "binary": ["╚", "╔", "╩", "╦", "╠", "═", "╬"],
}

DEFAULT_STOPS = [(0, " "), (25, "·"), (50, "•"), (75, "●"), (100, "⬤")]


def sort_stops(stops: "list[Stop]") -> "list[Stop]":
    return sorted(stops, key=lambda stop: stop.percentage)


def resolve_stop(
    brightness: float,
    stops: "list[Stop]",
    random_pick: bool = False,
    rng: "random.Random | None" = None,
) -> "Stop | None":
    """Find the stop for a brightness value.

    Args:
        brightness: Brightness (0-1)
        stops: Stops sorted ascending by percentage
        random_pick: Ignore brightness and pick a uniformly random stop
        rng: Random source for random_pick (unseeded when None)

    Returns:
        The closest bracketing stop, or None when there are no stops

    AIDEV-NOTE: The first bracketing pair wins. Within it the closer stop
    wins and an exact tie goes to the lower-indexed stop.
    """
    if not stops:
        return None

    if random_pick:
        return (rng or random).choice(stops)

    percentage = brightness * 100

    for lower, upper in zip(stops, stops[1:]):
        if lower.percentage <= percentage <= upper.percentage:
            dist_lower = abs(percentage - lower.percentage)
            dist_upper = abs(percentage - upper.percentage)
            return lower if dist_lower <= dist_upper else upper

    if percentage < stops[0].percentage:
        return stops[0]
    return stops[-1]


def map_samples(
    samples: "list[Sample]",
    stops: "list[Stop]",
    random_pick: bool = False,
    seed: "int | None" = None,
) -> "list[tuple[Sample, Stop]]":
    """Resolve every sample to a stop, dropping samples with no stop."""
    snapshot = sort_stops(stops)
    if not snapshot:
        return []
    rng = random.Random(seed) if random_pick else None
    pairs = []
    for item in samples:
        stop = resolve_stop(item.brightness, snapshot, random_pick, rng)
        if stop is not None:
            pairs.append((item, stop))
    return pairs


def clamp_merge_range(merge_min: int, merge_max: int) -> "tuple[int, int]":
    low = max(1, int(merge_min))
    high = max(low, int(merge_max))
    if (low, high) != (merge_min, merge_max):
        logger.debug(
            "Merge range (%s, %s) clamped to (%d, %d)", merge_min, merge_max, low, high
        )
    return low, high


def merge_adjacent(
    pairs: "list[tuple[Sample, Stop]]",
    merge_min: int = 2,
    merge_max: int = 4,
) -> "list[tuple[Sample, Stop]]":
    """Greedily merge square blocks of same-stop neighboring cells.

    Args:
        pairs: (sample, stop) pairs; samples need a (col, row) cell to merge
        merge_min: Smallest block side tried
        merge_max: Largest block side tried

    Returns:
        New (sample, stop) pairs. Merged blocks become one averaged sample
        with merge_width = merge_height = block side; all others get 1.

    AIDEV-NOTE: Growth starts at merge_min and stops at the first size that
    fails, keeping the largest size accepted so far. There is no
    backtracking to a different origin, so results are greedy, not optimal.
    """
    merge_min, merge_max = clamp_merge_range(merge_min, merge_max)

    grid: "dict[tuple[int, int, int], tuple[Sample, Stop]]" = {}
    loose = []
    for item, stop in pairs:
        cell = item.cell
        if cell is None:
            loose.append((item, stop))
        else:
            grid[(cell[0], cell[1], stop.id)] = (item, stop)

    processed: "set[tuple[int, int, int]]" = set()
    merged = []

    for key, (item, stop) in grid.items():
        if key in processed:
            continue
        col, row, stop_id = key

        best = 0
        for size in range(merge_min, merge_max + 1):
            block = [
                (col + dx, row + dy, stop_id) for dy in range(size) for dx in range(size)
            ]
            if all(cell in grid and cell not in processed for cell in block):
                best = size
            else:
                break

        if best > 1:
            block = [
                (col + dx, row + dy, stop_id) for dy in range(best) for dx in range(best)
            ]
            processed.update(block)
            merged.append((_average([grid[cell][0] for cell in block], col, row, best), stop))
        else:
            processed.add(key)
            merged.append((_with_extent(item, 1), stop))

    for item, stop in loose:
        merged.append((_with_extent(item, 1), stop))

    return merged


def _with_extent(item: Sample, size: int) -> Sample:
    return replace(item, merge_width=size, merge_height=size)


def _average(block: "list[Sample]", col: int, row: int, size: int) -> Sample:
    n = len(block)
    return Sample(
        x=sum(s.x for s in block) / n,
        y=sum(s.y for s in block) / n,
        r=round_half_up(sum(s.r for s in block) / n),
        g=round_half_up(sum(s.g for s in block) / n),
        b=round_half_up(sum(s.b for s in block) / n),
        brightness=sum(s.brightness for s in block) / n,
        saturation=sum(s.saturation for s in block) / n,
        col=col,
        row=row,
        merge_width=size,
        merge_height=size,
    )


class StopCollection:
    """Editable, always-sorted list of stops.

    AIDEV-NOTE: Renderers never hold on to this object; they take a
    snapshot() per pass. Ids come from a counter and are never reused until
    clear().
    """

    def __init__(self, stops: "list[Stop] | None" = None, defaults: bool = True):
        self._stops: "list[Stop]" = []
        self._ids = count()
        if stops:
            for stop in stops:
                self._stops.append(stop)
            self._ids = count(max(stop.id for stop in stops) + 1)
            self._sort()
        elif defaults:
            for percentage, value in DEFAULT_STOPS:
                self.add_stop(percentage, value=value)

    def __len__(self) -> int:
        return len(self._stops)

    def __iter__(self):
        return iter(self.snapshot())

    def snapshot(self) -> "list[Stop]":
        return list(self._stops)

    def get(self, stop_id: int) -> "Stop | None":
        return next((stop for stop in self._stops if stop.id == stop_id), None)

    def _sort(self) -> None:
        self._stops.sort(key=lambda stop: stop.percentage)

    def add_stop(
        self,
        percentage: float,
        kind: StopKind = StopKind.CHARACTER,
        value=" ",
        color: str = "#ffffff",
        background: str = "#000000",
    ) -> Stop:
        stop = Stop(
            id=next(self._ids),
            percentage=max(0.0, min(100.0, percentage)),
            kind=kind,
            value=value,
            color=color,
            background=background,
        )
        self._stops.append(stop)
        self._sort()
        return stop

    def update_stop(self, stop_id: int, **changes) -> "Stop | None":
        """Apply field changes to a stop; unknown ids are ignored."""
        stop = self.get(stop_id)
        if stop is None:
            logger.debug("No stop with id %s", stop_id)
            return None
        for name, value in changes.items():
            if name == "id" or not hasattr(stop, name):
                raise ValueError(f"Cannot update stop field {name!r}")
            setattr(stop, name, value)
        if "kind" in changes:
            stop.kind = StopKind(stop.kind)
        if "percentage" in changes:
            stop.percentage = max(0.0, min(100.0, stop.percentage))
            self._sort()
        return stop

    def remove_stop(self, stop_id: int) -> bool:
        before = len(self._stops)
        self._stops = [stop for stop in self._stops if stop.id != stop_id]
        return len(self._stops) != before

    def clear(self) -> None:
        self._stops = []
        self._ids = count()

    def suggest_percentage(self) -> float:
        """Midpoint of the largest free gap on the brightness axis.

        Gaps are measured from 0, between neighbors and up to 100.
        """
        if not self._stops:
            return 50.0

        first = self._stops[0].percentage
        max_gap = first
        gap_start = 0.0
        for lower, upper in zip(self._stops, self._stops[1:]):
            gap = upper.percentage - lower.percentage
            if gap > max_gap:
                max_gap = gap
                gap_start = lower.percentage

        last = self._stops[-1].percentage
        end_gap = 100 - last
        if end_gap > max_gap:
            return float(round_half_up(last + end_gap / 2))
        return float(round_half_up(gap_start + max_gap / 2))

    def apply_even_spacing(self) -> None:
        """Spread stops evenly over 0-100, keeping their order."""
        n = len(self._stops)
        if n == 1:
            self._stops[0].percentage = 0.0
            return
        for index, stop in enumerate(self._stops):
            stop.percentage = index * 100 / (n - 1)

    def shuffle_values(self, seed: "int | None" = None) -> None:
        """Redistribute kinds/values (not colors) across the stops."""
        if len(self._stops) < 2:
            return
        values = [(stop.kind, stop.value) for stop in self._stops]
        random.Random(seed).shuffle(values)
        for stop, (kind, value) in zip(self._stops, values):
            stop.kind = kind
            stop.value = value

    def randomize_positions(self, seed: "int | None" = None) -> None:
        """Give every stop a random integer percentage, then re-sort."""
        rng = random.Random(seed)
        for stop in self._stops:
            stop.percentage = float(rng.randint(0, 100))
        self._sort()

    def apply_preset(self, name: str) -> None:
        """Replace all stops with an evenly spaced character preset.

        Raises:
            ValueError: If the preset name is unknown
        """
        characters = CHARACTER_PRESETS.get(name)
        if characters is None:
            raise ValueError(f"Unknown preset: {name}")
        self.clear()
        step = 100 / (len(characters) - 1)
        for index, char in enumerate(characters):
            self.add_stop(index * step, value=char)
