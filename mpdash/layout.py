"""
Turns Max/Min/Fixed/Ratio constraints into concrete screen slices.
"""
from typing import List, NamedTuple, Sequence, Tuple

from .schema import Fixed, Max, Min, Ratio


class Rect(NamedTuple):
    x: int
    y: int
    width: int
    height: int

    @property
    def empty(self):
        return self.width <= 0 or self.height <= 0


def resolve(constraints: Sequence, available: int) -> List[Tuple[int, int]]:
    """Return one ``(offset, length)`` per constraint.

    Fixed, Min and Max contribute their own length. Whatever is left goes
    to the Ratio entries by weight, rounding down, with the rounding
    remainder added to the last Ratio entry. Without Ratio entries the
    leftover goes to the last Min entry. With no Min either it goes to the
    last entry that is not a Max, so a Max never grows past its length;
    only when every entry is a Max does the last one take it. When the
    lengths overflow ``available`` the first item that crosses the edge is
    cut short and everything after it gets length 0.
    """
    available = max(available, 0)
    lengths = []
    ratios = []
    mins = []
    growable = []
    for i, constraint in enumerate(constraints):
        if isinstance(constraint, Ratio):
            ratios.append(i)
            lengths.append(0)
        elif isinstance(constraint, (Fixed, Min, Max)):
            if isinstance(constraint, Min):
                mins.append(i)
            if not isinstance(constraint, Max):
                growable.append(i)
            lengths.append(max(constraint.n, 0))
        else:
            raise TypeError(f'Not a constraint: {constraint!r}')

    remainder = available - sum(lengths)
    if remainder > 0:
        if ratios:
            total = sum(constraints[i].n for i in ratios)
            given = 0
            for i in ratios[:-1]:
                share = remainder * constraints[i].n // total if total else 0
                lengths[i] = share
                given += share
            lengths[ratios[-1]] = remainder - given
        elif lengths:
            target = (mins or growable or [len(lengths) - 1])[-1]
            lengths[target] += remainder

    slices = []
    offset = 0
    for length in lengths:
        length = min(length, available - offset)
        slices.append((offset, length))
        offset += length
    return slices


def split(area: Rect, constraints: Sequence, vertical: bool) -> List[Rect]:
    if vertical:
        return [Rect(area.x, area.y + offset, area.width, length)
                for offset, length in resolve(constraints, area.height)]
    return [Rect(area.x + offset, area.y, length, area.height)
            for offset, length in resolve(constraints, area.width)]
