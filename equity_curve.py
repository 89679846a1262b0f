"""
Equity-curve normalization for bounded-area plotting (SVG polyline coordinates).
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

DEFAULT_WIDTH = 100.0
DEFAULT_HEIGHT = 150.0

Point = Tuple[float, float]


def normalize_curve(
    series: Sequence[float],
    height: float = DEFAULT_HEIGHT,
    width: float = DEFAULT_WIDTH,
) -> List[Point]:
    """
    Map ``series`` onto a ``width`` x ``height`` box, larger values plotted higher.

    The caller guarantees at least two points. A flat series is drawn along the
    vertical midpoint.
    """
    low = min(series)
    high = max(series)
    span = high - low
    last = len(series) - 1

    points: List[Point] = []
    for idx, value in enumerate(series):
        x = idx / last * width
        if span == 0:
            y = height / 2
        else:
            y = height - ((value - low) / span) * height
        points.append((x, y))
    return points


def _fmt(value: float) -> str:
    return f"{value:g}"


def to_polyline_points(points: Sequence[Point]) -> str:
    return " ".join(f"{_fmt(x)},{_fmt(y)}" for x, y in points)


def to_area_points(
    points: Sequence[Point],
    height: float = DEFAULT_HEIGHT,
    width: float = DEFAULT_WIDTH,
) -> str:
    """Polyline closed along the bottom edge, for a filled area under the curve."""
    return f"0,{_fmt(height)} {to_polyline_points(points)} {_fmt(width)},{_fmt(height)}"
