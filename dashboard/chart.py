"""
SVG line-chart geometry for time-series records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from greenhouse.schemas import TimeseriesRecord


class LinearScale:
    """
    Map a numeric domain linearly onto an output range.
    """

    def __init__(self, domain: Tuple[float, float], range: Tuple[float, float]) -> None:
        self.domain = (float(domain[0]), float(domain[1]))
        self.range = (float(range[0]), float(range[1]))

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            # Degenerate domain (single point): centre it.
            return (r0 + r1) / 2
        return r0 + (float(value) - d0) / (d1 - d0) * (r1 - r0)

    def ticks(self, count: int = 5) -> List[float]:
        d0, d1 = self.domain
        if count <= 1 or d1 == d0:
            return [d0]
        step = (d1 - d0) / (count - 1)
        return [d0 + i * step for i in range(count)]


def time_scale(
    records: Sequence[TimeseriesRecord], width: float, margin: float = 0.0
) -> LinearScale:
    stamps = [record.when.timestamp() for record in records] or [0.0]
    return LinearScale((min(stamps), max(stamps)), (margin, width - margin))


def value_scale(
    records: Sequence[TimeseriesRecord],
    height: float,
    margin: float = 0.0,
    pad: float = 1.0,
) -> LinearScale:
    values = [record.value for record in records] or [0.0]
    # SVG y grows downwards, so the range is inverted.
    return LinearScale((min(values) - pad, max(values) + pad), (height - margin, margin))


def line_path(
    records: Sequence[TimeseriesRecord], x: LinearScale, y: LinearScale
) -> str:
    commands = []
    for index, record in enumerate(records):
        op = "M" if index == 0 else "L"
        commands.append(f"{op}{x(record.when.timestamp()):.2f},{y(record.value):.2f}")
    return " ".join(commands)


@dataclass
class Chart:
    width: float
    height: float
    path: str
    y_ticks: List[Tuple[float, float]] = field(default_factory=list)
    latest: Optional[TimeseriesRecord] = None


def build_chart(
    records: Sequence[TimeseriesRecord],
    width: float = 800,
    height: float = 300,
    margin: float = 30,
    tick_count: int = 5,
) -> Chart:
    if not records:
        return Chart(width=width, height=height, path="")
    x = time_scale(records, width, margin)
    y = value_scale(records, height, margin)
    y_ticks = [(round(value, 1), round(y(value), 2)) for value in y.ticks(tick_count)]
    return Chart(
        width=width,
        height=height,
        path=line_path(records, x, y),
        y_ticks=y_ticks,
        latest=records[-1],
    )
