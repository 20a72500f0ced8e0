"""
Strokes - a single continuous paint gesture.

A Stroke is an ordered, append-only list of timestamped points plus the style
it was painted with. Rendering lives in the brushes package; a stroke only
knows its own shape.
"""

import itertools
import math
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

DEFAULT_PRESSURE = 1.0
MIN_PRESSURE = 0.3

_stroke_ids = itertools.count(1)


@dataclass(frozen=True)
class Point:
    """A sampled pointer position. Pressure is None on non-pressure devices."""
    x: float
    y: float
    timestamp: float = field(default_factory=time.time)
    pressure: Optional[float] = None

    @property
    def effective_pressure(self) -> float:
        """Pressure normalized into [0.3, 1.0], defaulted when absent."""
        if self.pressure is None:
            return DEFAULT_PRESSURE
        return max(MIN_PRESSURE, min(1.0, self.pressure))

    def distance_to(self, other: "Point") -> float:
        return math.hypot(other.x - self.x, other.y - self.y)


@dataclass(frozen=True)
class StrokeStyle:
    """Paint attributes chosen before the gesture starts.

    size and opacity are expected to arrive clamped; nothing here re-clamps.
    density and flow only affect the spray brush.
    """
    color: Tuple[int, int, int] = (255, 20, 147)
    size: float = 15.0
    opacity: float = 1.0
    brush_kind: str = "spray"
    density: float = 0.7
    flow: float = 0.8


@dataclass
class Stroke:
    """One gesture: created on press, extended while held, sealed on release."""
    style: StrokeStyle
    points: List[Point] = field(default_factory=list)
    id: str = field(default_factory=lambda: f"stroke-{next(_stroke_ids)}")
    created_at: float = field(default_factory=time.time)

    @property
    def color(self) -> Tuple[int, int, int]:
        return self.style.color

    @property
    def size(self) -> float:
        return self.style.size

    @property
    def opacity(self) -> float:
        return self.style.opacity

    @property
    def brush_kind(self) -> str:
        return self.style.brush_kind

    @property
    def is_visible(self) -> bool:
        """Fewer than two points never leaves a mark."""
        return len(self.points) >= 2

    def add_point(self, point: Point) -> None:
        self.points.append(point)

    def length(self) -> float:
        """Total path length in pixels."""
        return sum(a.distance_to(b) for a, b in zip(self.points, self.points[1:]))
