"""
Marker Brush - one solid polyline, sharp joins, no randomness.

PIL draws each segment as its own rectangle, which leaves a notch on the
outside of every corner. The notch is filled with a miter wedge; corners
sharper than the miter limit fall back to a bevel.
"""

import math
from typing import List, Optional, Tuple

import numpy as np

from ..stroke import Stroke
from .base import draw_mask, empty_alpha, xy

Vec = Tuple[float, float]


def _unit(dx: float, dy: float) -> Optional[Vec]:
    length = math.hypot(dx, dy)
    if length == 0:
        return None
    return dx / length, dy / length


class MarkerBrush:
    """Fully deterministic solid line."""

    name = "marker"
    description = "Solid polyline with sharp joins"
    deterministic = True

    # Longest miter allowed, in half line widths
    miter_limit = 4.0

    def render(self, stroke: Stroke, width: int, height: int, rng: np.random.Generator) -> np.ndarray:
        if not stroke.is_visible:
            return empty_alpha(width, height)

        line_width = max(1, int(round(stroke.size)))
        points = xy(stroke.points)
        joins = self.miter_joins(points, line_width / 2)

        def paint(draw):
            draw.line(points, fill=255, width=line_width)
            for wedge in joins:
                draw.polygon(wedge, fill=255)

        return draw_mask(width, height, paint) * stroke.opacity

    def miter_joins(self, points: List[Vec], half: float) -> List[List[Vec]]:
        """Wedges filling the outer side of each interior vertex."""
        wedges = []
        for a, b, c in zip(points, points[1:], points[2:]):
            d1 = _unit(b[0] - a[0], b[1] - a[1])
            d2 = _unit(c[0] - b[0], c[1] - b[1])
            if d1 is None or d2 is None:
                continue
            cross = d1[0] * d2[1] - d1[1] * d2[0]
            if abs(cross) < 1e-9:
                continue

            # Outer side is opposite the turn
            side = -1.0 if cross > 0 else 1.0
            n1 = (-d1[1] * side, d1[0] * side)
            n2 = (-d2[1] * side, d2[0] * side)
            o1 = (b[0] + n1[0] * half, b[1] + n1[1] * half)
            o2 = (b[0] + n2[0] * half, b[1] + n2[1] * half)

            bisector = _unit(n1[0] + n2[0], n1[1] + n2[1])
            if bisector is None:
                continue
            cos_half = bisector[0] * n1[0] + bisector[1] * n1[1]
            miter = half / cos_half if cos_half > 0 else math.inf
            if miter > self.miter_limit * half:
                wedges.append([b, o1, o2])
            else:
                tip = (b[0] + bisector[0] * miter, b[1] + bisector[1] * miter)
                wedges.append([b, o1, tip, o2])
        return wedges
