"""
Paint Brush - quadratic-smoothed line with a light bristle texture.

The line passes through segment midpoints using each sampled point as the
control point of a quadratic curve, which removes the jitter of raw pointer
samples. Every other point gets a faint randomly offset dab on top, so the
result is mostly deterministic with a little grain.
"""

from typing import List, Tuple

import numpy as np

from ..stroke import Stroke
from .base import draw_mask, empty_alpha, over


class PaintBrush:
    """Smoothed line plus low-weight texture dabs."""

    name = "brush"
    description = "Quadratic-smoothed line with soft texture dabs"
    deterministic = False

    line_alpha = 0.6
    dab_alpha = 0.2
    curve_samples = 8

    def render(self, stroke: Stroke, width: int, height: int, rng: np.random.Generator) -> np.ndarray:
        if not stroke.is_visible:
            return empty_alpha(width, height)

        line_width = max(1, int(round(stroke.size)))
        path = self.smooth_path(stroke)
        line = draw_mask(
            width, height,
            lambda draw: draw.line(path, fill=255, width=line_width, joint="curve"),
        ) * (stroke.opacity * self.line_alpha)

        def dabs(draw):
            for point in stroke.points[::2]:
                ox, oy = rng.normal(0.0, stroke.size * 0.25, 2)
                r = stroke.size * 0.3 * (0.5 + rng.random())
                x, y = point.x + ox, point.y + oy
                draw.ellipse([x - r, y - r, x + r, y + r], fill=255)

        texture = draw_mask(width, height, dabs) * (stroke.opacity * self.dab_alpha)
        return over(line, texture)

    def smooth_path(self, stroke: Stroke) -> List[Tuple[float, float]]:
        """Midpoint quadratic smoothing, ending on the last sampled point."""
        pts = [(p.x, p.y) for p in stroke.points]
        path = [pts[0]]
        current = pts[0]
        for i in range(1, len(pts) - 1):
            control = pts[i]
            end = ((pts[i][0] + pts[i + 1][0]) / 2, (pts[i][1] + pts[i + 1][1]) / 2)
            for step in range(1, self.curve_samples + 1):
                t = step / self.curve_samples
                u = 1.0 - t
                path.append((
                    u * u * current[0] + 2 * u * t * control[0] + t * t * end[0],
                    u * u * current[1] + 2 * u * t * control[1] + t * t * end[1],
                ))
            current = end
        path.append(pts[-1])
        return path
