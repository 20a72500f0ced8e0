"""
Drip Brush - solid dots with the occasional run of paint.

Purely for flavor: each point gets a round dot, and roughly one in ten also
sprouts a narrow triangle running downward.
"""

import numpy as np

from ..stroke import Stroke
from .base import draw_mask, empty_alpha


class DripBrush:
    """Dots with random downward drips."""

    name = "drip"
    description = "Solid dots with occasional downward drips"
    deterministic = False

    drip_chance = 0.1
    drip_min_length = 1.0   # Multiples of brush size
    drip_max_length = 4.0

    def render(self, stroke: Stroke, width: int, height: int, rng: np.random.Generator) -> np.ndarray:
        if not stroke.is_visible:
            return empty_alpha(width, height)

        size = stroke.size

        def paint(draw):
            r = size / 2
            for point in stroke.points:
                draw.ellipse([point.x - r, point.y - r, point.x + r, point.y + r], fill=255)
                if rng.random() < self.drip_chance:
                    length = rng.uniform(size * self.drip_min_length, size * self.drip_max_length)
                    half = size * 0.25
                    draw.polygon(
                        [(point.x - half, point.y), (point.x + half, point.y), (point.x, point.y + length)],
                        fill=255,
                    )

        return draw_mask(width, height, paint) * stroke.opacity
