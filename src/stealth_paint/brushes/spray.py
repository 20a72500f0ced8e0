"""
Spray Brush - particle clouds that build up like a real can.

Sub-points are interpolated every couple of pixels along each segment, and
each sub-point throws a burst of particles. Particle distance from the nozzle
center follows a half-normal distribution, so paint is dense in the middle
and feathers out at the edge. Every particle is faint; density comes from
overlap.
"""

import math

import numpy as np

from ..stroke import Stroke
from .base import deposit_particles, empty_alpha


class SprayBrush:
    """Non-deterministic particle spray."""

    name = "spray"
    description = "Translucent particle cloud, buildable, center-weighted"
    deterministic = False

    # Gap between interpolated sub-points, pixels
    interpolation_spacing = 2.0
    # Particles emitted per sub-point per unit of size * density
    particles_per_size = 3.0
    # How much opacity survives at the edge of the nozzle (1.0 = no falloff)
    center_weight = 0.7
    # Single particle opacity before flow and stroke opacity
    particle_alpha = 0.15
    # Particle disk radius per unit of brush size
    particle_scale = 1.0 / 15.0

    def render(self, stroke: Stroke, width: int, height: int, rng: np.random.Generator) -> np.ndarray:
        if not stroke.is_visible:
            return empty_alpha(width, height)

        style = stroke.style
        per_point = int(math.floor(style.size * style.density * self.particles_per_size))
        if per_point <= 0 or style.size <= 0:
            return empty_alpha(width, height)

        cx, cy, pressure = self._sub_points(stroke)
        cx = np.repeat(cx, per_point)
        cy = np.repeat(cy, per_point)
        pressure = np.repeat(pressure, per_point)
        count = cx.size

        # Half-normal radial distance, uniform angle: center-biased cloud
        angle = rng.uniform(0.0, 2.0 * math.pi, count)
        distance = np.abs(rng.standard_normal(count)) * 0.5 * style.size
        xs = cx + np.cos(angle) * distance
        ys = cy + np.sin(angle) * distance

        ratio = distance / style.size
        alphas = (
            style.opacity * style.flow * pressure
            * (1.0 - ratio * (1.0 - self.center_weight))
            * self.particle_alpha
        )

        radius = int(round(style.size * self.particle_scale))
        return deposit_particles(width, height, xs, ys, alphas, radius)

    def _sub_points(self, stroke: Stroke):
        """Interpolate along each segment, proportional to its length."""
        xs, ys, ps = [], [], []
        first = stroke.points[0]
        xs.append(first.x)
        ys.append(first.y)
        ps.append(first.effective_pressure)
        for prev, point in zip(stroke.points, stroke.points[1:]):
            gap = prev.distance_to(point)
            steps = max(1, int(gap // self.interpolation_spacing))
            for step in range(1, steps + 1):
                t = step / steps
                xs.append(prev.x + (point.x - prev.x) * t)
                ys.append(prev.y + (point.y - prev.y) * t)
                ps.append(prev.effective_pressure + (point.effective_pressure - prev.effective_pressure) * t)
        return np.array(xs), np.array(ys), np.array(ps)
