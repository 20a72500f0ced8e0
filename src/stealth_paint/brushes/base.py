"""
Brush Protocol - the minimal interface for pluggable brush kinds.

A brush turns a stroke into an alpha coverage map: a float32 array of shape
(height, width) with values in [0, 1]. Color is applied later by the canvas,
so brushes only decide *where* and *how much* paint lands.

Randomized brushes draw everything from the injected numpy Generator, never
from global state, so a seeded generator reproduces a render exactly.
"""

from __future__ import annotations

from typing import Callable, List, Protocol, Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw

from ..stroke import Point, Stroke


class BrushKind(Protocol):
    """Protocol for brush modules. Duck-typed, no inheritance required."""

    name: str
    description: str
    deterministic: bool

    def render(
        self,
        stroke: Stroke,
        width: int,
        height: int,
        rng: np.random.Generator,
    ) -> np.ndarray:
        """Rasterize the stroke into an alpha map. Must return zeros for < 2 points."""
        ...


def empty_alpha(width: int, height: int) -> np.ndarray:
    return np.zeros((height, width), dtype=np.float32)


def draw_mask(width: int, height: int, paint: Callable[[ImageDraw.ImageDraw], None]) -> np.ndarray:
    """Run PIL drawing calls on a grayscale mask and return it as [0, 1] floats."""
    mask = Image.new("L", (width, height), 0)
    paint(ImageDraw.Draw(mask))
    return np.asarray(mask, dtype=np.float32) / 255.0


def xy(points: Sequence[Point]) -> List[Tuple[float, float]]:
    return [(p.x, p.y) for p in points]


def over(base: np.ndarray, top: np.ndarray) -> np.ndarray:
    """Alpha 'over' for two coverage maps of the same color."""
    return 1.0 - (1.0 - base) * (1.0 - top)


def disk_offsets(radius: int) -> Tuple[np.ndarray, np.ndarray]:
    """Integer pixel offsets covering a filled disk."""
    if radius <= 0:
        return np.zeros(1, dtype=np.int64), np.zeros(1, dtype=np.int64)
    span = np.arange(-radius, radius + 1)
    dx, dy = np.meshgrid(span, span)
    inside = dx * dx + dy * dy <= radius * radius
    return dx[inside].ravel(), dy[inside].ravel()


def deposit_particles(
    width: int,
    height: int,
    xs: np.ndarray,
    ys: np.ndarray,
    alphas: np.ndarray,
    radius: int,
) -> np.ndarray:
    """Stamp translucent disks and accumulate them with 'over' compositing.

    Overlapping particles build up density the way layered spray paint does:
    coverage = 1 - prod(1 - a_i), summed in log space so np.add.at can do it.
    """
    log_transmit = np.zeros((height, width), dtype=np.float64)
    alphas = np.clip(alphas, 0.0, 0.999)
    weights = np.log1p(-alphas)
    cx = np.rint(xs).astype(np.int64)
    cy = np.rint(ys).astype(np.int64)
    for ox, oy in zip(*disk_offsets(radius)):
        px = cx + ox
        py = cy + oy
        inside = (px >= 0) & (px < width) & (py >= 0) & (py < height)
        np.add.at(log_transmit, (py[inside], px[inside]), weights[inside])
    return (1.0 - np.exp(log_transmit)).astype(np.float32)
