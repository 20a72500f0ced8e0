"""
Canvas Accumulator - the strokes of one painting session and what they add up to.

Owns the committed strokes, the stroke in progress and the redo stack. Metrics
are derived by re-rendering every committed stroke onto an offscreen RGBA
layer and sampling it: coverage is the share of non-transparent pixels, color
diversity the number of distinct colors that actually left paint, and the
quality score a weighted blend of coverage, diversity and stroke count.

Input while painting is not allowed is ignored, never raised: a pointer can
keep moving after stealth runs out and that must not break the session.
"""

import io
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from PIL import Image

from .brushes import get_brush
from .config import ScoringConfig
from .state import SessionState
from .stroke import Point, Stroke, StrokeStyle

logger = logging.getLogger(__name__)


@dataclass
class CanvasMetrics:
    """Snapshot of what the canvas is worth."""
    coverage_percent: float
    color_diversity: int
    stroke_count: int
    quality_score: float


def quality_score(
    coverage_percent: float,
    color_diversity: int,
    stroke_count: int,
    scoring: ScoringConfig,
) -> float:
    """Blend coverage, color diversity and stroke count into [0, 1].

    Coverage saturates at the baseline; diversity and stroke count each
    saturate at their caps.
    """
    coverage = min(1.0, coverage_percent / scoring.coverage_baseline)
    diversity = min(color_diversity, scoring.diversity_cap) / scoring.diversity_cap
    strokes = min(stroke_count, scoring.stroke_cap) / scoring.stroke_cap
    score = (
        coverage * scoring.coverage_weight
        + diversity * scoring.diversity_weight
        + strokes * scoring.stroke_weight
    )
    return max(0.0, min(1.0, score))


def apply_caught_penalty(score: float, scoring: ScoringConfig) -> float:
    """Fixed multiplier for sessions that ended in an arrest."""
    return score * scoring.caught_penalty


class CanvasAccumulator:
    """Stroke list with linear undo/redo and pixel-sampled metrics."""

    def __init__(
        self,
        state: SessionState,
        scoring: Optional[ScoringConfig] = None,
        rng: Optional[np.random.Generator] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ):
        self.state = state
        self.scoring = scoring or ScoringConfig()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.width = width or self.scoring.canvas_width
        self.height = height or self.scoring.canvas_height

        self.committed_strokes: List[Stroke] = []
        self.current_stroke: Optional[Stroke] = None
        self._redo_stack: List[Stroke] = []
        self.last_metrics: Optional[CanvasMetrics] = None
        self._disposed = False

    @property
    def can_paint(self) -> bool:
        return not self._disposed and self.state.is_painting

    @property
    def redo_depth(self) -> int:
        return len(self._redo_stack)

    # ------------------------------------------------------------------
    # Stroke lifecycle
    # ------------------------------------------------------------------

    def begin_stroke(self, point: Point, style: StrokeStyle) -> Optional[Stroke]:
        """Open a new stroke. Returns None when painting isn't permitted."""
        get_brush(style.brush_kind)
        if not self.can_paint:
            logger.debug("begin_stroke ignored: painting not permitted (%s)", self.state.phase.value)
            return None
        if self.current_stroke is not None:
            self.end_stroke()

        self.current_stroke = Stroke(style=style, points=[point])
        self._redo_stack.clear()
        return self.current_stroke

    def extend_stroke(self, point: Point) -> bool:
        """Append a point to the open stroke. Silently ignored when not permitted."""
        if self.current_stroke is None or not self.can_paint:
            return False
        self.current_stroke.add_point(point)
        return True

    def end_stroke(self) -> Optional[Stroke]:
        """Seal the open stroke into the committed list."""
        stroke = self.current_stroke
        self.current_stroke = None
        if stroke is None or self._disposed or not stroke.points:
            return None
        self.committed_strokes.append(stroke)
        self._redo_stack.clear()
        return stroke

    def undo(self) -> Optional[Stroke]:
        if self._disposed or not self.committed_strokes:
            return None
        stroke = self.committed_strokes.pop()
        self._redo_stack.append(stroke)
        return stroke

    def redo(self) -> Optional[Stroke]:
        if self._disposed or not self._redo_stack:
            return None
        stroke = self._redo_stack.pop()
        self.committed_strokes.append(stroke)
        return stroke

    def clear(self) -> None:
        """Drop everything, including redo history."""
        self.committed_strokes.clear()
        self._redo_stack.clear()
        self.current_stroke = None
        self.last_metrics = None

    def dispose(self) -> None:
        self.clear()
        self._disposed = True

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _render_premultiplied(self) -> Tuple[np.ndarray, np.ndarray, List[Stroke]]:
        """Composite all committed strokes. Returns (premultiplied rgb, alpha, strokes that left paint)."""
        rgb = np.zeros((self.height, self.width, 3), dtype=np.float32)
        alpha = np.zeros((self.height, self.width), dtype=np.float32)
        painted: List[Stroke] = []
        for stroke in self.committed_strokes:
            a = get_brush(stroke.brush_kind).render(stroke, self.width, self.height, self.rng)
            if not a.any():
                continue
            painted.append(stroke)
            color = np.asarray(stroke.color, dtype=np.float32)
            keep = (1.0 - a)[..., None]
            rgb = rgb * keep + color * a[..., None]
            alpha = alpha * (1.0 - a) + a
        return rgb, alpha, painted

    def render_layer(self) -> Image.Image:
        """The stroke layer alone, as an RGBA image on a transparent background."""
        return self._render_layer()[0]

    def _render_layer(self) -> Tuple[Image.Image, List[Stroke]]:
        rgb, alpha, painted = self._render_premultiplied()
        straight = np.zeros_like(rgb)
        visible = alpha > 0
        straight[visible] = rgb[visible] / alpha[visible][..., None]
        pixels = np.dstack([straight, alpha[..., None] * 255.0])
        pixels = np.clip(np.rint(pixels), 0, 255).astype(np.uint8)
        return Image.fromarray(pixels, "RGBA"), painted

    def compose(self, background: Optional[Image.Image] = None) -> Image.Image:
        """Stroke layer over the background surface (or the plain wall color)."""
        if background is None:
            base = Image.new("RGBA", (self.width, self.height), self.scoring.background_color + (255,))
        else:
            base = background.convert("RGBA")
            if base.size != (self.width, self.height):
                base = base.resize((self.width, self.height))
        return Image.alpha_composite(base, self.render_layer()).convert("RGB")

    def export_png(self, background: Optional[Image.Image] = None) -> bytes:
        buffer = io.BytesIO()
        self.compose(background).save(buffer, format="PNG")
        return buffer.getvalue()

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def compute_metrics(self) -> CanvasMetrics:
        """Re-render, sample the buffer and score it."""
        layer, painted = self._render_layer()
        step = self.scoring.sample_step
        sampled = np.asarray(layer)[::step, ::step, 3]
        coverage = float(np.count_nonzero(sampled)) / sampled.size * 100.0 if sampled.size else 0.0

        diversity = len({stroke.color for stroke in painted})
        stroke_count = len(painted)
        metrics = CanvasMetrics(
            coverage_percent=coverage,
            color_diversity=diversity,
            stroke_count=stroke_count,
            quality_score=quality_score(coverage, diversity, stroke_count, self.scoring),
        )
        self.last_metrics = metrics
        return metrics
