"""
Brush Registry - maps brush kind names to renderers.

Brushes are pluggable: anything satisfying the BrushKind protocol can be
registered. The four built-ins register at import time.
"""

from typing import Dict, List, Optional

import numpy as np

from ..stroke import Stroke
from .base import BrushKind


_BRUSHES: Dict[str, BrushKind] = {}


def register_brush(brush: BrushKind) -> None:
    """Register a brush under its name."""
    _BRUSHES[brush.name] = brush


def get_brush(name: str) -> BrushKind:
    """Get brush by name. Unknown names are a caller bug."""
    brush = _BRUSHES.get(name)
    if brush is None:
        raise ValueError(f"Unknown brush kind: {name!r}")
    return brush


def has_brush(name: str) -> bool:
    return name in _BRUSHES


def get_brush_info(name: str) -> dict:
    """Get brush metadata: name, description, whether a render can vary between calls."""
    brush = _BRUSHES.get(name)
    if not brush:
        return {}
    return {
        "name": brush.name,
        "description": brush.description,
        "deterministic": brush.deterministic,
    }


def list_brushes() -> List[str]:
    """List all registered brush names."""
    return list(_BRUSHES.keys())


def list_all_brush_info() -> List[dict]:
    """List all brushes with metadata, e.g. for a brush picker."""
    return [get_brush_info(name) for name in _BRUSHES]


def render_stroke(
    stroke: Stroke,
    width: int,
    height: int,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """Render a stroke with its own brush kind. Pass a seeded rng for repeatable output."""
    if rng is None:
        rng = np.random.default_rng()
    return get_brush(stroke.brush_kind).render(stroke, width, height, rng)


# --- Register brushes at import time ---
from .spray import SprayBrush  # noqa: E402
from .marker import MarkerBrush  # noqa: E402
from .brush import PaintBrush  # noqa: E402
from .drip import DripBrush  # noqa: E402

register_brush(SprayBrush())
register_brush(MarkerBrush())
register_brush(PaintBrush())
register_brush(DripBrush())
