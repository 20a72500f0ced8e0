"""
Shared test fixtures for the stealth_paint test suite.

Fixtures cover the common building blocks (a started clock, a painting
state, seeded random generators). Plain factory functions build strokes,
configs and sessions inline with overrides. Importable as:

    from conftest import make_stroke, make_session
"""

from typing import Iterable, Optional, Tuple

import numpy as np
import pytest

from stealth_paint.clock import SessionClock
from stealth_paint.config import GameConfig, ScoringConfig, SessionConfig
from stealth_paint.session import PaintingSession, SessionRequest
from stealth_paint.state import SessionPhase, SessionState
from stealth_paint.stroke import Point, Stroke, StrokeStyle

CANVAS_WIDTH = 200
CANVAS_HEIGHT = 150


# ---------------------------------------------------------------------------
# Randomness & time
# ---------------------------------------------------------------------------

@pytest.fixture
def rng():
    """Seeded generator so randomized tests are repeatable."""
    return np.random.default_rng(1234)


@pytest.fixture
def clock():
    """A running SessionClock with the default 100 ms tick."""
    c = SessionClock(tick_seconds=0.1)
    c.start()
    return c


@pytest.fixture
def painting_state():
    return SessionState(phase=SessionPhase.PAINTING)


# ---------------------------------------------------------------------------
# Strokes
# ---------------------------------------------------------------------------

def make_stroke(
    points: Iterable[Tuple[float, float]],
    brush_kind: str = "marker",
    color: Tuple[int, int, int] = (255, 0, 0),
    size: float = 10.0,
    opacity: float = 1.0,
    **style_overrides,
) -> Stroke:
    """Build a Stroke from (x, y) pairs."""
    style = StrokeStyle(
        color=color, size=size, opacity=opacity, brush_kind=brush_kind, **style_overrides,
    )
    return Stroke(style=style, points=[Point(x, y) for x, y in points])


# ---------------------------------------------------------------------------
# Config & sessions
# ---------------------------------------------------------------------------

def small_config(countdown_seconds: int = 0) -> GameConfig:
    """Default balance on a small canvas, no start countdown."""
    config = GameConfig()
    config.scoring = ScoringConfig(canvas_width=CANVAS_WIDTH, canvas_height=CANVAS_HEIGHT)
    config.session = SessionConfig(countdown_seconds=countdown_seconds)
    return config


@pytest.fixture
def scoring():
    return ScoringConfig(canvas_width=CANVAS_WIDTH, canvas_height=CANVAS_HEIGHT)


def make_session(
    difficulty: str = "easy",
    location_risk_factor: float = 1.0,
    arrest_count: int = 0,
    hour: int = 12,
    seed: int = 7,
    config: Optional[GameConfig] = None,
    start: bool = True,
    **kwargs,
) -> PaintingSession:
    """PaintingSession with a fixed hour and a seeded generator."""
    request = SessionRequest(
        location_risk_factor=location_risk_factor,
        difficulty=difficulty,
        arrest_count=arrest_count,
        background_surface=kwargs.pop("background_surface", None),
    )
    session = PaintingSession(
        request,
        config=config or small_config(),
        rng=np.random.default_rng(seed),
        hour_provider=lambda: hour,
        **kwargs,
    )
    if start:
        session.start()
    return session


def deplete(session: PaintingSession) -> None:
    """Drive stealth to zero on the next tick, which starts a pursuit."""
    session.stealth.restore_to(0.001)
    session.tick()
