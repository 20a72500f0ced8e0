"""
Painting Session - one visit to a spot, from countdown to result.

The session owns the clock, the shared phase and the four subsystems, and
wires them together:

- stealth depletion suspends painting and starts a pursuit
- an escape restores partial stealth and resumes painting
- an arrest below the threshold fines the player, restores partial stealth
  and resumes painting
- an arrest at the threshold ends the session (hard lockout)

It talks to the outside world only through callbacks: on_complete receives
the SessionResult, on_arrest receives an ArrestReport, and on_event_spawn
and on_event_expire receive each RiskEvent, whose message is meant for the
player. Persistence, rewards and jail bookkeeping belong to whoever listens.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
from PIL import Image

from .canvas import CanvasAccumulator, CanvasMetrics, apply_caught_penalty
from .clock import SessionClock
from .config import Difficulty, GameConfig
from .pursuit import PursuitOutcome, PursuitStateMachine
from .risk_events import RiskEvent, RiskEventScheduler
from .state import EndReason, SessionPhase, SessionState
from .stealth import StealthSimulator
from .stroke import Point, Stroke, StrokeStyle

logger = logging.getLogger(__name__)

COUNTDOWN_SUBSCRIPTION = "session_countdown"


@dataclass
class SessionRequest:
    """What the spot-selection side hands over to start a session."""
    location_risk_factor: float
    difficulty: Difficulty
    background_surface: Optional[Image.Image] = None
    arrest_count: int = 0   # Arrests carried in from player state

    def __post_init__(self):
        self.difficulty = Difficulty.parse(self.difficulty)
        if not (0.0 <= self.location_risk_factor <= 1.0):
            raise ValueError("location_risk_factor must be in [0, 1]")
        if self.arrest_count < 0:
            raise ValueError("arrest_count must be non-negative")


@dataclass
class SessionResult:
    """Emitted once when a session completes or ends in a lockout."""
    quality_score: float
    rendered_image: bytes
    was_caught: bool
    metrics: CanvasMetrics


@dataclass
class ArrestReport:
    """Emitted on every failed pursuit."""
    fine_amount: int
    arrest_count: int
    hard_lockout: bool
    jail_hours: int = 0


class PaintingSession:
    """Painting Session Engine: canvas, stealth, risk events and pursuit on one clock."""

    def __init__(
        self,
        request: SessionRequest,
        config: Optional[GameConfig] = None,
        rng: Optional[np.random.Generator] = None,
        hour_provider: Optional[Callable[[], int]] = None,
        on_complete: Optional[Callable[[SessionResult], None]] = None,
        on_arrest: Optional[Callable[[ArrestReport], None]] = None,
        on_event_spawn: Optional[Callable[[RiskEvent], None]] = None,
        on_event_expire: Optional[Callable[[RiskEvent], None]] = None,
    ):
        self.request = request
        self.config = config or GameConfig()
        self.preset = self.config.preset(request.difficulty)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.on_complete = on_complete
        self.on_arrest = on_arrest

        self.state = SessionState()
        self.clock = SessionClock(tick_seconds=self.config.stealth.tick_seconds)
        self.countdown_remaining = 0
        self.was_caught = False
        self.result: Optional[SessionResult] = None

        width = height = None
        if request.background_surface is not None:
            width, height = request.background_surface.size
        self.canvas = CanvasAccumulator(
            self.state, self.config.scoring, rng=self.rng, width=width, height=height,
        )
        self.events = RiskEventScheduler(
            self.clock, self.state, self.config.risk_events,
            interval_seconds=self.preset.event_interval_seconds, rng=self.rng,
            on_spawn=on_event_spawn, on_expire=on_event_expire,
        )
        self.stealth = StealthSimulator(
            self.clock, self.state, self.preset, self.events,
            location_risk_factor=request.location_risk_factor,
            config=self.config.stealth, rng=self.rng,
            hour_provider=hour_provider, on_depleted=self._on_stealth_depleted,
        )
        self.pursuit = PursuitStateMachine(
            self.clock, self.preset, self.config.pursuit, rng=self.rng,
            arrest_count=request.arrest_count,
            on_success=self._on_escape, on_failure=self._on_caught,
        )
        self._started = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def phase(self) -> SessionPhase:
        return self.state.phase

    @property
    def is_painting(self) -> bool:
        return self.state.is_painting

    def start(self) -> None:
        """Start the clock and the start countdown (or go straight to painting)."""
        if self._started or self.state.is_ended:
            return
        self._started = True
        self.clock.start()
        self.countdown_remaining = self.config.session.countdown_seconds
        if self.countdown_remaining > 0:
            self.clock.every(COUNTDOWN_SUBSCRIPTION, 1.0, self._count_down)
            logger.info("Session countdown: %d", self.countdown_remaining)
        else:
            self._begin_painting()

    def _count_down(self) -> None:
        self.countdown_remaining -= 1
        if self.countdown_remaining <= 0:
            self.clock.cancel(COUNTDOWN_SUBSCRIPTION)
            self._begin_painting()

    def _begin_painting(self) -> None:
        self.state.resume()
        self.stealth.start()
        self.events.start()
        logger.info(
            "Painting started (%s, location risk %.2f)",
            self.request.difficulty.value, self.request.location_risk_factor,
        )

    def tick(self) -> int:
        """Advance one base tick of the session clock."""
        return self.clock.tick()

    def advance(self, seconds: float) -> int:
        return self.clock.advance(seconds)

    async def run(self) -> None:
        """Drive the session from wall time until it ends."""
        self.start()
        await self.clock.run()

    def finish(self) -> Optional[SessionResult]:
        """Player is done: score the piece and emit the result."""
        if self.state.is_ended or self.state.is_suspended:
            return None
        self.canvas.end_stroke()
        return self._end(EndReason.COMPLETED)

    def cancel(self) -> None:
        """Walk away without reporting anything."""
        if self.state.is_ended:
            return
        self.state.end(EndReason.CANCELLED)
        logger.info("Session cancelled")
        self.dispose()

    def dispose(self) -> None:
        """Cancel every timer and release the canvas. Safe to call repeatedly."""
        self.pursuit.cancel()
        self.stealth.stop()
        self.events.stop()
        self.clock.stop()
        self.canvas.dispose()
        if not self.state.is_ended:
            self.state.end(EndReason.CANCELLED)

    def _end(self, reason: EndReason) -> SessionResult:
        metrics = self.canvas.compute_metrics()
        score = metrics.quality_score
        if self.was_caught:
            score = apply_caught_penalty(score, self.config.scoring)
        result = SessionResult(
            quality_score=score,
            rendered_image=self.canvas.export_png(self.request.background_surface),
            was_caught=self.was_caught,
            metrics=metrics,
        )
        self.result = result
        self.state.end(reason)
        logger.info(
            "Session ended (%s): coverage %.1f%%, quality %.2f",
            reason.value, metrics.coverage_percent, score,
        )
        self.dispose()
        if self.on_complete:
            self.on_complete(result)
        return result

    # ------------------------------------------------------------------
    # Player input
    # ------------------------------------------------------------------

    def begin_stroke(self, point: Point, style: StrokeStyle) -> Optional[Stroke]:
        return self.canvas.begin_stroke(point, style)

    def extend_stroke(self, point: Point) -> bool:
        return self.canvas.extend_stroke(point)

    def end_stroke(self) -> Optional[Stroke]:
        return self.canvas.end_stroke()

    def undo(self) -> Optional[Stroke]:
        return self.canvas.undo()

    def redo(self) -> Optional[Stroke]:
        return self.canvas.redo()

    def look_around(self) -> bool:
        return self.stealth.look_around()

    def tap_target(self, target_id: str) -> bool:
        return self.pursuit.tap_target(target_id)

    # ------------------------------------------------------------------
    # Subsystem wiring
    # ------------------------------------------------------------------

    def _on_stealth_depleted(self) -> None:
        # Stealth has already suspended the session; release the open stroke
        self.canvas.end_stroke()
        self.pursuit.start()

    def _on_escape(self, outcome: PursuitOutcome) -> None:
        self._restore_and_resume()

    def _on_caught(self, outcome: PursuitOutcome) -> None:
        self.was_caught = True
        if self.on_arrest:
            self.on_arrest(ArrestReport(
                fine_amount=outcome.fine_amount,
                arrest_count=outcome.arrest_count,
                hard_lockout=outcome.hard_lockout,
                jail_hours=outcome.jail_hours,
            ))
        if outcome.hard_lockout:
            self._end(EndReason.BUSTED)
        else:
            self._restore_and_resume()

    def _restore_and_resume(self) -> None:
        self.stealth.restore_to(self.config.pursuit.partial_restore)
        self.state.resume()
