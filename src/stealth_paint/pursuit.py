"""
Pursuit - the tap-the-targets escape challenge.

States: IDLE -> ACTIVE -> SUCCESS | FAILURE. A finished pursuit keeps its
outcome phase until the next depletion starts a new one.

Entering ACTIVE lays out `required_taps` targets at random, non-overlapping
positions away from the arena edges (the arena is 100 x 100, i.e. percent of
the screen) and arms a countdown on the session clock. Only one target is
tappable at a time; tapping it activates the next one. Tapping them all
before the countdown ends is an escape. Running out of time is an arrest:
below the threshold it costs a fine, at the threshold it is a hard lockout.

The countdown subscription is cancelled on both outcomes, so a stale timer
can never turn an escape into an arrest.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

import numpy as np

from .clock import SessionClock
from .config import DifficultyPreset, PursuitConfig

logger = logging.getLogger(__name__)

COUNTDOWN_SUBSCRIPTION = "pursuit_countdown"
ARENA_SIZE = 100.0
_EPSILON = 1e-6


class PursuitPhase(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class PursuitTarget:
    """A tap target in arena coordinates."""
    id: str
    x: float
    y: float
    radius: float
    tapped: bool = False
    active: bool = False

    def distance_to(self, x: float, y: float) -> float:
        return math.hypot(self.x - x, self.y - y)


@dataclass
class PursuitOutcome:
    """Result of one pursuit, reported to the session."""
    escaped: bool
    arrest_count: int
    fine_amount: int = 0
    hard_lockout: bool = False
    jail_hours: int = 0


def calculate_fine(arrest_count: int, config: Optional[PursuitConfig] = None) -> int:
    """Fine grows linearly with the number of arrests."""
    config = config or PursuitConfig()
    return config.fine_per_arrest * arrest_count


class PursuitStateMachine:
    """Timed reflex challenge triggered by stealth depletion."""

    def __init__(
        self,
        clock: SessionClock,
        preset: DifficultyPreset,
        config: Optional[PursuitConfig] = None,
        rng: Optional[np.random.Generator] = None,
        arrest_count: int = 0,
        on_success: Optional[Callable[[PursuitOutcome], None]] = None,
        on_failure: Optional[Callable[[PursuitOutcome], None]] = None,
    ):
        self.clock = clock
        self.preset = preset
        self.config = config or PursuitConfig()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.arrest_count = arrest_count
        self.on_success = on_success
        self.on_failure = on_failure

        self.phase = PursuitPhase.IDLE
        self.targets: List[PursuitTarget] = []
        self.success_count = 0
        self.required_taps = preset.required_taps
        self.time_limit_seconds = preset.time_limit_seconds
        self.time_remaining = 0.0
        self._deadline = 0.0
        self.last_outcome: Optional[PursuitOutcome] = None

    @property
    def is_active(self) -> bool:
        return self.phase is PursuitPhase.ACTIVE

    @property
    def active_target(self) -> Optional[PursuitTarget]:
        for target in self.targets:
            if target.active:
                return target
        return None

    def start(self, required_taps: Optional[int] = None, time_limit_seconds: Optional[float] = None) -> bool:
        """Enter ACTIVE. Ignored if a pursuit is already running."""
        if self.is_active:
            return False

        self.required_taps = required_taps or self.preset.required_taps
        self.time_limit_seconds = time_limit_seconds or self.preset.time_limit_seconds
        self.targets = self.generate_targets(self.required_taps)
        self.targets[0].active = True
        self.success_count = 0
        self.time_remaining = self.time_limit_seconds
        self._deadline = self.clock.now + self.time_limit_seconds
        self.last_outcome = None
        self.phase = PursuitPhase.ACTIVE

        self.clock.every(COUNTDOWN_SUBSCRIPTION, self.config.countdown_step_seconds, self._count_down)
        logger.info(
            "Pursuit started: %d taps in %.1fs (arrests so far: %d)",
            self.required_taps, self.time_limit_seconds, self.arrest_count,
        )
        return True

    def generate_targets(self, count: int) -> List[PursuitTarget]:
        """Random positions inside the edge margin, rejecting overlaps."""
        radius = self.preset.target_radius
        low = self.config.edge_margin
        high = ARENA_SIZE - self.config.edge_margin
        targets: List[PursuitTarget] = []
        for i in range(count):
            x = y = ARENA_SIZE / 2
            for _ in range(self.config.max_placement_attempts):
                x, y = self.rng.uniform(low, high, 2)
                if all(t.distance_to(x, y) >= 2 * radius for t in targets):
                    break
            else:
                logger.warning("Could not place pursuit target %d without overlap", i)
            targets.append(PursuitTarget(id=f"target-{i}", x=float(x), y=float(y), radius=radius))
        return targets

    def tap_target(self, target_id: str) -> bool:
        """Tap a target. Only the active target of an active pursuit counts."""
        if not self.is_active:
            logger.debug("tap on %s ignored: pursuit not active", target_id)
            return False
        current = self.active_target
        if current is None or current.id != target_id:
            logger.debug("tap on %s ignored: not the active target", target_id)
            return False

        current.tapped = True
        current.active = False
        self.success_count += 1
        for target in self.targets:
            if not target.tapped:
                target.active = True
                break

        if self.success_count >= self.required_taps:
            self._succeed()
        return True

    def cancel(self) -> None:
        """Abort without an outcome (session teardown)."""
        self.clock.cancel(COUNTDOWN_SUBSCRIPTION)
        if self.is_active:
            self.phase = PursuitPhase.IDLE

    def _count_down(self) -> None:
        if not self.is_active:
            self.clock.cancel(COUNTDOWN_SUBSCRIPTION)
            return
        self.time_remaining = max(0.0, self._deadline - self.clock.now)
        if self.time_remaining <= _EPSILON:
            self.time_remaining = 0.0
            self._fail()

    def _succeed(self) -> None:
        self.clock.cancel(COUNTDOWN_SUBSCRIPTION)
        self.phase = PursuitPhase.SUCCESS
        outcome = PursuitOutcome(escaped=True, arrest_count=self.arrest_count)
        self.last_outcome = outcome
        logger.info("Escaped with %.1fs to spare", self.time_remaining)
        if self.on_success:
            self.on_success(outcome)

    def _fail(self) -> None:
        self.clock.cancel(COUNTDOWN_SUBSCRIPTION)
        self.phase = PursuitPhase.FAILURE
        self.arrest_count += 1
        hard_lockout = self.arrest_count >= self.config.arrest_threshold
        outcome = PursuitOutcome(
            escaped=False,
            arrest_count=self.arrest_count,
            fine_amount=0 if hard_lockout else calculate_fine(self.arrest_count, self.config),
            hard_lockout=hard_lockout,
            jail_hours=self.config.jail_hours if hard_lockout else 0,
        )
        self.last_outcome = outcome
        if hard_lockout:
            logger.info("Caught %d times: hard lockout for %dh", self.arrest_count, outcome.jail_hours)
        else:
            logger.info("Caught (arrest %d): fine %d", self.arrest_count, outcome.fine_amount)
        if self.on_failure:
            self.on_failure(outcome)
