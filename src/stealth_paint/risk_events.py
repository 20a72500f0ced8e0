"""
Risk Events - transient modifiers on the stealth drain rate.

While the player paints, the scheduler rolls once per period (the period
depends on difficulty) and may spawn an event drawn from the weighted pool.
Each event multiplies the drain rate until it expires; concurrent events
compose multiplicatively, so a patrol on top of a pedestrian is worse than
either alone and good cover can offset both.

Expiry is a one-shot subscription on the session clock per event, so the
scheduler never polls.
"""

import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

import numpy as np

from .clock import SessionClock
from .config import RiskEventConfig, RiskEventTemplate
from .state import SessionState

logger = logging.getLogger(__name__)

SPAWN_SUBSCRIPTION = "risk_event_spawn"
_event_ids = itertools.count(1)


class RiskEventKind(Enum):
    PEDESTRIAN = "pedestrian"
    VEHICLE = "vehicle"
    PATROL = "patrol"
    GOOD_COVER = "good_cover"
    NIGHTFALL = "nightfall"


@dataclass
class RiskEvent:
    """An active modifier. Negative events (multiplier > 1) make drain worse."""
    id: str
    kind: RiskEventKind
    risk_multiplier: float
    duration_seconds: float
    spawned_at: float
    message: str = ""

    @property
    def is_negative(self) -> bool:
        return self.risk_multiplier > 1.0

    @property
    def expires_at(self) -> float:
        return self.spawned_at + self.duration_seconds

    def remaining(self, now: float) -> float:
        return max(0.0, self.expires_at - now)


def combined_multiplier(events: List[RiskEvent]) -> float:
    """Product of all multipliers; 1.0 when nothing is active."""
    multiplier = 1.0
    for event in events:
        multiplier *= event.risk_multiplier
    return multiplier


class RiskEventScheduler:
    """Spawns, tracks and expires risk events on the session clock."""

    def __init__(
        self,
        clock: SessionClock,
        state: SessionState,
        config: Optional[RiskEventConfig] = None,
        interval_seconds: float = 35.0,
        rng: Optional[np.random.Generator] = None,
        on_spawn: Optional[Callable[[RiskEvent], None]] = None,
        on_expire: Optional[Callable[[RiskEvent], None]] = None,
    ):
        self.clock = clock
        self.state = state
        self.config = config or RiskEventConfig()
        self.interval_seconds = interval_seconds
        self.rng = rng if rng is not None else np.random.default_rng()
        self.on_spawn = on_spawn
        self.on_expire = on_expire
        self._active: List[RiskEvent] = []

    @property
    def active_events(self) -> List[RiskEvent]:
        return list(self._active)

    def risk_multiplier(self) -> float:
        return combined_multiplier(self._active)

    def start(self) -> None:
        self.clock.every(SPAWN_SUBSCRIPTION, self.interval_seconds, self._on_period)

    def stop(self) -> None:
        """Stop spawning and drop every active event and its expiry timer."""
        self.clock.cancel(SPAWN_SUBSCRIPTION)
        for event in self._active:
            self.clock.cancel(self._expiry_name(event))
        self._active.clear()

    def _on_period(self) -> None:
        if not self.state.is_painting:
            return
        if self.rng.random() >= self.config.spawn_chance:
            return
        self.spawn(self.choose_template())

    def choose_template(self) -> RiskEventTemplate:
        """Weighted draw from the configured pool."""
        pool = self.config.pool
        weights = np.array([t.weight for t in pool], dtype=np.float64)
        index = int(self.rng.choice(len(pool), p=weights / weights.sum()))
        return pool[index]

    def spawn(self, template: RiskEventTemplate) -> RiskEvent:
        """Activate an event from a template and schedule its expiry."""
        event = RiskEvent(
            id=f"event-{next(_event_ids)}",
            kind=RiskEventKind(template.kind),
            risk_multiplier=template.risk_multiplier,
            duration_seconds=template.duration_seconds,
            spawned_at=self.clock.now,
            message=template.message,
        )
        self._active.append(event)
        self.clock.after(self._expiry_name(event), event.duration_seconds, lambda: self._expire(event.id))
        logger.info(
            "Risk event %s spawned (x%.2f for %.0fs, combined x%.2f)",
            event.kind.value, event.risk_multiplier, event.duration_seconds, self.risk_multiplier(),
        )
        if self.on_spawn:
            self.on_spawn(event)
        return event

    def cancel_event(self, event_id: str) -> Optional[RiskEvent]:
        """Remove an active event early. Returns it, or None if it wasn't active."""
        event = self._remove(event_id)
        if event is not None:
            self.clock.cancel(self._expiry_name(event))
        return event

    def cancel_random_negative(self) -> Optional[RiskEvent]:
        """Remove one randomly chosen negative event, if any are active."""
        negative = [e for e in self._active if e.is_negative]
        if not negative:
            return None
        chosen = negative[int(self.rng.integers(len(negative)))]
        return self.cancel_event(chosen.id)

    def _expire(self, event_id: str) -> None:
        event = self._remove(event_id)
        if event is None:
            return
        logger.info("Risk event %s expired", event.kind.value)
        if self.on_expire:
            self.on_expire(event)

    def _remove(self, event_id: str) -> Optional[RiskEvent]:
        for i, event in enumerate(self._active):
            if event.id == event_id:
                return self._active.pop(i)
        return None

    @staticmethod
    def _expiry_name(event: RiskEvent) -> str:
        return f"risk_event_expire:{event.id}"
