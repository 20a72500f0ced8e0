"""
Stealth Simulator - how unnoticed the player still is.

Stealth starts full and drains every tick while painting:

    drain = base_rate(difficulty) * risk_multiplier(active events)
            * time_of_day_factor(hour) * location_risk_factor * tick_seconds

Reaching zero suspends the session and fires on_depleted exactly once; the
guard only re-arms after stealth has been restored above zero. Looking around
buys stealth back, a limited number of times, with a cooldown, and sometimes
scares off a negative risk event.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

import numpy as np

from .clock import SessionClock
from .config import DifficultyPreset, StealthConfig
from .risk_events import RiskEvent, RiskEventScheduler
from .state import SessionState

logger = logging.getLogger(__name__)

TICK_SUBSCRIPTION = "stealth_decay"
COOLDOWN_SUBSCRIPTION = "look_around_cooldown"


def time_of_day_factor(hour: int, config: Optional[StealthConfig] = None) -> float:
    """Visibility multiplier: exposed by day, moderate in the evening, covered at night."""
    config = config or StealthConfig()
    if config.day_start_hour <= hour <= config.day_end_hour:
        return config.day_factor
    if config.evening_start_hour <= hour <= config.evening_end_hour:
        return config.evening_factor
    return config.night_factor


class StealthSimulator:
    """Continuously decaying stealth scalar clamped to [0, max_stealth]."""

    def __init__(
        self,
        clock: SessionClock,
        state: SessionState,
        preset: DifficultyPreset,
        events: RiskEventScheduler,
        location_risk_factor: float = 1.0,
        config: Optional[StealthConfig] = None,
        rng: Optional[np.random.Generator] = None,
        hour_provider: Optional[Callable[[], int]] = None,
        on_depleted: Optional[Callable[[], None]] = None,
        on_look_around: Optional[Callable[[Optional[RiskEvent]], None]] = None,
    ):
        self.clock = clock
        self.state = state
        self.preset = preset
        self.events = events
        self.location_risk_factor = location_risk_factor
        self.config = config or StealthConfig()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.hour_provider = hour_provider
        self.on_depleted = on_depleted
        self.on_look_around = on_look_around

        self.stealth: float = self.config.max_stealth
        self.look_arounds_remaining: int = preset.max_look_arounds
        self.look_around_cooldown: int = 0
        self._depleted = False

    @property
    def is_depleted(self) -> bool:
        return self._depleted

    def start(self) -> None:
        self.clock.every(TICK_SUBSCRIPTION, self.config.tick_seconds, self.tick)

    def stop(self) -> None:
        self.clock.cancel(TICK_SUBSCRIPTION)
        self.clock.cancel(COOLDOWN_SUBSCRIPTION)

    def current_hour(self) -> int:
        if self.hour_provider is not None:
            return self.hour_provider()
        return datetime.now().hour

    def drain_per_tick(self) -> float:
        """Stealth lost in one tick under the current modifiers."""
        return (
            self.preset.base_drain_rate
            * self.events.risk_multiplier()
            * time_of_day_factor(self.current_hour(), self.config)
            * self.location_risk_factor
            * self.config.tick_seconds
        )

    def tick(self) -> None:
        if self._depleted or not self.state.is_painting:
            return

        self.stealth = max(0.0, self.stealth - self.drain_per_tick())
        if self.stealth > 0:
            return

        # Suspend before notifying so no trailing tick can drain or re-fire
        self._depleted = True
        self.state.suspend()
        logger.info("Stealth depleted at t=%.1fs", self.clock.now)
        if self.on_depleted:
            self.on_depleted()

    def restore_to(self, value: float) -> None:
        """Set stealth directly (pursuit outcomes). Re-arms depletion above zero."""
        self.stealth = max(0.0, min(self.config.max_stealth, value))
        if self.stealth > 0:
            self._depleted = False

    def can_look_around(self) -> bool:
        return (
            self.state.is_painting
            and self.look_arounds_remaining > 0
            and self.look_around_cooldown <= 0
        )

    def look_around(self) -> bool:
        """Restore stealth, spend a look-around, start the cooldown. No-op when unavailable."""
        if not self.can_look_around():
            logger.debug(
                "look_around ignored (remaining=%d, cooldown=%d, phase=%s)",
                self.look_arounds_remaining, self.look_around_cooldown, self.state.phase.value,
            )
            return False

        self.restore_to(self.stealth + self.config.look_around_restore)
        self.look_arounds_remaining -= 1
        self.look_around_cooldown = self.config.look_around_cooldown_seconds
        if self.look_around_cooldown > 0:
            self.clock.every(COOLDOWN_SUBSCRIPTION, 1.0, self._cool_down)

        cancelled = None
        if self.rng.random() < self.config.negative_event_cancel_chance:
            cancelled = self.events.cancel_random_negative()

        logger.info(
            "Looked around: stealth %.1f, %d left%s",
            self.stealth, self.look_arounds_remaining,
            f", scared off {cancelled.kind.value}" if cancelled else "",
        )
        if self.on_look_around:
            self.on_look_around(cancelled)
        return True

    def _cool_down(self) -> None:
        self.look_around_cooldown = max(0, self.look_around_cooldown - 1)
        if self.look_around_cooldown == 0:
            self.clock.cancel(COOLDOWN_SUBSCRIPTION)
