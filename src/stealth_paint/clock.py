"""
Session Clock - one owned timeline for every timer in a painting session.

Stealth decay, event spawning, event expiry, the look-around cooldown and the
pursuit countdown are all named subscriptions on a single SessionClock.
Callbacks are dispatched one at a time in due-time order, so each one runs to
completion before the next. stop() drops every subscription, which is how a
session guarantees nothing fires after it has been disposed.

Time is simulated: tests drive it with tick()/advance(), a live frontend
drives it with run() on an asyncio loop.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

# Float slack when comparing due times built from repeated additions
_EPSILON = 1e-9


@dataclass
class Subscription:
    """A scheduled callback. One-shot unless `repeat` is set."""
    name: str
    callback: Callable[[], None]
    interval: float
    next_due: float
    repeat: bool
    order: int = 0
    cancelled: bool = False


class SessionClock:
    """Cooperative timer wheel owned by a single session."""

    def __init__(self, tick_seconds: float = 0.1):
        if tick_seconds <= 0:
            raise ValueError("tick_seconds must be positive")
        self.tick_seconds = tick_seconds
        self.now: float = 0.0
        self._subscriptions: Dict[str, Subscription] = {}
        self._running = False
        self._order = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def names(self) -> List[str]:
        """Names of live subscriptions, in registration order."""
        subs = sorted(self._subscriptions.values(), key=lambda s: s.order)
        return [s.name for s in subs]

    def has(self, name: str) -> bool:
        return name in self._subscriptions

    def every(self, name: str, interval: float, callback: Callable[[], None]) -> Subscription:
        """Fire `callback` every `interval` seconds. Replaces any subscription with the same name."""
        return self._register(name, interval, callback, repeat=True)

    def after(self, name: str, delay: float, callback: Callable[[], None]) -> Subscription:
        """Fire `callback` once after `delay` seconds. Replaces any subscription with the same name."""
        return self._register(name, delay, callback, repeat=False)

    def _register(self, name: str, interval: float, callback: Callable[[], None], repeat: bool) -> Subscription:
        if interval <= 0:
            raise ValueError(f"interval for '{name}' must be positive")
        self.cancel(name)
        self._order += 1
        sub = Subscription(
            name=name,
            callback=callback,
            interval=interval,
            next_due=self.now + interval,
            repeat=repeat,
            order=self._order,
        )
        self._subscriptions[name] = sub
        return sub

    def cancel(self, name: str) -> bool:
        """Cancel a subscription by name. Returns False if it wasn't registered."""
        sub = self._subscriptions.pop(name, None)
        if sub is None:
            return False
        sub.cancelled = True
        return True

    def cancel_all(self) -> None:
        for sub in self._subscriptions.values():
            sub.cancelled = True
        self._subscriptions.clear()

    def start(self) -> None:
        self._running = True

    def stop(self) -> None:
        """Stop the clock and drop every subscription."""
        self._running = False
        self.cancel_all()

    def tick(self) -> int:
        """Advance by one base tick. Returns the number of callbacks fired."""
        return self.advance(self.tick_seconds)

    def advance(self, seconds: float) -> int:
        """Advance simulated time, firing everything that comes due on the way."""
        if not self._running or seconds <= 0:
            return 0

        target = self.now + seconds
        fired = 0
        while self._running:
            sub = self._next_due(target)
            if sub is None:
                break
            self.now = max(self.now, sub.next_due)
            if sub.repeat:
                sub.next_due += sub.interval
            else:
                self._subscriptions.pop(sub.name, None)
            sub.callback()
            fired += 1

        if self._running:
            self.now = max(self.now, target)
        return fired

    def _next_due(self, target: float) -> Optional[Subscription]:
        due = [
            s for s in self._subscriptions.values()
            if not s.cancelled and s.next_due <= target + _EPSILON
        ]
        if not due:
            return None
        return min(due, key=lambda s: (s.next_due, s.order))

    async def run(self) -> None:
        """Drive the clock from wall time until stop() is called."""
        self.start()
        loop = asyncio.get_running_loop()
        last = loop.time()
        while self._running:
            await asyncio.sleep(self.tick_seconds)
            now = loop.time()
            self.advance(now - last)
            last = now
        logger.debug("Session clock stopped at t=%.2fs", self.now)
