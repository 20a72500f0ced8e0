"""
Session State - the single switch every subsystem reads.

Painting, stealth decay and event spawning are all gated on the same phase.
Instead of toggling an `is_painting` flag from several places, the session
owns one SessionState and moves it through its phases:

- COUNTDOWN: session created, start countdown running, no strokes yet
- PAINTING: strokes accepted, stealth drains, risk events spawn
- SUSPENDED: pursuit challenge in progress, everything else paused
- ENDED: terminal; the reason says how
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SessionPhase(Enum):
    """Where the session is in its lifecycle."""
    COUNTDOWN = "countdown"
    PAINTING = "painting"
    SUSPENDED = "suspended"  # Pursuit active
    ENDED = "ended"


class EndReason(Enum):
    """Why a session ended."""
    COMPLETED = "completed"  # Player finished the piece
    CANCELLED = "cancelled"  # Player walked away, nothing reported
    BUSTED = "busted"        # Arrest threshold crossed, hard lockout


@dataclass
class SessionState:
    """Shared, mutable session phase."""
    phase: SessionPhase = SessionPhase.COUNTDOWN
    end_reason: Optional[EndReason] = None

    @property
    def is_painting(self) -> bool:
        return self.phase is SessionPhase.PAINTING

    @property
    def is_suspended(self) -> bool:
        return self.phase is SessionPhase.SUSPENDED

    @property
    def is_ended(self) -> bool:
        return self.phase is SessionPhase.ENDED

    def resume(self) -> bool:
        """Enter PAINTING. Refused once the session has ended."""
        if self.is_ended:
            return False
        self.phase = SessionPhase.PAINTING
        return True

    def suspend(self) -> bool:
        """Enter SUSPENDED. Only valid from PAINTING."""
        if not self.is_painting:
            return False
        self.phase = SessionPhase.SUSPENDED
        return True

    def end(self, reason: EndReason) -> bool:
        """Enter ENDED. The first reason sticks."""
        if self.is_ended:
            return False
        self.phase = SessionPhase.ENDED
        self.end_reason = reason
        return True
