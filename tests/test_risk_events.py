"""
Tests for risk_events module - spawning, composition and expiry.

Run with: pytest tests/test_risk_events.py -v
"""

import numpy as np
import pytest

from stealth_paint.config import RiskEventConfig, RiskEventTemplate
from stealth_paint.risk_events import (
    SPAWN_SUBSCRIPTION,
    RiskEvent,
    RiskEventKind,
    RiskEventScheduler,
    combined_multiplier,
)
from stealth_paint.state import SessionPhase, SessionState

PATROL = RiskEventTemplate("patrol", 2.0, 3.0)
PEDESTRIAN = RiskEventTemplate("pedestrian", 1.5, 15.0)
COVER = RiskEventTemplate("good_cover", 0.7, 25.0)


def make_scheduler(clock, state, spawn_chance=1.0, pool=None, interval=5.0, seed=0, **kwargs):
    config = RiskEventConfig(spawn_chance=spawn_chance, pool=pool or [PATROL])
    return RiskEventScheduler(
        clock, state, config,
        interval_seconds=interval,
        rng=np.random.default_rng(seed),
        **kwargs,
    )


class TestRiskEvent:
    def test_negative_means_worse(self):
        assert RiskEvent("e", RiskEventKind.PATROL, 2.0, 10.0, 0.0).is_negative
        assert not RiskEvent("e", RiskEventKind.NIGHTFALL, 0.5, 10.0, 0.0).is_negative

    def test_remaining_counts_down(self):
        event = RiskEvent("e", RiskEventKind.VEHICLE, 1.2, 10.0, spawned_at=5.0)
        assert event.expires_at == 15.0
        assert event.remaining(12.0) == pytest.approx(3.0)
        assert event.remaining(20.0) == 0.0

    def test_combined_multiplier_is_product(self):
        events = [
            RiskEvent("a", RiskEventKind.PEDESTRIAN, 1.5, 10.0, 0.0),
            RiskEvent("b", RiskEventKind.PATROL, 2.0, 10.0, 0.0),
        ]
        assert combined_multiplier(events) == pytest.approx(3.0)

    def test_combined_multiplier_empty_is_neutral(self):
        assert combined_multiplier([]) == 1.0


class TestSpawning:
    def test_spawns_on_period(self, clock, painting_state):
        spawned = []
        scheduler = make_scheduler(clock, painting_state, on_spawn=spawned.append)
        scheduler.start()
        clock.advance(4.9)
        assert spawned == []
        clock.advance(0.1)
        assert len(spawned) == 1
        assert spawned[0].kind is RiskEventKind.PATROL
        assert spawned[0].spawned_at == pytest.approx(5.0)

    def test_zero_chance_never_spawns(self, clock, painting_state):
        scheduler = make_scheduler(clock, painting_state, spawn_chance=0.0)
        scheduler.start()
        clock.advance(60.0)
        assert scheduler.active_events == []

    def test_no_spawn_while_suspended(self, clock):
        scheduler = make_scheduler(clock, SessionState(phase=SessionPhase.SUSPENDED))
        scheduler.start()
        clock.advance(30.0)
        assert scheduler.active_events == []

    def test_no_spawn_during_countdown(self, clock):
        scheduler = make_scheduler(clock, SessionState())
        scheduler.start()
        clock.advance(30.0)
        assert scheduler.active_events == []

    def test_spawn_rate_tracks_chance(self, clock, painting_state):
        spawned = []
        short = RiskEventTemplate("vehicle", 1.2, 0.5)
        scheduler = make_scheduler(
            clock, painting_state, spawn_chance=0.4, pool=[short], interval=1.0,
            seed=11, on_spawn=spawned.append,
        )
        scheduler.start()
        clock.advance(500.0)
        assert 0.3 < len(spawned) / 500 < 0.5

    def test_weighted_choice_skips_zero_weight(self, clock, painting_state):
        pool = [RiskEventTemplate("patrol", 2.0, 1.0, weight=0.0), RiskEventTemplate("vehicle", 1.2, 1.0)]
        scheduler = make_scheduler(clock, painting_state, pool=pool)
        kinds = {scheduler.choose_template().kind for _ in range(100)}
        assert kinds == {"vehicle"}

    def test_weighted_choice_favors_heavy_entries(self, clock, painting_state):
        pool = [RiskEventTemplate("patrol", 2.0, 1.0, weight=9.0), RiskEventTemplate("vehicle", 1.2, 1.0)]
        scheduler = make_scheduler(clock, painting_state, pool=pool)
        picks = [scheduler.choose_template().kind for _ in range(1000)]
        assert picks.count("patrol") > picks.count("vehicle") * 4


class TestExpiry:
    def test_event_expires_after_duration(self, clock, painting_state):
        expired = []
        scheduler = make_scheduler(clock, painting_state, on_expire=expired.append)
        event = scheduler.spawn(PATROL)
        clock.advance(2.9)
        assert scheduler.active_events == [event]
        clock.advance(0.2)
        assert scheduler.active_events == []
        assert expired == [event]

    def test_multiplier_returns_to_neutral_after_expiry(self, clock, painting_state):
        scheduler = make_scheduler(clock, painting_state)
        scheduler.spawn(PATROL)
        assert scheduler.risk_multiplier() == pytest.approx(2.0)
        clock.advance(3.1)
        assert scheduler.risk_multiplier() == 1.0

    def test_concurrent_events_compose(self, clock, painting_state):
        scheduler = make_scheduler(clock, painting_state)
        scheduler.spawn(PEDESTRIAN)
        scheduler.spawn(PATROL)
        assert scheduler.risk_multiplier() == pytest.approx(3.0)
        scheduler.spawn(COVER)
        assert scheduler.risk_multiplier() == pytest.approx(2.1)

    def test_events_expire_independently(self, clock, painting_state):
        scheduler = make_scheduler(clock, painting_state)
        scheduler.spawn(PATROL)
        pedestrian = scheduler.spawn(PEDESTRIAN)
        clock.advance(5.0)
        assert scheduler.active_events == [pedestrian]


class TestCancellation:
    def test_cancel_event_drops_expiry_timer(self, clock, painting_state):
        expired = []
        scheduler = make_scheduler(clock, painting_state, on_expire=expired.append)
        event = scheduler.spawn(PATROL)
        assert scheduler.cancel_event(event.id) is event
        assert not clock.has(f"risk_event_expire:{event.id}")
        clock.advance(5.0)
        assert expired == []

    def test_cancel_unknown_event(self, clock, painting_state):
        scheduler = make_scheduler(clock, painting_state)
        assert scheduler.cancel_event("event-nope") is None

    def test_cancel_random_negative_ignores_positive(self, clock, painting_state):
        scheduler = make_scheduler(clock, painting_state)
        cover = scheduler.spawn(COVER)
        assert scheduler.cancel_random_negative() is None
        assert scheduler.active_events == [cover]

    def test_cancel_random_negative_removes_one(self, clock, painting_state):
        scheduler = make_scheduler(clock, painting_state)
        cover = scheduler.spawn(COVER)
        scheduler.spawn(PATROL)
        scheduler.spawn(PEDESTRIAN)
        cancelled = scheduler.cancel_random_negative()
        assert cancelled.is_negative
        assert len(scheduler.active_events) == 2
        assert cover in scheduler.active_events

    def test_stop_clears_everything(self, clock, painting_state):
        scheduler = make_scheduler(clock, painting_state)
        scheduler.start()
        scheduler.spawn(PATROL)
        scheduler.stop()
        assert scheduler.active_events == []
        assert not clock.has(SPAWN_SUBSCRIPTION)
        assert clock.names == []
