"""
Stealth Paint - the painting session engine of a location-based graffiti game.

Paint a wall while your cover wears thin. Strokes accumulate on a canvas,
stealth drains under random risk events, and when it runs out a pursuit
decides whether you get away, pay a fine, or get locked out.
"""

__version__ = "0.1.0"

from .state import SessionPhase, EndReason, SessionState
from .clock import SessionClock
from .stroke import Point, Stroke, StrokeStyle
from .brushes import register_brush, get_brush, get_brush_info, list_brushes, list_all_brush_info, render_stroke
from .canvas import CanvasAccumulator, CanvasMetrics, quality_score, apply_caught_penalty
from .risk_events import RiskEvent, RiskEventKind, RiskEventScheduler, combined_multiplier
from .stealth import StealthSimulator, time_of_day_factor
from .pursuit import PursuitPhase, PursuitTarget, PursuitOutcome, PursuitStateMachine, calculate_fine
from .session import PaintingSession, SessionRequest, SessionResult, ArrestReport
from .config import (
    Difficulty,
    DifficultyPreset,
    StealthConfig,
    RiskEventConfig,
    RiskEventTemplate,
    PursuitConfig,
    ScoringConfig,
    SessionConfig,
    GameConfig,
    ConfigManager,
    get_config_manager,
    get_game_config,
)

__all__ = [
    "SessionPhase", "EndReason", "SessionState",
    "SessionClock",
    "Point", "Stroke", "StrokeStyle",
    "register_brush", "get_brush", "get_brush_info", "list_brushes", "list_all_brush_info", "render_stroke",
    "CanvasAccumulator", "CanvasMetrics", "quality_score", "apply_caught_penalty",
    "RiskEvent", "RiskEventKind", "RiskEventScheduler", "combined_multiplier",
    "StealthSimulator", "time_of_day_factor",
    "PursuitPhase", "PursuitTarget", "PursuitOutcome", "PursuitStateMachine", "calculate_fine",
    "PaintingSession", "SessionRequest", "SessionResult", "ArrestReport",
    "Difficulty", "DifficultyPreset", "StealthConfig", "RiskEventConfig", "RiskEventTemplate",
    "PursuitConfig", "ScoringConfig", "SessionConfig", "GameConfig",
    "ConfigManager", "get_config_manager", "get_game_config",
]
