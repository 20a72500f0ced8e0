"""
Configuration - game balance tables for the painting session engine.

Every tunable number lives here rather than at a call site: difficulty
presets, stealth decay, the risk event pool, pursuit rules and the quality
score weights. Tables load from YAML or JSON and fall back to the built-in
defaults when the file is missing or invalid.
"""

import json
import logging
import yaml
from dataclasses import dataclass, field, asdict
from enum import Enum
from pathlib import Path
from typing import Tuple, Optional, Dict, Any, List

logger = logging.getLogger(__name__)


class Difficulty(Enum):
    """The four difficulty tiers, easiest first."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXTREME = "extreme"

    @classmethod
    def parse(cls, value) -> "Difficulty":
        """Accept a Difficulty or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown difficulty: {value!r}") from None


DIFFICULTY_ORDER: List[Difficulty] = [
    Difficulty.EASY,
    Difficulty.MEDIUM,
    Difficulty.HARD,
    Difficulty.EXTREME,
]

RISK_EVENT_KINDS = ("pedestrian", "vehicle", "patrol", "good_cover", "nightfall")


@dataclass
class DifficultyPreset:
    """Per-tier rates. Harder tiers drain faster and leave less slack."""
    base_drain_rate: float       # Stealth points per second before modifiers
    max_look_arounds: int
    event_interval_seconds: float
    required_taps: int
    time_limit_seconds: float
    target_radius: float         # Pursuit target radius, percent of arena

    def validate(self) -> Tuple[bool, Optional[str]]:
        if self.base_drain_rate < 0:
            return False, "base_drain_rate must be non-negative"
        if self.max_look_arounds < 0:
            return False, "max_look_arounds must be non-negative"
        if self.event_interval_seconds <= 0:
            return False, "event_interval_seconds must be positive"
        if self.required_taps < 1:
            return False, "required_taps must be at least 1"
        if self.time_limit_seconds <= 0:
            return False, "time_limit_seconds must be positive"
        if self.target_radius <= 0:
            return False, "target_radius must be positive"
        return True, None


def _default_presets() -> Dict[str, DifficultyPreset]:
    return {
        "easy": DifficultyPreset(3.0, 5, 45.0, 6, 12.0, 6.0),
        "medium": DifficultyPreset(5.0, 4, 35.0, 8, 10.0, 5.0),
        "hard": DifficultyPreset(7.0, 3, 25.0, 10, 8.0, 4.0),
        "extreme": DifficultyPreset(10.0, 2, 20.0, 12, 6.0, 3.5),
    }


@dataclass
class StealthConfig:
    """Stealth scalar bounds, tick rate, look-around and time-of-day factors."""
    max_stealth: float = 100.0
    tick_seconds: float = 0.1
    look_around_restore: float = 50.0
    look_around_cooldown_seconds: int = 10
    negative_event_cancel_chance: float = 0.3

    # Visibility by hour: daytime is exposed, night gives cover
    day_start_hour: int = 6
    day_end_hour: int = 18
    day_factor: float = 1.3
    evening_start_hour: int = 19
    evening_end_hour: int = 21
    evening_factor: float = 0.9
    night_factor: float = 0.6

    def validate(self) -> Tuple[bool, Optional[str]]:
        if self.max_stealth <= 0:
            return False, "max_stealth must be positive"
        if self.tick_seconds <= 0:
            return False, "tick_seconds must be positive"
        if not (0 <= self.look_around_restore <= self.max_stealth):
            return False, "look_around_restore must be within stealth range"
        if self.look_around_cooldown_seconds < 0:
            return False, "look_around_cooldown_seconds must be non-negative"
        if not (0 <= self.negative_event_cancel_chance <= 1):
            return False, "negative_event_cancel_chance must be 0-1"
        for hour in (self.day_start_hour, self.day_end_hour,
                     self.evening_start_hour, self.evening_end_hour):
            if not (0 <= hour <= 23):
                return False, "time-of-day hours must be 0-23"
        if min(self.day_factor, self.evening_factor, self.night_factor) < 0:
            return False, "time-of-day factors must be non-negative"
        return True, None


@dataclass
class RiskEventTemplate:
    """One entry of the spawn pool."""
    kind: str
    risk_multiplier: float
    duration_seconds: float
    weight: float = 1.0
    message: str = ""


def _default_event_pool() -> List[RiskEventTemplate]:
    return [
        RiskEventTemplate("pedestrian", 1.5, 15.0, 1.0, "A passer-by spotted you"),
        RiskEventTemplate("vehicle", 1.2, 10.0, 1.0, "A car drives past"),
        RiskEventTemplate("patrol", 2.0, 20.0, 1.0, "Police patrol nearby"),
        RiskEventTemplate("good_cover", 0.7, 25.0, 1.0, "Found good cover"),
        RiskEventTemplate("nightfall", 0.5, 30.0, 1.0, "Darkness hides you"),
    ]


@dataclass
class RiskEventConfig:
    """Spawn probability per scheduler period and the weighted event pool."""
    spawn_chance: float = 0.4
    pool: List[RiskEventTemplate] = field(default_factory=_default_event_pool)

    def validate(self) -> Tuple[bool, Optional[str]]:
        if not (0 <= self.spawn_chance <= 1):
            return False, "spawn_chance must be 0-1"
        if not self.pool:
            return False, "event pool must not be empty"
        for template in self.pool:
            if template.kind not in RISK_EVENT_KINDS:
                return False, f"unknown risk event kind: {template.kind}"
            if template.risk_multiplier <= 0:
                return False, f"{template.kind}: risk_multiplier must be positive"
            if template.duration_seconds <= 0:
                return False, f"{template.kind}: duration_seconds must be positive"
            if template.weight < 0:
                return False, f"{template.kind}: weight must be non-negative"
        if sum(t.weight for t in self.pool) <= 0:
            return False, "event pool weights must sum to more than 0"
        return True, None


@dataclass
class PursuitConfig:
    """Pursuit outcome rules shared by every tier."""
    arrest_threshold: int = 3
    partial_restore: float = 50.0
    fine_per_arrest: int = 500
    jail_hours: int = 24
    edge_margin: float = 10.0   # Targets stay this far (percent) from arena edges
    countdown_step_seconds: float = 0.1
    max_placement_attempts: int = 200

    def validate(self) -> Tuple[bool, Optional[str]]:
        if self.arrest_threshold < 1:
            return False, "arrest_threshold must be at least 1"
        if self.partial_restore <= 0:
            return False, "partial_restore must be positive"
        if self.fine_per_arrest < 0:
            return False, "fine_per_arrest must be non-negative"
        if self.jail_hours < 0:
            return False, "jail_hours must be non-negative"
        if not (0 <= self.edge_margin < 50):
            return False, "edge_margin must be 0-50"
        if self.countdown_step_seconds <= 0:
            return False, "countdown_step_seconds must be positive"
        if self.max_placement_attempts < 1:
            return False, "max_placement_attempts must be at least 1"
        return True, None


@dataclass
class ScoringConfig:
    """Quality score weights and the offscreen canvas used to measure coverage."""
    coverage_baseline: float = 30.0   # Coverage percent that counts as "full"
    coverage_weight: float = 0.7
    diversity_weight: float = 0.15
    diversity_cap: int = 5
    stroke_weight: float = 0.15
    stroke_cap: int = 20
    caught_penalty: float = 0.5
    sample_step: int = 1              # Sample every Nth pixel on both axes
    background_color: Tuple[int, int, int] = (26, 26, 26)
    canvas_width: int = 800
    canvas_height: int = 600

    def validate(self) -> Tuple[bool, Optional[str]]:
        if self.coverage_baseline <= 0:
            return False, "coverage_baseline must be positive"
        for name in ("coverage_weight", "diversity_weight", "stroke_weight"):
            if getattr(self, name) < 0:
                return False, f"{name} must be non-negative"
        total = self.coverage_weight + self.diversity_weight + self.stroke_weight
        if not (0.9 <= total <= 1.1):
            return False, f"Score weights should sum to ~1.0, got {total}"
        if self.diversity_cap < 1 or self.stroke_cap < 1:
            return False, "diversity_cap and stroke_cap must be at least 1"
        if not (0 <= self.caught_penalty <= 1):
            return False, "caught_penalty must be 0-1"
        if self.sample_step < 1:
            return False, "sample_step must be at least 1"
        if self.canvas_width < 1 or self.canvas_height < 1:
            return False, "canvas dimensions must be positive"
        return True, None


@dataclass
class SessionConfig:
    """Session lifecycle settings."""
    countdown_seconds: int = 3

    def validate(self) -> Tuple[bool, Optional[str]]:
        if self.countdown_seconds < 0:
            return False, "countdown_seconds must be non-negative"
        return True, None


def _mapping(value: Any, where: str) -> Dict[str, Any]:
    """A config section: None means empty, anything but a mapping is rejected."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"{where} must be a mapping, got {type(value).__name__}")
    return value


@dataclass
class GameConfig:
    """Complete configuration consumed by a painting session."""
    difficulty: Dict[str, DifficultyPreset] = field(default_factory=_default_presets)
    stealth: StealthConfig = field(default_factory=StealthConfig)
    risk_events: RiskEventConfig = field(default_factory=RiskEventConfig)
    pursuit: PursuitConfig = field(default_factory=PursuitConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    session: SessionConfig = field(default_factory=SessionConfig)

    def preset(self, difficulty) -> DifficultyPreset:
        """Look up the preset for a tier (enum or string)."""
        return self.difficulty[Difficulty.parse(difficulty).value]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        scoring = asdict(self.scoring)
        scoring["background_color"] = list(self.scoring.background_color)
        return {
            "difficulty": {name: asdict(p) for name, p in self.difficulty.items()},
            "stealth": asdict(self.stealth),
            "risk_events": asdict(self.risk_events),
            "pursuit": asdict(self.pursuit),
            "scoring": scoring,
            "session": asdict(self.session),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameConfig":
        """Create from dictionary. Missing sections and tiers keep their defaults.

        Raises TypeError when the document or one of its sections is not a mapping.
        """
        data = _mapping(data, "config")
        presets = _default_presets()
        for name, values in _mapping(data.get("difficulty"), "difficulty").items():
            base = asdict(presets[name]) if name in presets else {}
            base.update(_mapping(values, f"difficulty.{name}"))
            presets[name] = DifficultyPreset(**base)

        events = dict(_mapping(data.get("risk_events"), "risk_events"))
        if "pool" in events:
            if not isinstance(events["pool"], list):
                raise TypeError("risk_events.pool must be a list")
            events["pool"] = [RiskEventTemplate(**_mapping(t, "risk_events.pool[]")) for t in events["pool"]]

        scoring = dict(_mapping(data.get("scoring"), "scoring"))
        if "background_color" in scoring:
            scoring["background_color"] = tuple(scoring["background_color"])

        return cls(
            difficulty=presets,
            stealth=StealthConfig(**_mapping(data.get("stealth"), "stealth")),
            risk_events=RiskEventConfig(**events),
            pursuit=PursuitConfig(**_mapping(data.get("pursuit"), "pursuit")),
            scoring=ScoringConfig(**scoring),
            session=SessionConfig(**_mapping(data.get("session"), "session")),
        )

    def validate(self) -> Tuple[bool, Optional[str]]:
        """Validate entire configuration, including ordering across tiers."""
        for tier in DIFFICULTY_ORDER:
            preset = self.difficulty.get(tier.value)
            if preset is None:
                return False, f"missing difficulty preset: {tier.value}"
            valid, error = preset.validate()
            if not valid:
                return False, f"difficulty.{tier.value}: {error}"

        ordered = [self.difficulty[t.value] for t in DIFFICULTY_ORDER]
        for easier, harder in zip(ordered, ordered[1:]):
            if harder.base_drain_rate < easier.base_drain_rate:
                return False, "base_drain_rate must not decrease with difficulty"
            if harder.max_look_arounds > easier.max_look_arounds:
                return False, "max_look_arounds must not increase with difficulty"
            if harder.required_taps < easier.required_taps:
                return False, "required_taps must not decrease with difficulty"
            if harder.time_limit_seconds > easier.time_limit_seconds:
                return False, "time_limit_seconds must not increase with difficulty"

        for section in ("stealth", "risk_events", "pursuit", "scoring", "session"):
            valid, error = getattr(self, section).validate()
            if not valid:
                return False, f"{section}: {error}"
        return True, None


class ConfigManager:
    """Loads and saves GameConfig files."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize config manager.

        Args:
            config_path: Path to config file (default: stealth_paint.yaml in current dir)
        """
        if config_path is None:
            config_path = Path("stealth_paint.yaml")
        self.config_path = Path(config_path)
        self._config: Optional[GameConfig] = None

    def _is_yaml(self) -> bool:
        return self.config_path.suffix in (".yaml", ".yml")

    def load(self, force_reload: bool = False) -> GameConfig:
        """Load configuration from file or return defaults."""
        if self._config is not None and not force_reload:
            return self._config

        if not self.config_path.exists():
            self._config = GameConfig()
            return self._config

        try:
            with open(self.config_path, "r") as f:
                data = yaml.safe_load(f) if self._is_yaml() else json.load(f)
            config = GameConfig.from_dict(data)
            # Wrongly typed values only surface when compared
            valid, error = config.validate()
        except (OSError, ValueError, TypeError, KeyError, yaml.YAMLError) as e:
            logger.warning("Error loading config %s, using defaults: %s", self.config_path, e)
            self._config = GameConfig()
            return self._config

        if not valid:
            logger.warning("Invalid config %s, using defaults: %s", self.config_path, error)
            config = GameConfig()
        self._config = config
        return self._config

    def save(self, config: Optional[GameConfig] = None) -> bool:
        """Validate and write configuration. Returns True if saved."""
        if config is None:
            config = self._config or self.load()

        valid, error = config.validate()
        if not valid:
            logger.warning("Cannot save invalid config: %s", error)
            return False

        data = config.to_dict()
        try:
            with open(self.config_path, "w") as f:
                if self._is_yaml():
                    yaml.dump(data, f, default_flow_style=False, sort_keys=False)
                else:
                    json.dump(data, f, indent=2)
        except OSError as e:
            logger.warning("Error saving config %s: %s", self.config_path, e)
            return False

        self._config = config
        return True

    def reload(self) -> GameConfig:
        """Force reload configuration from file."""
        self._config = None
        return self.load()


# Global config manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_path: Optional[Path] = None) -> ConfigManager:
    """Get global config manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager(config_path)
    return _config_manager


def get_game_config() -> GameConfig:
    """Get current game configuration."""
    return get_config_manager().load()
