"""Tunables for the Zonk opponent.

Holds the behavior mode enum, the AIConfiguration dataclass with its
documented defaults, the difficulty presets, and JSON load/save in
~/.zonk_ai_config.json (same contract as a settings file: missing or corrupt
files fall back to defaults, unknown keys are ignored).
"""
import json
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from pathlib import Path


class BehaviorMode(Enum):
    """Opponent behavior mode, chosen once per turn from the score gap."""
    AGGRESSIVE = "aggressive"
    PASSIVE = "passive"


class ConfigurationError(ValueError):
    """Raised when a tunable is out of range."""


CAP_POLICIES = ("midpoint", "random")


@dataclass(frozen=True)
class AIConfiguration:
    """Immutable opponent tunables. Validated on construction."""

    # Per-turn point caps (range per mode)
    points_cap_aggressive_min: int = 400
    points_cap_aggressive_max: int = 600
    points_cap_passive_min: int = 200
    points_cap_passive_max: int = 300
    cap_policy: str = "midpoint"

    # Dynamic buffer between the two modes, shrinks as the game goes on
    initial_buffer_cap: int = 200
    buffer_reduction_per_round: int = 20
    rounds_per_reduction: int = 3
    minimum_buffer_cap: int = 50

    # Momentum stop chance
    aggressive_base_multiplier: float = 0.10
    passive_base_multiplier: float = 0.15
    momentum_reduction_per_success: float = 0.12
    minimum_momentum_multiplier: float = 0.25
    dice_risk_exponent: float = 2.0
    dice_risk_multiplier: float = 0.3
    iteration_pressure_increase: float = 0.2
    max_momentum_stop_chance: float = 0.90

    # Cap stop chance
    base_cap_stop_chance: float = 0.30
    aggressive_cap_growth_rate: float = 0.10
    passive_cap_growth_rate: float = 0.20
    cap_growth_interval: int = 50
    max_cap_stop_chance: float = 0.80

    # Pattern thresholds (fraction of the best tier's value)
    aggressive_initial_threshold: float = 0.80
    aggressive_threshold_reduction: float = 0.20
    passive_initial_threshold: float = 0.40
    passive_threshold_reduction: float = 0.10
    minimum_threshold: float = 0.10
    exhaust_min_points: int = 500

    # Decision rules
    max_iterations_aggressive: int = 5
    max_iterations_passive: int = 2
    critical_zonk_risk: float = 0.8
    high_zonk_risk: float = 0.6

    # Structural limits
    max_dice: int = 6
    safety_loop_cap: int = 50

    def __post_init__(self):
        _validate(self)

    # ── Mode-specific lookups ──────────────────────────────────────────────

    def cap_range(self, mode: BehaviorMode) -> tuple:
        """Return the (min, max) per-turn cap for a mode."""
        if mode == BehaviorMode.AGGRESSIVE:
            return self.points_cap_aggressive_min, self.points_cap_aggressive_max
        return self.points_cap_passive_min, self.points_cap_passive_max

    def base_multiplier(self, mode: BehaviorMode) -> float:
        if mode == BehaviorMode.AGGRESSIVE:
            return self.aggressive_base_multiplier
        return self.passive_base_multiplier

    def cap_growth_rate(self, mode: BehaviorMode) -> float:
        if mode == BehaviorMode.AGGRESSIVE:
            return self.aggressive_cap_growth_rate
        return self.passive_cap_growth_rate

    def max_iterations(self, mode: BehaviorMode) -> int:
        if mode == BehaviorMode.AGGRESSIVE:
            return self.max_iterations_aggressive
        return self.max_iterations_passive

    def threshold_start(self, mode: BehaviorMode) -> tuple:
        """Return (initial threshold, reduction per die) for a mode."""
        if mode == BehaviorMode.AGGRESSIVE:
            return self.aggressive_initial_threshold, self.aggressive_threshold_reduction
        return self.passive_initial_threshold, self.passive_threshold_reduction

    # ── Serialization ──────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data, base=None):
        """Build a configuration from a dict, layered over base (or defaults).

        Unknown keys are ignored. Bad values raise ConfigurationError.
        """
        if base is None:
            base = cls()
        known = {f.name for f in fields(cls)}
        overrides = {k: v for k, v in data.items() if k in known}
        try:
            return replace(base, **overrides)
        except TypeError as exc:
            raise ConfigurationError(str(exc)) from exc


_PROBABILITY_FIELDS = (
    "aggressive_base_multiplier", "passive_base_multiplier",
    "momentum_reduction_per_success", "minimum_momentum_multiplier",
    "max_momentum_stop_chance", "base_cap_stop_chance",
    "aggressive_cap_growth_rate", "passive_cap_growth_rate",
    "max_cap_stop_chance", "aggressive_initial_threshold",
    "aggressive_threshold_reduction", "passive_initial_threshold",
    "passive_threshold_reduction", "minimum_threshold",
    "critical_zonk_risk", "high_zonk_risk",
)

_NON_NEGATIVE_FIELDS = (
    "points_cap_aggressive_min", "points_cap_aggressive_max",
    "points_cap_passive_min", "points_cap_passive_max",
    "initial_buffer_cap", "buffer_reduction_per_round", "minimum_buffer_cap",
    "dice_risk_exponent", "dice_risk_multiplier",
    "iteration_pressure_increase", "exhaust_min_points",
)

_POSITIVE_FIELDS = (
    "rounds_per_reduction", "cap_growth_interval",
    "max_iterations_aggressive", "max_iterations_passive", "safety_loop_cap",
)


def _validate(config):
    """Fail fast on out-of-range tunables."""
    for name in _PROBABILITY_FIELDS + _NON_NEGATIVE_FIELDS + _POSITIVE_FIELDS:
        value = getattr(config, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigurationError(f"{name} must be a number, got {value!r}")

    for name in _PROBABILITY_FIELDS:
        value = getattr(config, name)
        if not 0.0 <= value <= 1.0:
            raise ConfigurationError(f"{name} must be within [0, 1], got {value}")

    for name in _NON_NEGATIVE_FIELDS:
        if getattr(config, name) < 0:
            raise ConfigurationError(f"{name} must not be negative, got {getattr(config, name)}")

    for name in _POSITIVE_FIELDS:
        if getattr(config, name) <= 0:
            raise ConfigurationError(f"{name} must be positive, got {getattr(config, name)}")

    if config.points_cap_aggressive_min > config.points_cap_aggressive_max:
        raise ConfigurationError("points_cap_aggressive_min exceeds points_cap_aggressive_max")
    if config.points_cap_passive_min > config.points_cap_passive_max:
        raise ConfigurationError("points_cap_passive_min exceeds points_cap_passive_max")
    if config.minimum_buffer_cap > config.initial_buffer_cap:
        raise ConfigurationError("minimum_buffer_cap exceeds initial_buffer_cap")
    if config.high_zonk_risk > config.critical_zonk_risk:
        raise ConfigurationError("high_zonk_risk exceeds critical_zonk_risk")
    if not isinstance(config.max_dice, int) or not 1 <= config.max_dice <= 6:
        raise ConfigurationError(f"max_dice must be an int within 1..6, got {config.max_dice!r}")
    if config.cap_policy not in CAP_POLICIES:
        raise ConfigurationError(
            f"cap_policy must be one of {CAP_POLICIES}, got {config.cap_policy!r}")


# ── Difficulty presets ──────────────────────────────────────────────────────

DEFAULT_CONFIG = AIConfiguration()

PRESETS = {
    # Stops sooner: lower caps, faster cap growth, less momentum
    "easy": replace(
        DEFAULT_CONFIG,
        points_cap_aggressive_min=300, points_cap_aggressive_max=400,
        points_cap_passive_min=150, points_cap_passive_max=250,
        initial_buffer_cap=250,
        momentum_reduction_per_success=0.15,
        aggressive_cap_growth_rate=0.15, passive_cap_growth_rate=0.25,
        aggressive_base_multiplier=0.12, passive_base_multiplier=0.18,
        max_iterations_passive=2,
        high_zonk_risk=0.5,
    ),
    "medium": DEFAULT_CONFIG,
    # Pushes further: higher caps, slower cap growth, more momentum
    "hard": replace(
        DEFAULT_CONFIG,
        points_cap_aggressive_min=550, points_cap_aggressive_max=750,
        points_cap_passive_min=250, points_cap_passive_max=350,
        initial_buffer_cap=150,
        momentum_reduction_per_success=0.08,
        aggressive_cap_growth_rate=0.08, passive_cap_growth_rate=0.15,
        aggressive_base_multiplier=0.08, passive_base_multiplier=0.12,
        max_iterations_passive=3,
        high_zonk_risk=0.7,
    ),
}


def get_preset(name):
    """Return the named preset, raising ConfigurationError for unknown names."""
    try:
        return PRESETS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown preset {name!r} (expected one of {sorted(PRESETS)})") from None


# ── Persistence ─────────────────────────────────────────────────────────────

def _default_path():
    """Return the default path for the configuration file."""
    return Path.home() / ".zonk_ai_config.json"


def load_config(path=None, preset="medium"):
    """Load a configuration from JSON, layered over a preset.

    A missing or corrupt file returns the preset unchanged. Unknown keys are
    ignored. Known keys with bad values raise ConfigurationError.
    """
    base = get_preset(preset)
    if path is None:
        path = _default_path()
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return base
    if not isinstance(data, dict):
        return base
    return AIConfiguration.from_dict(data, base=base)


def save_config(config, path=None):
    """Write a configuration to JSON. Silently ignores write errors."""
    if path is None:
        path = _default_path()
    path = Path(path)
    try:
        path.write_text(json.dumps(config.to_dict(), indent=2))
    except OSError:
        pass
