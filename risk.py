"""
Zonk opponent risk model: behavior mode, stop probabilities, and the
continue/stop rule set.

Contains:
- determine_mode(): score-gap analysis with a shrinking buffer and hysteresis
- compute_stop_chances(): momentum and cap stop probabilities
- roll_stop(): two independent Bernoulli draws against those probabilities
- should_continue(): ordered decision rules on top of the risk model

All functions are pure apart from the draws made on an injected RNG.
"""
from dataclasses import dataclass
from typing import Optional
import logging
import random

from ai_config import AIConfiguration, BehaviorMode

logger = logging.getLogger(__name__)


def clamp01(value: float) -> float:
    """Clamp a probability to [0, 1]."""
    return max(0.0, min(1.0, value))


# ── State analysis ──────────────────────────────────────────────────────────

def current_buffer(completed_rounds: int, config: AIConfiguration) -> int:
    """Score-gap buffer after completed_rounds rounds.

    Shrinks by buffer_reduction_per_round every rounds_per_reduction rounds,
    never below minimum_buffer_cap.
    """
    reductions = max(completed_rounds, 0) // config.rounds_per_reduction
    return max(config.initial_buffer_cap - reductions * config.buffer_reduction_per_round,
               config.minimum_buffer_cap)


def sample_cap(mode: BehaviorMode, config: AIConfiguration,
               rng: Optional[random.Random] = None) -> int:
    """Per-turn cap for a mode.

    "midpoint" policy: integer midpoint of the mode's range.
    "random" policy: uniform integer in the range from the injected RNG.
    """
    low, high = config.cap_range(mode)
    if config.cap_policy == "random":
        if rng is None:
            raise ValueError("cap_policy 'random' needs an injected rng")
        return rng.randint(low, high)
    return (low + high) // 2


def determine_mode(opponent_score: int, rival_score: int, completed_rounds: int,
                   config: AIConfiguration,
                   previous_mode: BehaviorMode = BehaviorMode.PASSIVE,
                   rng: Optional[random.Random] = None):
    """Pick the behavior mode and per-turn cap from the score gap.

    Trailing by more than the buffer → AGGRESSIVE, leading by more than the
    buffer → PASSIVE, otherwise keep previous_mode.

    Returns:
        (BehaviorMode, cap) tuple
    """
    buffer = current_buffer(completed_rounds, config)
    diff = opponent_score - rival_score
    if diff < -buffer:
        mode = BehaviorMode.AGGRESSIVE
    elif diff > buffer:
        mode = BehaviorMode.PASSIVE
    else:
        mode = previous_mode
    return mode, sample_cap(mode, config, rng)


# ── Stop probabilities ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class StopChances:
    """Stop probabilities for one decision point."""
    momentum: float
    cap: float
    combined: float


@dataclass(frozen=True)
class StopRoll:
    """Outcome of the two independent stop draws."""
    momentum_fired: bool
    cap_fired: bool

    @property
    def fired(self) -> bool:
        return self.momentum_fired or self.cap_fired


def momentum_factor(success_count: int, config: AIConfiguration) -> float:
    """Stop-urge reduction from this turn's successful selections, floored."""
    reduced = 1.0 - max(success_count, 0) * config.momentum_reduction_per_success
    return max(reduced, config.minimum_momentum_multiplier)


def dice_risk_factor(remaining_dice: int, config: AIConfiguration) -> float:
    """Exponential penalty for rerolling two or fewer dice."""
    if remaining_dice > 2:
        return 1.0
    return 1.0 + config.dice_risk_multiplier * (3 - remaining_dice) ** config.dice_risk_exponent


def iteration_pressure_factor(iteration: int, config: AIConfiguration) -> float:
    """Pressure that accrues from the third iteration onward."""
    return 1.0 + config.iteration_pressure_increase * max(iteration - 2, 0)


def momentum_stop_chance(iteration: int, remaining_dice: int, success_count: int,
                         mode: BehaviorMode, config: AIConfiguration) -> float:
    chance = clamp01(config.base_multiplier(mode))
    chance = clamp01(chance * momentum_factor(success_count, config))
    chance = clamp01(chance * dice_risk_factor(remaining_dice, config))
    chance = clamp01(chance * iteration_pressure_factor(iteration, config))
    return min(chance, config.max_momentum_stop_chance)


def cap_stop_chance(turn_score: int, cap: int, mode: BehaviorMode,
                    config: AIConfiguration) -> float:
    if turn_score < cap:
        return 0.0
    over = turn_score - cap
    chance = config.base_cap_stop_chance + over / config.cap_growth_interval * config.cap_growth_rate(mode)
    return min(clamp01(chance), config.max_cap_stop_chance)


def compute_stop_chances(iteration: int, remaining_dice: int, success_count: int,
                         turn_score: int, cap: int, mode: BehaviorMode,
                         config: AIConfiguration) -> StopChances:
    """Compute the momentum, cap and combined stop probabilities.

    combined = 1 - (1 - momentum) * (1 - cap), the union of two independent
    events. It is reported for observability; the actual stop decision is
    made by roll_stop() with one draw per component.
    """
    momentum = momentum_stop_chance(iteration, remaining_dice, success_count, mode, config)
    cap_chance = cap_stop_chance(turn_score, cap, mode, config)
    combined = clamp01(1.0 - (1.0 - momentum) * (1.0 - cap_chance))
    return StopChances(momentum=momentum, cap=cap_chance, combined=combined)


def roll_stop(chances: StopChances, rng: random.Random) -> StopRoll:
    """Draw once against each component chance, momentum first."""
    momentum_fired = rng.random() < chances.momentum
    cap_fired = rng.random() < chances.cap
    return StopRoll(momentum_fired=momentum_fired, cap_fired=cap_fired)


# ── Zonk risk ───────────────────────────────────────────────────────────────

# Probability that rerolling n dice yields no scorable pattern
ZONK_RISK = {
    0: 1.0,
    1: 0.667,
    2: 0.422,
    3: 0.252,
    4: 0.138,
    5: 0.066,
    6: 0.02,
}


def zonk_risk(remaining_dice: int) -> float:
    """Look up the chance that the next reroll is a Zonk."""
    if remaining_dice <= 0:
        return ZONK_RISK[0]
    return ZONK_RISK[min(remaining_dice, 6)]


# ── Decision engine ─────────────────────────────────────────────────────────

REASON_CAP_ROLL = "cap reached + probability roll"
REASON_ITERATION_LIMIT = "iteration limit"
REASON_ZONK_CRITICAL = "zonk risk critical"
REASON_ZONK_HIGH = "zonk risk high, conservative mode"
REASON_LOW_DICE = "low dice, conservative mode"
REASON_MOMENTUM_ROLL = "momentum roll"
REASON_CONTINUE = "continue"


@dataclass(frozen=True)
class Decision:
    """Verdict of should_continue() with everything that produced it."""
    continue_turn: bool
    reason: str
    chances: StopChances
    roll: StopRoll
    zonk_risk: float


def should_continue(state, config: AIConfiguration, rng: random.Random) -> Decision:
    """Decide whether to reroll the remaining dice or bank the turn.

    state needs turn_score, cap, iteration, remaining_dice, success_count and
    mode (an AITurnState). Both stop draws are always made so RNG use does
    not depend on which rule fires.

    Rules, first match wins:
        1. At or over the cap and a stop roll fired
        2. Iteration limit for the mode reached
        3. Zonk risk above the critical level (any mode)
        4. Zonk risk above the high level in PASSIVE mode
        5. One or no dice left in PASSIVE mode
        6. Momentum roll fired below the cap
        7. Otherwise continue
    """
    chances = compute_stop_chances(
        state.iteration, state.remaining_dice, state.success_count,
        state.turn_score, state.cap, state.mode, config)
    roll = roll_stop(chances, rng)
    risk = zonk_risk(state.remaining_dice)
    passive = state.mode == BehaviorMode.PASSIVE

    if state.turn_score >= state.cap and roll.fired:
        reason = REASON_CAP_ROLL
    elif state.iteration >= config.max_iterations(state.mode):
        reason = REASON_ITERATION_LIMIT
    elif risk > config.critical_zonk_risk:
        reason = REASON_ZONK_CRITICAL
    elif risk > config.high_zonk_risk and passive:
        reason = REASON_ZONK_HIGH
    elif state.remaining_dice <= 1 and passive:
        reason = REASON_LOW_DICE
    elif roll.momentum_fired:
        reason = REASON_MOMENTUM_ROLL
    else:
        reason = REASON_CONTINUE

    decision = Decision(
        continue_turn=reason == REASON_CONTINUE,
        reason=reason,
        chances=chances,
        roll=roll,
        zonk_risk=risk,
    )
    logger.debug("Decision %s: %s (momentum=%.3f cap=%.3f combined=%.3f risk=%.3f)",
                 "CONTINUE" if decision.continue_turn else "STOP", reason,
                 chances.momentum, chances.cap, chances.combined, risk)
    return decision
