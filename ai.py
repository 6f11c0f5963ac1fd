"""
Zonk AI — Pattern selection strategy and the opponent's turn loop.

Contains:
- TurnContext, AITurnState, TurnResult, TurnPhase
- select_pattern(): tiered pattern choice per behavior mode
- run_turn(): one complete opponent turn as a bounded state machine
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple
import logging
import random

from ai_config import AIConfiguration, BehaviorMode, DEFAULT_CONFIG
from pattern_tiers import (
    best_valid_pattern, has_any_pattern, search_above_threshold, threshold_tier,
    valid_candidates,
)
from risk import StopChances, determine_mode, should_continue
from turn_log import (
    DecisionMade, DiceRolled, HotStreak, PatternSelected, TurnCompleted,
    TurnEvent, TurnStarted, Zonked,
)
from zonk_engine import DEFAULT_RULES, DiceSource, PatternMatch, PatternValidator

logger = logging.getLogger(__name__)

REASON_SAFETY_CAP = "safety cap"


# ── Turn data ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TurnContext:
    """Everything the opponent knows at the start of its turn - immutable"""
    opponent_score: int
    rival_score: int
    completed_rounds: int = 0
    config: AIConfiguration = DEFAULT_CONFIG
    previous_mode: BehaviorMode = BehaviorMode.PASSIVE


@dataclass
class AITurnState:
    """Mutable per-turn state. Owned by run_turn() and discarded afterwards."""
    mode: BehaviorMode
    cap: int
    max_dice: int
    dice: Tuple[int, ...] = ()
    remaining_dice: int = 0
    turn_score: int = 0
    iteration: int = 0
    success_count: int = 0
    last_chances: Optional[StopChances] = None

    def bank(self, match: PatternMatch) -> None:
        """Add a pattern's points and spend its dice."""
        assert 0 < match.dice_cost <= self.remaining_dice, (
            f"cannot spend {match.dice_cost} of {self.remaining_dice} dice")
        self.turn_score += match.points
        self.remaining_dice -= match.dice_cost
        self.success_count += 1
        assert 0 <= self.remaining_dice <= self.max_dice

    def set_dice(self, dice: Tuple[int, ...]) -> None:
        assert 0 <= len(dice) <= self.max_dice
        self.dice = tuple(dice)
        self.remaining_dice = len(self.dice)


class TurnPhase(Enum):
    """Executor states"""
    START = "start"
    EVALUATING = "evaluating"
    SELECTING = "selecting"
    DECIDING = "deciding"
    ZONKED = "zonked"
    STOPPED = "stopped"


class TurnOutcome(Enum):
    STOPPED = "stopped"
    ZONKED = "zonked"


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one opponent turn, returned to the turn host."""
    events: Tuple[TurnEvent, ...]
    final_score: int
    iterations: int
    success_count: int
    outcome: TurnOutcome
    mode: BehaviorMode
    cap: int
    reason: str = ""

    @property
    def zonked(self) -> bool:
        return self.outcome == TurnOutcome.ZONKED

    def to_dict(self) -> dict:
        return {
            "final_score": self.final_score,
            "iterations": self.iterations,
            "success_count": self.success_count,
            "outcome": self.outcome.value,
            "mode": self.mode.value,
            "cap": self.cap,
            "reason": self.reason,
            "events": [e.to_dict() for e in self.events],
        }


# ── Strategy ────────────────────────────────────────────────────────────────

def _fewest_dice(candidates: List[PatternMatch]) -> PatternMatch:
    """Minimum-dice rule: fewest dice, then most points."""
    return min(candidates, key=lambda m: (m.dice_cost, -m.points))


def select_pattern(faces, mode: BehaviorMode, config: AIConfiguration = DEFAULT_CONFIG,
                   validator: PatternValidator = DEFAULT_RULES) -> Tuple[Optional[PatternMatch], str]:
    """Choose which pattern to bank from the dice in hand.

    AGGRESSIVE: best pattern within the threshold tier, unless it would spend
    every die for fewer than exhaust_min_points; otherwise the pattern using
    the fewest dice, keeping dice to reroll.

    PASSIVE: best pattern within the threshold tier, otherwise the
    validator's best_pattern(). A failing or malformed best_pattern means
    no pattern.

    Returns:
        (PatternMatch or None, reason). None means the dice are a Zonk.
    """
    faces = tuple(faces)
    candidates = valid_candidates(faces, validator)
    if not candidates:
        return None, "no scorable pattern"

    max_tier = threshold_tier(mode, len(faces), config)
    match = search_above_threshold(faces, max_tier, validator, candidates=candidates)

    if mode == BehaviorMode.AGGRESSIVE:
        if match is not None:
            exhausts = match.dice_cost >= len(faces)
            if not exhausts or match.points >= config.exhaust_min_points:
                return match, f"tier <= {max_tier} match"
        return _fewest_dice(candidates), "fewest dice fallback"

    if match is not None:
        return match, f"tier <= {max_tier} match"
    best = best_valid_pattern(faces, validator)
    if best is None:
        return None, "no usable best pattern"
    return best, "best points fallback"


# ── Turn executor ───────────────────────────────────────────────────────────

def run_turn(context: TurnContext, rng: Optional[random.Random] = None,
             validator: Optional[PatternValidator] = None,
             on_event: Optional[Callable[[TurnEvent], None]] = None) -> TurnResult:
    """Play one full opponent turn.

    Args:
        context: Scores, round count, configuration and last turn's mode
        rng: Source of dice, cap samples and stop rolls (fresh if omitted)
        validator: Rule table shared with the human player (ZonkRules if omitted)
        on_event: Optional callback receiving each event as it happens

    Returns:
        TurnResult with the ordered event stream and the banked score
    """
    config = context.config
    if validator is None:
        validator = DEFAULT_RULES
    if rng is None:
        rng = random.Random()
    dice_source = DiceSource(rng, max_dice=config.max_dice)
    events: List[TurnEvent] = []

    def emit(event: TurnEvent) -> None:
        events.append(event)
        if on_event is not None:
            on_event(event)

    def roll(count: int) -> None:
        state.set_dice(dice_source.draw(count))
        emit(DiceRolled(faces=state.dice))

    phase = TurnPhase.START
    reason = ""
    selections = 0
    match = None

    while phase not in (TurnPhase.ZONKED, TurnPhase.STOPPED):
        if phase == TurnPhase.START:
            mode, cap = determine_mode(context.opponent_score, context.rival_score,
                                       context.completed_rounds, config,
                                       previous_mode=context.previous_mode, rng=rng)
            state = AITurnState(mode=mode, cap=cap, max_dice=config.max_dice)
            logger.debug("Turn start: mode=%s cap=%d (scores %d vs %d, round %d)",
                         mode.value, cap, context.opponent_score, context.rival_score,
                         context.completed_rounds)
            emit(TurnStarted(mode=mode, cap=cap))
            roll(config.max_dice)
            phase = TurnPhase.EVALUATING

        elif phase == TurnPhase.EVALUATING:
            match, why = select_pattern(state.dice, mode, config, validator)
            if match is None or not has_any_pattern(state.dice, validator):
                phase = TurnPhase.ZONKED
            else:
                phase = TurnPhase.SELECTING

        elif phase == TurnPhase.SELECTING:
            state.bank(match)
            selections += 1
            logger.debug("Banked %s for %d (%s); turn score %d, %d dice left",
                         match.kind.value, match.points, why,
                         state.turn_score, state.remaining_dice)
            emit(PatternSelected(kind=match.kind, points=match.points,
                                 dice_cost=match.dice_cost, faces=match.faces))
            if selections >= config.safety_loop_cap:
                logger.warning("Safety cap of %d selections reached; ending turn",
                               config.safety_loop_cap)
                reason = REASON_SAFETY_CAP
                phase = TurnPhase.STOPPED
            elif state.remaining_dice == 0:
                emit(HotStreak())
                roll(config.max_dice)
                phase = TurnPhase.EVALUATING
            else:
                phase = TurnPhase.DECIDING

        elif phase == TurnPhase.DECIDING:
            state.iteration += 1
            decision = should_continue(state, config, rng)
            state.last_chances = decision.chances
            emit(DecisionMade(
                continue_turn=decision.continue_turn,
                reason=decision.reason,
                momentum_chance=decision.chances.momentum,
                cap_chance=decision.chances.cap,
                combined_chance=decision.chances.combined,
            ))
            if decision.continue_turn:
                roll(state.remaining_dice)
                phase = TurnPhase.EVALUATING
            else:
                reason = decision.reason
                phase = TurnPhase.STOPPED

    if phase == TurnPhase.ZONKED:
        logger.debug("Zonk on %s; losing %d points", list(state.dice), state.turn_score)
        state.turn_score = 0
        emit(Zonked())
        outcome = TurnOutcome.ZONKED
        reason = "zonk"
    else:
        outcome = TurnOutcome.STOPPED

    emit(TurnCompleted(final_score=state.turn_score, iterations=state.iteration,
                       success_count=state.success_count))
    logger.debug("Turn complete: %d points, %d iterations, %d selections (%s)",
                 state.turn_score, state.iteration, state.success_count, reason)

    return TurnResult(
        events=tuple(events),
        final_score=state.turn_score,
        iterations=state.iteration,
        success_count=state.success_count,
        outcome=outcome,
        mode=mode,
        cap=cap,
        reason=reason,
    )
