"""
AI Strategy Test Suite

Tests:
    1. Pattern selection — thresholds, exhaust rule, fallbacks per mode
    2. Turn scenarios — scripted dice and stop rolls, exact event streams
    3. Turn properties — seeded random turns never break invariants
    4. Robustness — malformed validators, safety cap
"""
import random
from dataclasses import replace

import pytest

from ai import (
    REASON_SAFETY_CAP, AITurnState, TurnContext, TurnOutcome, TurnResult,
    run_turn, select_pattern,
)
from ai_config import DEFAULT_CONFIG, PRESETS, BehaviorMode
from risk import REASON_CAP_ROLL, REASON_CONTINUE
from turn_log import (
    DecisionMade, DiceRolled, HotStreak, PatternSelected, TurnCompleted, TurnStarted, Zonked,
)
from zonk_engine import DEFAULT_RULES, PatternKind, PatternMatch, PatternValidator, ZonkRules

AGG = BehaviorMode.AGGRESSIVE
PAS = BehaviorMode.PASSIVE


# ── Helpers ─────────────────────────────────────────────────────────────────

class ScriptedRng:
    """random.Random stand-in: randint() replays dice, random() replays stop draws.

    Once a script runs out, the default value is returned.
    """

    def __init__(self, dice=(), draws=(), default_die=2, default_draw=0.99):
        self.dice = list(dice)
        self.draws = list(draws)
        self.default_die = default_die
        self.default_draw = default_draw

    def randint(self, a, b):
        return self.dice.pop(0) if self.dice else self.default_die

    def random(self):
        return self.draws.pop(0) if self.draws else self.default_draw


class AlwaysSingle(PatternValidator):
    """Every hand scores one die for 50 points."""

    def find_patterns(self, faces):
        return [PatternMatch(PatternKind.SINGLE, 50, 1, (faces[0],))] if faces else []


class RaisingValidator(PatternValidator):
    def find_patterns(self, faces):
        raise TypeError("validator exploded")


def _types(result):
    return [type(e) for e in result.events]


LEADING = TurnContext(opponent_score=0, rival_score=0)                # passive, cap 250
TRAILING = TurnContext(opponent_score=0, rival_score=1000)            # aggressive, cap 500


# ═══════════════════════════════════════════════════════════════════════════════
# 1. PATTERN SELECTION
# ═══════════════════════════════════════════════════════════════════════════════

class TestSelectPattern:

    def test_aggressive_takes_three_pairs(self):
        """Tier 1 pattern that uses every die is kept when worth enough."""
        match, _ = select_pattern([2, 2, 4, 4, 6, 6], AGG)
        assert match.kind == PatternKind.THREE_PAIRS
        assert match.points == 1500

    def test_aggressive_falls_back_to_fewest_dice(self):
        match, reason = select_pattern([2, 2, 3, 4, 6, 6], AGG)
        assert match.kind == PatternKind.PAIR
        assert match.dice_cost == 2
        assert reason == "fewest dice fallback"

    def test_aggressive_fewest_dice_prefers_points(self):
        match, _ = select_pattern([1, 5, 2, 3, 6, 6], AGG)
        assert (match.kind, match.points) == (PatternKind.SINGLE, 100)

    def test_aggressive_rejects_cheap_exhaust(self):
        """Three 2s would spend every die for 200; a pair keeps one to roll."""
        match, _ = select_pattern([2, 2, 2], AGG)
        assert match.kind == PatternKind.PAIR
        assert match.dice_cost == 2

    def test_aggressive_accepts_valuable_exhaust(self):
        match, _ = select_pattern([6, 6, 6], AGG)
        assert (match.kind, match.points) == (PatternKind.THREE_OF_KIND, 600)

    def test_exhaust_threshold_is_configurable(self):
        config = replace(DEFAULT_CONFIG, exhaust_min_points=100)
        match, _ = select_pattern([2, 2, 2], AGG, config)
        assert match.kind == PatternKind.THREE_OF_KIND

    def test_passive_takes_deeper_tier(self):
        match, _ = select_pattern([2, 2, 3, 4, 6, 6], PAS)
        assert (match.kind, match.points) == (PatternKind.TWO_PAIR, 500)

    def test_passive_falls_back_to_most_points(self):
        match, reason = select_pattern([1, 5, 2, 3, 6], PAS)
        assert (match.kind, match.points) == (PatternKind.SINGLE, 100)
        assert reason == "best points fallback"

    def test_passive_fallback_uses_validator_best_pattern(self):
        class PrefersSingles(ZonkRules):
            def best_pattern(self, faces):
                return next(m for m in self.find_patterns(faces) if m.kind == PatternKind.SINGLE)

        faces = [1, 2, 4, 5, 6, 6]
        match, _ = select_pattern(faces, PAS)
        assert (match.kind, match.points) == (PatternKind.PAIR, 120)
        match, reason = select_pattern(faces, PAS, validator=PrefersSingles())
        assert (match.kind, match.points) == (PatternKind.SINGLE, 100)
        assert reason == "best points fallback"

    def test_passive_fallback_rejects_malformed_best_pattern(self):
        class ClaimsMissingDice(ZonkRules):
            def best_pattern(self, faces):
                return PatternMatch(PatternKind.THREE_OF_KIND, 1000, 3, (1, 1, 1))

        match, reason = select_pattern([1, 2, 4, 5, 6, 6], PAS, validator=ClaimsMissingDice())
        assert match is None
        assert reason == "no usable best pattern"

    def test_zonk_dice_select_nothing(self):
        for mode in (AGG, PAS):
            match, _ = select_pattern([2, 3, 4, 6], mode)
            assert match is None

    def test_selection_is_always_a_validator_match(self):
        rng = random.Random(3)
        for _ in range(300):
            faces = [rng.randint(1, 6) for _ in range(rng.randint(1, 6))]
            for mode in (AGG, PAS):
                match, _ = select_pattern(faces, mode)
                if match is not None:
                    assert match in DEFAULT_RULES.find_patterns(faces)


# ═══════════════════════════════════════════════════════════════════════════════
# 2. TURN SCENARIOS
# ═══════════════════════════════════════════════════════════════════════════════

class TestTurnScenarios:

    def test_three_pairs_hot_streak_then_cap_stop(self):
        rng = ScriptedRng(dice=[2, 2, 4, 4, 6, 6, 2, 2, 3, 4, 6, 6], draws=[0.0, 0.0])
        result = run_turn(LEADING, rng=rng)

        assert _types(result) == [
            TurnStarted, DiceRolled, PatternSelected, HotStreak, DiceRolled,
            PatternSelected, DecisionMade, TurnCompleted,
        ]
        assert result.events[0] == TurnStarted(mode=PAS, cap=250)
        assert result.events[2].kind == PatternKind.THREE_PAIRS
        assert result.events[4].faces == (2, 2, 3, 4, 6, 6)
        assert result.events[5].kind == PatternKind.TWO_PAIR
        assert result.events[6].reason == REASON_CAP_ROLL
        assert result.events[-1] == TurnCompleted(final_score=2000, iterations=1, success_count=2)
        assert result.final_score == 2000
        assert result.outcome == TurnOutcome.STOPPED
        assert result.reason == REASON_CAP_ROLL

    def test_zonk_loses_turn_score(self):
        rng = ScriptedRng(dice=[1, 2, 3, 4, 6, 6, 2, 3, 4, 6, 6, 2, 3, 4])
        result = run_turn(TRAILING, rng=rng)

        assert _types(result) == [
            TurnStarted, DiceRolled, PatternSelected, DecisionMade, DiceRolled,
            PatternSelected, DecisionMade, DiceRolled, Zonked, TurnCompleted,
        ]
        assert result.events[0] == TurnStarted(mode=AGG, cap=500)
        assert result.events[2].kind == PatternKind.SINGLE
        assert result.events[5].kind == PatternKind.PAIR
        assert all(e.reason == REASON_CONTINUE for e in result.events if isinstance(e, DecisionMade))
        assert result.events[7].faces == (2, 3, 4)
        assert result.final_score == 0
        assert result.zonked
        assert result.events[-1] == TurnCompleted(final_score=0, iterations=2, success_count=2)

    def test_aggressive_three_pairs_hot_streak_skips_stop_check(self):
        rng = ScriptedRng(dice=[2, 2, 4, 4, 6, 6, 1, 2, 3, 4, 5, 6, 2, 2, 3, 4, 6, 6],
                          draws=[0.0, 0.0])
        result = run_turn(TRAILING, rng=rng)

        assert _types(result)[:6] == [
            TurnStarted, DiceRolled, PatternSelected, HotStreak, DiceRolled, PatternSelected,
        ]
        assert result.events[2] == PatternSelected(
            kind=PatternKind.THREE_PAIRS, points=1500, dice_cost=6, faces=(2, 2, 4, 4, 6, 6))
        assert len(result.events[4].faces) == 6
        assert result.events[5].kind == PatternKind.MAX_STRAIGHT
        # second hot streak, then the fewest-dice pair and the first stop check
        assert isinstance(result.events[6], HotStreak)
        assert result.events[8].kind == PatternKind.PAIR
        assert isinstance(result.events[9], DecisionMade)
        assert result.final_score == 3120
        assert result.iterations == 1

    def test_first_draw_without_pattern_zonks(self):
        context = replace(TRAILING, config=replace(DEFAULT_CONFIG, max_dice=4))
        result = run_turn(context, rng=ScriptedRng(dice=[2, 3, 4, 6]))
        assert _types(result) == [TurnStarted, DiceRolled, Zonked, TurnCompleted]
        assert result.final_score == 0
        assert result.iterations == 0
        assert result.success_count == 0

    def test_on_event_sees_the_same_stream(self):
        seen = []
        result = run_turn(TRAILING, rng=random.Random(8), on_event=seen.append)
        assert tuple(seen) == result.events

    def test_seeded_turns_reproduce(self):
        for seed in range(20):
            a = run_turn(TRAILING, rng=random.Random(seed))
            b = run_turn(TRAILING, rng=random.Random(seed))
            assert a == b

    def test_random_cap_policy_uses_injected_rng(self):
        context = replace(TRAILING, config=replace(DEFAULT_CONFIG, cap_policy="random"))
        result = run_turn(context, rng=random.Random(4))
        assert 400 <= result.cap <= 600

    def test_to_dict(self):
        data = run_turn(LEADING, rng=random.Random(1)).to_dict()
        assert data["mode"] == "passive"
        assert data["outcome"] in ("stopped", "zonked")
        assert data["events"][0]["event"] == "turn_started"
        assert data["events"][-1]["event"] == "turn_completed"


# ═══════════════════════════════════════════════════════════════════════════════
# 3. TURN PROPERTIES
# ═══════════════════════════════════════════════════════════════════════════════

def _contexts():
    for config in PRESETS.values():
        yield TurnContext(0, 1000, 0, config)
        yield TurnContext(1000, 0, 0, config)
        yield TurnContext(500, 450, 12, config, previous_mode=AGG)


class TestTurnProperties:

    @pytest.fixture(params=list(_contexts()))
    def context(self, request):
        return request.param

    def test_event_stream_shape(self, context):
        for seed in range(40):
            result = run_turn(context, rng=random.Random(seed))
            assert isinstance(result, TurnResult)
            assert isinstance(result.events[0], TurnStarted)
            assert isinstance(result.events[1], DiceRolled)
            assert isinstance(result.events[-1], TurnCompleted)
            zonks = [i for i, e in enumerate(result.events) if isinstance(e, Zonked)]
            assert zonks in ([], [len(result.events) - 2])

    def test_score_invariants(self, context):
        for seed in range(40):
            result = run_turn(context, rng=random.Random(seed))
            banked = sum(e.points for e in result.events if isinstance(e, PatternSelected))
            if result.zonked:
                assert result.final_score == 0
            else:
                assert result.final_score == banked
            assert result.success_count >= result.iterations
            assert result.iterations <= context.config.max_iterations(result.mode)

    def test_every_decision_follows_a_selection(self, context):
        for seed in range(40):
            events = run_turn(context, rng=random.Random(seed)).events
            for prev, event in zip(events, events[1:]):
                if isinstance(event, DecisionMade):
                    assert isinstance(prev, PatternSelected)
                if isinstance(event, HotStreak):
                    assert isinstance(prev, PatternSelected)

    def test_rolls_match_remaining_dice(self, context):
        for seed in range(40):
            remaining = None
            for event in run_turn(context, rng=random.Random(seed)).events:
                if isinstance(event, DiceRolled):
                    if remaining is not None:
                        assert len(event.faces) == remaining
                    remaining = len(event.faces)
                elif isinstance(event, PatternSelected):
                    remaining -= event.dice_cost
                    assert remaining >= 0
                elif isinstance(event, HotStreak):
                    remaining = context.config.max_dice


# ═══════════════════════════════════════════════════════════════════════════════
# 4. ROBUSTNESS
# ═══════════════════════════════════════════════════════════════════════════════

class TestRobustness:

    def test_raising_validator_zonks(self):
        result = run_turn(TRAILING, rng=random.Random(0), validator=RaisingValidator())
        assert result.zonked
        assert _types(result) == [TurnStarted, DiceRolled, Zonked, TurnCompleted]

    def test_single_match_instead_of_list_zonks(self):
        class SingleMatch(PatternValidator):
            def find_patterns(self, faces):
                return PatternMatch(PatternKind.SINGLE, 100, 1, (faces[0],))

        result = run_turn(TRAILING, rng=random.Random(0), validator=SingleMatch())
        assert result.zonked
        assert result.final_score == 0
        assert _types(result) == [TurnStarted, DiceRolled, Zonked, TurnCompleted]

    def test_failing_zonk_check_zonks(self):
        class BrokenZonkCheck(AlwaysSingle):
            def any_pattern(self, faces):
                raise RuntimeError("rules unavailable")

        result = run_turn(TRAILING, rng=random.Random(0), validator=BrokenZonkCheck())
        assert result.zonked
        assert _types(result) == [TurnStarted, DiceRolled, Zonked, TurnCompleted]

    def test_phantom_dice_are_not_banked(self):
        """A validator claiming dice that were never rolled scores nothing."""
        class PhantomSixes(PatternValidator):
            def find_patterns(self, faces):
                return [PatternMatch(PatternKind.THREE_OF_KIND, 600, 3, (6, 6, 6))]

        result = run_turn(TRAILING, rng=ScriptedRng(default_die=2), validator=PhantomSixes())
        assert result.zonked
        assert result.success_count == 0

    def test_safety_cap_ends_turn(self):
        config = replace(
            DEFAULT_CONFIG, safety_loop_cap=8, max_iterations_aggressive=100,
            points_cap_aggressive_min=100_000, points_cap_aggressive_max=100_000,
        )
        context = TurnContext(opponent_score=0, rival_score=1000, config=config)
        result = run_turn(context, rng=ScriptedRng(), validator=AlwaysSingle())

        assert result.reason == REASON_SAFETY_CAP
        assert result.outcome == TurnOutcome.STOPPED
        assert result.success_count == 8
        assert result.final_score == 400
        assert result.iterations == 6
        assert _types(result).count(HotStreak) == 1

    def test_default_safety_cap_bounds_hot_streaks(self):
        """A validator that always scores every die still terminates."""
        class AllDice(PatternValidator):
            def find_patterns(self, faces):
                return [PatternMatch(PatternKind.MAX_STRAIGHT, 1500, len(faces), tuple(faces))]

        result = run_turn(TRAILING, rng=random.Random(0), validator=AllDice())
        assert result.success_count == DEFAULT_CONFIG.safety_loop_cap
        assert result.iterations == 0

    def test_state_rejects_overspending(self):
        state = AITurnState(mode=AGG, cap=500, max_dice=6)
        state.set_dice((1, 2))
        with pytest.raises(AssertionError):
            state.bank(PatternMatch(PatternKind.TWO_PAIR, 500, 4))
