"""
Zonk Game Engine - Dice source and pattern rule table without any GUI dependencies

This module holds the shared scoring rules used by both the human player path
and the computer opponent, plus a seedable dice source. The opponent consumes
the rules only through the PatternValidator interface.
"""
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple
import random

MAX_DICE = 6
FACES = range(1, 7)


class PatternKind(Enum):
    """Scorable dice patterns"""
    SINGLE = "Single"
    PAIR = "Pair"
    TWO_PAIR = "Two Pair"
    THREE_OF_KIND = "Three of a Kind"
    SMALL_STRAIGHT = "Small Straight"
    FOUR_OF_KIND = "Four of a Kind"
    FULL_HOUSE = "Full House"
    STRAIGHT = "Straight"
    MAX_STRAIGHT = "Max Straight"
    THREE_PAIRS = "Three Pairs"
    TWO_TRIPLETS = "Two Triplets"


@dataclass(frozen=True)
class PatternMatch:
    """A scorable pattern found in a set of dice - immutable"""
    kind: PatternKind
    points: int
    dice_cost: int  # how many dice banking this pattern consumes
    faces: Tuple[int, ...] = ()  # the die values consumed


# ── Dice Source ─────────────────────────────────────────────────────────────

class DiceSource:
    """Uniform die-face generator backed by an injected random.Random.

    Each opponent or simulation gets its own instance so draws are
    reproducible and never touch the module-level random state.
    """

    def __init__(self, rng: Optional[random.Random] = None, max_dice: int = MAX_DICE):
        self.rng = rng if rng is not None else random.Random()
        self.max_dice = max_dice

    def draw(self, count: int) -> Tuple[int, ...]:
        """Return count independent values in 1..6.

        Raises:
            ValueError: if count is outside 0..max_dice
        """
        if not 0 <= count <= self.max_dice:
            raise ValueError(f"Cannot draw {count} dice (max {self.max_dice})")
        return tuple(self.rng.randint(1, 6) for _ in range(count))


# ── Pattern helpers ─────────────────────────────────────────────────────────

def count_faces(faces):
    """Count occurrences of each die value"""
    return Counter(faces)


def longest_run(faces):
    """
    Find the longest run of consecutive distinct values

    Args:
        faces: Iterable of die values

    Returns:
        (length, start_value) of the longest run; (0, 0) for no dice
    """
    values = sorted(set(faces))
    best_len, best_start = 0, 0
    run_len, run_start = 0, 0
    prev = None
    for v in values:
        if prev is not None and v == prev + 1:
            run_len += 1
        else:
            run_len, run_start = 1, v
        if run_len >= best_len:
            best_len, best_start = run_len, run_start
        prev = v
    return best_len, best_start


def three_of_kind_points(face):
    """Points for three of a kind of a given face"""
    return 1000 if face == 1 else face * 100


def four_of_kind_points(face):
    """Points for four of a kind of a given face"""
    return 2000 if face == 1 else face * 200


def pair_points(face):
    """Points for a pair of a given face"""
    return 200 if face == 1 else face * 20


def _straight_faces(faces, length):
    run_len, start = longest_run(faces)
    # Highest-starting run of the requested length inside the longest run
    start = start + run_len - length
    return tuple(range(start, start + length))


# ── Validator interface ─────────────────────────────────────────────────────

class PatternValidator(ABC):
    """Rule table interface consumed by the opponent.

    Implementations must apply the same rules to human and computer players.
    """

    @abstractmethod
    def find_patterns(self, faces) -> List[PatternMatch]:
        """Return every scorable pattern present in faces (one per kind)."""
        ...

    def best_pattern(self, faces) -> Optional[PatternMatch]:
        """Return the single highest-scoring pattern, or None for a Zonk.

        Ties go to the pattern consuming fewer dice.
        """
        matches = self.find_patterns(faces)
        if not matches:
            return None
        return max(matches, key=lambda m: (m.points, -m.dice_cost))

    def any_pattern(self, faces) -> bool:
        """Check whether any scorable pattern exists (False means Zonk)."""
        return bool(self.find_patterns(faces))


class ZonkRules(PatternValidator):
    """Standard Zonk scoring table.

    - Single 1 = 100, single 5 = 50
    - Pair = 200 for 1s, otherwise face x 20
    - Two pair = 500
    - Three of a kind = 1000 for 1s, otherwise face x 100
    - Four of a kind = 2000 for 1s, otherwise face x 200
    - Full house = three of a kind + 250
    - Small straight (4 in a row) = 500, straight (5) = 1000, 1-6 = 1500
    - Three pairs = 1500, two triplets = both three-of-a-kind values

    Runs of three do not score.
    """

    def find_patterns(self, faces) -> List[PatternMatch]:
        faces = tuple(faces)
        counts = count_faces(faces)
        matches = []

        singles = [f for f in (1, 5) if counts[f] > 0]
        if singles:
            face = singles[0]
            matches.append(PatternMatch(PatternKind.SINGLE, 100 if face == 1 else 50, 1, (face,)))

        paired = sorted((f for f in FACES if counts[f] >= 2), key=pair_points, reverse=True)
        if paired:
            face = paired[0]
            matches.append(PatternMatch(PatternKind.PAIR, pair_points(face), 2, (face, face)))
        if len(paired) >= 2:
            a, b = paired[0], paired[1]
            matches.append(PatternMatch(PatternKind.TWO_PAIR, 500, 4, (a, a, b, b)))

        tripled = sorted((f for f in FACES if counts[f] >= 3), key=three_of_kind_points, reverse=True)
        if tripled:
            face = tripled[0]
            matches.append(PatternMatch(
                PatternKind.THREE_OF_KIND, three_of_kind_points(face), 3, (face,) * 3))

        quadded = sorted((f for f in FACES if counts[f] >= 4), key=four_of_kind_points, reverse=True)
        if quadded:
            face = quadded[0]
            matches.append(PatternMatch(
                PatternKind.FOUR_OF_KIND, four_of_kind_points(face), 4, (face,) * 4))

        if tripled:
            face = tripled[0]
            others = [f for f in paired if f != face]
            if others:
                pair_face = others[0]
                matches.append(PatternMatch(
                    PatternKind.FULL_HOUSE, three_of_kind_points(face) + 250, 5,
                    (face,) * 3 + (pair_face,) * 2))

        run_len, _ = longest_run(faces)
        if run_len >= 6:
            matches.append(PatternMatch(PatternKind.MAX_STRAIGHT, 1500, 6, tuple(range(1, 7))))
        if run_len >= 5:
            matches.append(PatternMatch(PatternKind.STRAIGHT, 1000, 5, _straight_faces(faces, 5)))
        if run_len >= 4:
            matches.append(PatternMatch(PatternKind.SMALL_STRAIGHT, 500, 4, _straight_faces(faces, 4)))

        if len(faces) == 6:
            if len(tripled) == 2:
                a, b = tripled
                matches.append(PatternMatch(
                    PatternKind.TWO_TRIPLETS, three_of_kind_points(a) + three_of_kind_points(b), 6,
                    (a,) * 3 + (b,) * 3))
            elif sorted(counts.values()) == [2, 2, 2]:
                matches.append(PatternMatch(
                    PatternKind.THREE_PAIRS, 1500, 6, tuple(sorted(faces))))

        return matches


DEFAULT_RULES = ZonkRules()
