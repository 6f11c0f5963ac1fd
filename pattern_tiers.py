"""
Pattern Tiers — Strategic ranking of scorable patterns and threshold search.

The rule table (which patterns exist, their points and dice cost) belongs to
the validator in zonk_engine. This module only ranks pattern kinds into tiers
and answers "what is the best pattern at or above this tier?".

Constants:
    TIERS            — PatternKind → tier (1 = rarest/best, 5 = singles)
    MAX_TIER         — lowest-priority tier number
    TIER_PERCENTS    — (minimum threshold, tier) pairs, best tier first

Functions:
    tier_of(kind)                          — tier lookup
    threshold_percent(mode, dice, config)  — threshold fraction for this draw
    percent_to_tier(percent)               — fraction → deepest accepted tier
    threshold_tier(mode, dice, config)     — both of the above
    is_well_formed(match, faces)           — validator output sanity check
    valid_candidates / best_valid_pattern / has_any_pattern
                                           — guarded validator calls
    search_above_threshold(...)            — first candidate within the tier limit
"""
import logging
from collections import Counter

from zonk_engine import PatternKind, PatternMatch

logger = logging.getLogger(__name__)

# ── TIERS: fixed strategic rank per pattern kind ─────────────────────────────

TIERS = {
    PatternKind.MAX_STRAIGHT: 1,
    PatternKind.STRAIGHT: 1,
    PatternKind.THREE_PAIRS: 1,
    PatternKind.TWO_TRIPLETS: 1,
    PatternKind.FOUR_OF_KIND: 2,
    PatternKind.SMALL_STRAIGHT: 2,
    PatternKind.FULL_HOUSE: 2,
    PatternKind.THREE_OF_KIND: 3,
    PatternKind.TWO_PAIR: 3,
    PatternKind.PAIR: 4,
    PatternKind.SINGLE: 5,
}

MAX_TIER = 5


def tier_of(kind):
    """Return the tier (1..5) of a pattern kind.

    Raises:
        KeyError: for a kind the tier table does not know
    """
    return TIERS[kind]


# ── Threshold percent → tier ────────────────────────────────────────────────

# Same table for both modes. A threshold at or above the listed fraction
# accepts tiers up to and including the paired tier.
TIER_PERCENTS = (
    (0.80, 1),
    (0.60, 2),
    (0.40, 3),
    (0.20, 4),
)


def threshold_percent(mode, dice_count, config):
    """Threshold fraction for a draw of dice_count dice.

    Starts at the mode's initial threshold with a full set of dice and drops
    by the mode's reduction for every die fewer, floored at
    config.minimum_threshold.
    """
    start, reduction = config.threshold_start(mode)
    missing = max(config.max_dice - dice_count, 0)
    percent = start - missing * reduction
    # Rounded so 0.8 - 0.2 lands on 0.6 rather than 0.6000000000000001 or below
    return round(max(percent, config.minimum_threshold), 6)


def percent_to_tier(percent):
    """Map a threshold fraction to the deepest tier it accepts."""
    for floor, tier in TIER_PERCENTS:
        if percent >= floor:
            return tier
    return MAX_TIER


def threshold_tier(mode, dice_count, config):
    """Deepest tier the given mode accepts for a draw of dice_count dice."""
    return percent_to_tier(threshold_percent(mode, dice_count, config))


# ── Candidate search ────────────────────────────────────────────────────────

def is_well_formed(match, faces):
    """Check validator output before the opponent relies on it.

    A match is usable only if it is a PatternMatch of a known kind, with
    integer non-negative points, a dice cost between 1 and len(faces), and
    exactly dice_cost consumed faces that are all present in the hand.
    """
    if not isinstance(match, PatternMatch):
        return False
    if match.kind not in TIERS:
        return False
    if isinstance(match.points, bool) or not isinstance(match.points, int) or match.points < 0:
        return False
    if isinstance(match.dice_cost, bool) or not isinstance(match.dice_cost, int):
        return False
    if not 1 <= match.dice_cost <= len(faces):
        return False
    if not isinstance(match.faces, tuple) or len(match.faces) != match.dice_cost:
        return False
    if not all(isinstance(f, int) and not isinstance(f, bool) for f in match.faces):
        return False
    return not Counter(match.faces) - Counter(faces)


def valid_candidates(faces, validator):
    """Return the validator's candidates with malformed entries dropped.

    A validator that raises, or returns something other than a list or
    tuple, yields no candidates.
    """
    try:
        matches = validator.find_patterns(faces)
    except Exception:
        logger.warning("Pattern validator failed on %s; treating as no pattern",
                       list(faces), exc_info=True)
        return []
    if not isinstance(matches, (list, tuple)):
        logger.warning("Pattern validator returned %r for dice %s; treating as no pattern",
                       matches, list(faces))
        return []
    good = []
    for match in matches:
        if is_well_formed(match, faces):
            good.append(match)
        else:
            logger.warning("Ignoring malformed pattern %r for dice %s", match, list(faces))
    return good


def best_valid_pattern(faces, validator):
    """The validator's single best pattern, or None if it fails or is malformed."""
    try:
        match = validator.best_pattern(faces)
    except Exception:
        logger.warning("best_pattern failed on %s; treating as no pattern",
                       list(faces), exc_info=True)
        return None
    if match is None:
        return None
    if not is_well_formed(match, faces):
        logger.warning("Ignoring malformed best pattern %r for dice %s", match, list(faces))
        return None
    return match


def has_any_pattern(faces, validator):
    """Zonk check through the validator; a failing validator means no pattern."""
    try:
        return bool(validator.any_pattern(faces))
    except Exception:
        logger.warning("any_pattern failed on %s; treating as no pattern",
                       list(faces), exc_info=True)
        return False


def rank_key(match):
    """Sort key: best tier first, then more points, then fewer dice."""
    return (tier_of(match.kind), -match.points, match.dice_cost)


def search_above_threshold(faces, max_tier, validator, candidates=None):
    """Scan candidates from tier 1 downward and return the first within max_tier.

    Args:
        faces: Die values in hand
        max_tier: Deepest tier accepted (1 = only the best tier)
        validator: PatternValidator supplying the candidates
        candidates: Pre-filtered candidates (skips a second validator call)

    Returns:
        PatternMatch, or None if no candidate is at or above the threshold
    """
    if candidates is None:
        candidates = valid_candidates(faces, validator)
    for match in sorted(candidates, key=rank_key):
        if tier_of(match.kind) <= max_tier:
            return match
    return None

