"""Turn events for the Zonk opponent, and a log that keeps them across turns.

Pure Python, no GUI dependency. run_turn() returns these events in order;
TurnLog collects them for post-game replay and analysis.
"""
from __future__ import annotations

from dataclasses import dataclass

from ai_config import BehaviorMode
from zonk_engine import PatternKind


@dataclass(frozen=True)
class TurnEvent:
    """Base class for everything a turn reports to its host."""

    event_type = "event"

    def to_dict(self) -> dict:
        """JSON-friendly representation with an "event" discriminator."""
        data = {"event": self.event_type}
        for key, value in self.__dict__.items():
            if isinstance(value, (BehaviorMode, PatternKind)):
                value = value.value
            elif isinstance(value, tuple):
                value = list(value)
            data[key] = value
        return data


@dataclass(frozen=True)
class TurnStarted(TurnEvent):
    mode: BehaviorMode
    cap: int
    event_type = "turn_started"


@dataclass(frozen=True)
class DiceRolled(TurnEvent):
    faces: tuple[int, ...]
    event_type = "dice_rolled"


@dataclass(frozen=True)
class PatternSelected(TurnEvent):
    kind: PatternKind
    points: int
    dice_cost: int
    faces: tuple[int, ...] = ()
    event_type = "pattern_selected"


@dataclass(frozen=True)
class HotStreak(TurnEvent):
    """All dice banked; a fresh full set is drawn without a stop check."""
    event_type = "hot_streak"


@dataclass(frozen=True)
class DecisionMade(TurnEvent):
    continue_turn: bool
    reason: str
    momentum_chance: float
    cap_chance: float
    combined_chance: float
    event_type = "decision_made"


@dataclass(frozen=True)
class Zonked(TurnEvent):
    event_type = "zonked"


@dataclass(frozen=True)
class TurnCompleted(TurnEvent):
    final_score: int
    iterations: int
    success_count: int
    event_type = "turn_completed"


@dataclass
class LogEntry:
    """A single logged turn event."""
    turn: int            # host's turn number
    index: int           # position within the turn
    event: TurnEvent


class TurnLog:
    """Accumulates the events of many opponent turns."""

    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    def record(self, turn: int, result) -> None:
        """Append every event of a TurnResult under the given turn number."""
        for index, event in enumerate(result.events):
            self.entries.append(LogEntry(turn=turn, index=index, event=event))

    def get_turn_events(self, turn: int) -> list[TurnEvent]:
        """Return the events of one turn, in order."""
        return [e.event for e in self.entries if e.turn == turn]

    def get_events_of_type(self, event_cls) -> list[TurnEvent]:
        """Return all events of a given class across turns."""
        return [e.event for e in self.entries if isinstance(e.event, event_cls)]

    def turns(self) -> list[int]:
        """Turn numbers present in the log, in first-seen order."""
        seen = []
        for e in self.entries:
            if e.turn not in seen:
                seen.append(e.turn)
        return seen

    def clear(self) -> None:
        """Remove all entries."""
        self.entries = []
