#!/usr/bin/env python3
"""
Zonk AI Benchmark — Run N seeded opponent turns per preset and print score distributions.

Usage: python ai_benchmark.py [--turns N] [--preset NAME]
       python ai_benchmark.py --verbose --turns 500 --opponent-score 1000 --rival-score 2500
       python ai_benchmark.py --csv --turns 2000
"""
from dataclasses import dataclass, field
from typing import List
import argparse
import logging
import random
import statistics
import time

from ai import TurnContext, run_turn
from ai_config import PRESETS, AIConfiguration, BehaviorMode, ConfigurationError, load_config


@dataclass
class TurnStats:
    """Summary of a batch of simulated turns."""
    scores: List[int] = field(default_factory=list)
    iterations: List[int] = field(default_factory=list)
    zonks: int = 0
    hot_streaks: int = 0
    mode: str = ""
    cap: int = 0
    elapsed: float = 0.0

    @property
    def turns(self) -> int:
        return len(self.scores)

    @property
    def avg(self) -> float:
        return sum(self.scores) / len(self.scores) if self.scores else 0.0

    @property
    def zonk_rate(self) -> float:
        return self.zonks / len(self.scores) if self.scores else 0.0

    @property
    def mean_iterations(self) -> float:
        return statistics.mean(self.iterations) if self.iterations else 0.0


def simulate_turns(config: AIConfiguration, num_turns: int, start_seed: int = 0,
                   opponent_score: int = 0, rival_score: int = 0, completed_rounds: int = 0,
                   previous_mode: BehaviorMode = BehaviorMode.PASSIVE) -> TurnStats:
    """Play num_turns independent turns from the same game state.

    Turn i uses random.Random(start_seed + i), so a batch is reproducible.
    """
    context = TurnContext(
        opponent_score=opponent_score,
        rival_score=rival_score,
        completed_rounds=completed_rounds,
        config=config,
        previous_mode=previous_mode,
    )
    stats = TurnStats()
    t0 = time.perf_counter()
    for seed in range(start_seed, start_seed + num_turns):
        result = run_turn(context, rng=random.Random(seed))
        stats.scores.append(result.final_score)
        stats.iterations.append(result.iterations)
        if result.zonked:
            stats.zonks += 1
        stats.hot_streaks += sum(1 for e in result.events if e.event_type == "hot_streak")
        stats.mode = result.mode.value
        stats.cap = result.cap
    stats.elapsed = time.perf_counter() - t0
    return stats


def _percentiles(scores):
    sorted_scores = sorted(scores)
    n = len(sorted_scores)
    return sorted_scores[n // 4], sorted_scores[(3 * n) // 4]


def print_results(name, stats, verbose=False):
    """Print formatted benchmark results.

    With verbose=True, adds stdev, median, percentiles and iteration counts.
    """
    if not stats.scores:
        print(f"  {name:10s}  no turns played")
        return
    per_turn = stats.elapsed / stats.turns * 1000  # ms per turn
    print(f"  {name:10s}  mode={stats.mode:10s} cap={stats.cap:4d}  "
          f"avg={stats.avg:7.1f}  max={max(stats.scores):5d}  "
          f"zonk={stats.zonk_rate:6.1%}  "
          f"({stats.turns} turns in {stats.elapsed:.2f}s, {per_turn:.2f}ms/turn)")

    if verbose:
        stdev = statistics.stdev(stats.scores) if stats.turns >= 2 else 0.0
        median = statistics.median(stats.scores)
        p25, p75 = _percentiles(stats.scores)
        print(f"  {'':10s}  stdev={stdev:6.1f}  median={median:5.0f}  "
              f"p25={p25:4d}  p75={p75:4d}  iterations={stats.mean_iterations:.2f}  "
              f"hot_streaks={stats.hot_streaks}")


def print_csv_header():
    """Print CSV header row."""
    print("preset,mode,cap,turns,avg,stdev,median,max,p25,p75,zonk_rate,mean_iterations,elapsed_s")


def print_csv_row(name, stats):
    """Print one CSV data row."""
    if not stats.scores:
        print(f"{name},{stats.mode},{stats.cap},0,,,,,,,,,{stats.elapsed:.2f}")
        return
    stdev = statistics.stdev(stats.scores) if stats.turns >= 2 else 0.0
    median = statistics.median(stats.scores)
    p25, p75 = _percentiles(stats.scores)
    print(f"{name},{stats.mode},{stats.cap},{stats.turns},{stats.avg:.1f},{stdev:.1f},"
          f"{median:.0f},{max(stats.scores)},{p25},{p75},{stats.zonk_rate:.3f},"
          f"{stats.mean_iterations:.2f},{stats.elapsed:.2f}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Zonk AI Benchmark")
    parser.add_argument("--turns", type=int, default=1000,
                        help="Number of turns per preset (default: 1000)")
    parser.add_argument("--preset", choices=sorted(PRESETS),
                        help="Run only a single difficulty preset (default: all)")
    parser.add_argument("--config", metavar="PATH",
                        help="JSON configuration file layered over the preset")
    parser.add_argument("--opponent-score", type=int, default=0,
                        help="Opponent's banked score at turn start (default: 0)")
    parser.add_argument("--rival-score", type=int, default=0,
                        help="Human player's banked score (default: 0)")
    parser.add_argument("--rounds", type=int, default=0,
                        help="Completed rounds, shrinks the mode buffer (default: 0)")
    parser.add_argument("--verbose", action="store_true",
                        help="Show extra statistics and debug logging")
    parser.add_argument("--csv", action="store_true",
                        help="Output results as CSV")
    args = parser.parse_args(argv)
    if args.turns < 1:
        parser.error("--turns must be at least 1")

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s %(message)s")

    names = [args.preset] if args.preset else list(PRESETS)
    try:
        configs = [(name, load_config(args.config, preset=name) if args.config else PRESETS[name])
                   for name in names]
    except ConfigurationError as e:
        parser.error(str(e))

    def run(config):
        return simulate_turns(config, args.turns,
                              opponent_score=args.opponent_score,
                              rival_score=args.rival_score,
                              completed_rounds=args.rounds)

    if args.csv:
        print_csv_header()
        for name, config in configs:
            print_csv_row(name, run(config))
    else:
        print(f"Zonk AI Benchmark — {args.turns} turns per preset "
              f"(scores {args.opponent_score} vs {args.rival_score}, round {args.rounds})")
        print("=" * 100)

        for name, config in configs:
            print_results(name, run(config), verbose=args.verbose)

        print("=" * 100)


if __name__ == "__main__":
    main()
