#!/usr/bin/env python3
"""
Head-to-head evaluator for AI difficulty levels.

Example:
  PYTHONPATH=src python3 scripts/eval_difficulties.py \
    --challenger hard \
    --baseline medium \
    --games 200 \
    --budget 0.5
"""

from __future__ import annotations

import argparse
import math
import os
import sys
from dataclasses import replace
from typing import Optional

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from dominoduel.ai.agent import AIAgent
from dominoduel.ai.search import DEFAULT_SEARCH
from dominoduel.ai.selfplay import play_series


def elo_from_score(score: float) -> float:
    score = min(0.9999, max(0.0001, score))
    return -400.0 * math.log10((1.0 / score) - 1.0)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Evaluate one AI difficulty against another.")
    parser.add_argument("--challenger", default="hard", help="Challenger difficulty (default: hard).")
    parser.add_argument("--baseline", default="medium", help="Baseline difficulty (default: medium).")
    parser.add_argument("--games", type=int, default=100, help="Number of rounds (default: 100).")
    parser.add_argument(
        "--budget",
        type=float,
        default=DEFAULT_SEARCH.time_budget,
        help="Hard search time budget in seconds for both sides.",
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42).")
    args = parser.parse_args(argv)

    config = replace(DEFAULT_SEARCH, time_budget=args.budget)
    challenger = AIAgent(args.challenger, config=config, think_time=0.0, think_jitter=0.0, seed=args.seed)
    baseline = AIAgent(args.baseline, config=config, think_time=0.0, think_jitter=0.0, seed=args.seed + 1)

    series = play_series(challenger, baseline, games=args.games, seed=args.seed)
    wins = series.wins[f"first:{challenger.difficulty.value}"]
    losses = series.wins[f"second:{baseline.difficulty.value}"]
    draws = series.draws

    total = wins + losses + draws
    score = (wins + 0.5 * draws) / max(1, total)
    elo = elo_from_score(score)
    variance = score * (1.0 - score) / max(1, total)
    ci = 1.96 * math.sqrt(variance)
    elo_lo = elo_from_score(max(0.0001, score - ci))
    elo_hi = elo_from_score(min(0.9999, score + ci))

    print(f"{challenger.difficulty.value} vs {baseline.difficulty.value}")
    print(f"Rounds: {total}  Wins: {wins}  Losses: {losses}  Draws: {draws}")
    print(f"Score: {score:.4f}")
    print(f"Elo estimate: {elo:+.1f} (95% CI: {elo_lo:+.1f} .. {elo_hi:+.1f})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
