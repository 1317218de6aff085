from __future__ import annotations

import asyncio
import logging
import os
import random
from dataclasses import replace
from enum import Enum
from typing import Dict, Optional, Sequence, Union

from dominoduel.engine import Board, Move, Tile, list_legal_moves

from .search import DEFAULT_SEARCH, SearchConfig, select_easy, select_hard, select_medium

logger = logging.getLogger(__name__)


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


DESCRIPTIONS: Dict[Difficulty, str] = {
    Difficulty.EASY: "Plays a random legal tile.",
    Difficulty.MEDIUM: "Plays the tile with the best heuristic score.",
    Difficulty.HARD: "Looks ahead over its own future turns within a time budget.",
}


def parse_difficulty(value: Union[str, Difficulty]) -> Difficulty:
    try:
        return Difficulty(str(value.value if isinstance(value, Difficulty) else value).lower())
    except ValueError:
        valid = ", ".join(d.value for d in Difficulty)
        raise ValueError(f"Unknown difficulty '{value}'. Valid: {valid}") from None


def select_move(
    board: Board,
    hand: Sequence[Tile],
    difficulty: Union[str, Difficulty],
    pool_size: int,
    config: SearchConfig = DEFAULT_SEARCH,
    rng: Optional[random.Random] = None,
) -> Optional[Move]:
    """Choose a move for ``hand``; ``None`` means nothing is playable."""
    difficulty = parse_difficulty(difficulty)
    moves = list_legal_moves(board, hand)
    if not moves:
        return None
    if difficulty is Difficulty.EASY:
        return select_easy(moves, rng)
    if difficulty is Difficulty.MEDIUM:
        return select_medium(board, hand, moves, config.weights, rng)
    return select_hard(board, hand, moves, pool_size, config).move


class AIAgent:
    """Computer opponent: holds the difficulty and the thinking delay."""

    def __init__(
        self,
        difficulty: Union[str, Difficulty] = Difficulty.MEDIUM,
        config: SearchConfig = DEFAULT_SEARCH,
        think_time: float = 0.8,
        think_jitter: float = 0.2,
        seed: Optional[int] = None,
    ) -> None:
        self.difficulty = parse_difficulty(difficulty)
        self.config = config
        self.think_time = max(0.0, think_time)
        self.think_jitter = max(0.0, think_jitter)
        self.rng = random.Random(seed)

    @classmethod
    def from_env(cls) -> "AIAgent":
        config = DEFAULT_SEARCH
        budget = os.getenv("DOMINO_SEARCH_BUDGET")
        if budget:
            config = replace(config, time_budget=float(budget))
        return cls(
            difficulty=os.getenv("DOMINO_DIFFICULTY", Difficulty.MEDIUM.value),
            config=config,
            think_time=float(os.getenv("DOMINO_THINK_SECONDS", "0.8")),
            think_jitter=float(os.getenv("DOMINO_THINK_JITTER", "0.2")),
        )

    def set_difficulty(self, difficulty: Union[str, Difficulty]) -> Difficulty:
        self.difficulty = parse_difficulty(difficulty)
        logger.info("AI difficulty set to %s", self.difficulty.value)
        return self.difficulty

    def get_difficulty(self) -> Difficulty:
        return self.difficulty

    def describe(self) -> Dict[str, str]:
        return {
            "difficulty": self.difficulty.value,
            "description": DESCRIPTIONS[self.difficulty],
        }

    def select_move(self, board: Board, hand: Sequence[Tile], pool_size: int) -> Optional[Move]:
        return select_move(board, hand, self.difficulty, pool_size, self.config, self.rng)

    def thinking_delay(self) -> float:
        jitter = self.rng.uniform(-self.think_jitter, self.think_jitter)
        return max(0.0, self.think_time + jitter)

    async def think(self, board: Board, hand: Sequence[Tile], pool_size: int) -> Optional[Move]:
        """Pause for a human-like moment, then choose.

        The pause is an ``asyncio.sleep`` so other tasks keep running and the
        caller can cancel it. The choice is made afterwards in a worker thread,
        so a hard search does not hold up the event loop.
        """
        delay = self.thinking_delay()
        if delay > 0:
            await asyncio.sleep(delay)
        return await asyncio.to_thread(self.select_move, board, hand, pool_size)
