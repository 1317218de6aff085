"""Move selectors for the three difficulty levels.

``hard`` is a bounded lookahead over the mover's own future turns: the
opponent's hand and the draw pile are hidden, so replies are not modelled.
Each node is scored with the heuristic and credited with a fraction of the
best score reachable one ply deeper through the top few follow-ups.
"""
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from dominoduel.engine import Board, Move, Tile, list_legal_moves, remove_tile

from .heuristic import DEFAULT_WEIGHTS, HeuristicWeights, evaluate_move

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class SearchConfig:
    time_budget: float = 1.5  # seconds
    shallow_depth: int = 2
    deep_depth: int = 3
    pool_threshold: int = 5
    branch_cap: int = 3
    future_weight: float = 0.5
    win_bonus: float = 1000.0
    dead_end_penalty: float = 20.0
    weights: HeuristicWeights = DEFAULT_WEIGHTS


DEFAULT_SEARCH = SearchConfig()


@dataclass
class SearchResult:
    move: Optional[Move]
    score: float = float("-inf")
    depth: int = 0
    nodes: int = 0
    timed_out: bool = False


def search_depth(pool_size: int, config: SearchConfig = DEFAULT_SEARCH) -> int:
    """Plies to look ahead; deeper once few draws can still change the hand."""
    return config.shallow_depth if pool_size > config.pool_threshold else config.deep_depth


def select_easy(moves: Sequence[Move], rng: Optional[random.Random] = None) -> Optional[Move]:
    if not moves:
        return None
    return (rng or random).choice(list(moves))


def select_medium(
    board: Board,
    hand: Sequence[Tile],
    moves: Sequence[Move],
    weights: HeuristicWeights = DEFAULT_WEIGHTS,
    rng: Optional[random.Random] = None,
) -> Optional[Move]:
    best_move: Optional[Move] = None
    best_score = float("-inf")
    for move in moves:
        score = evaluate_move(board, hand, move.tile, move.side, weights)
        if score > best_score:
            best_score = score
            best_move = move
    return best_move or select_easy(moves, rng)


class _Deadline:
    def __init__(self, budget: float, clock: Clock) -> None:
        self.clock = clock
        self.expires_at = clock() + budget
        self.hit = False

    def expired(self) -> bool:
        if not self.hit and self.clock() > self.expires_at:
            self.hit = True
        return self.hit


class _Lookahead:
    def __init__(self, config: SearchConfig, deadline: _Deadline) -> None:
        self.config = config
        self.deadline = deadline
        self.nodes = 0

    def score(self, board: Board, hand: Sequence[Tile], move: Move, plies_left: int) -> float:
        """Score ``move`` plus the discounted best continuation ``plies_left`` deep."""
        self.nodes += 1
        config = self.config
        value = evaluate_move(board, hand, move.tile, move.side, config.weights)
        remaining = remove_tile(hand, move.tile)
        if not remaining:
            return value + config.win_bonus
        if plies_left <= 0:
            return value

        next_board = board.place(move.tile, move.side)
        follow_ups = list_legal_moves(next_board, remaining)
        if not follow_ups:
            return value - config.dead_end_penalty

        ranked = rank_moves(next_board, remaining, follow_ups, config.weights)[: config.branch_cap]

        best_future: Optional[float] = None
        for follow_up in ranked:
            if self.deadline.expired():
                break
            future = self.score(next_board, remaining, follow_up, plies_left - 1)
            if best_future is None or future > best_future:
                best_future = future
        if best_future is not None:
            value += config.future_weight * best_future
        return value


def select_hard(
    board: Board,
    hand: Sequence[Tile],
    moves: Sequence[Move],
    pool_size: int,
    config: SearchConfig = DEFAULT_SEARCH,
    clock: Clock = time.monotonic,
) -> SearchResult:
    """Pick the move with the best lookahead score within ``config.time_budget``.

    When the budget runs out the best move scored so far is returned, or the
    candidate about to be scored if none finished, so a non-empty ``moves``
    always yields a legal move.
    """
    depth = search_depth(pool_size, config)
    result = SearchResult(move=None, depth=depth)
    if not moves:
        return result

    deadline = _Deadline(config.time_budget, clock)
    lookahead = _Lookahead(config, deadline)
    for move in moves:
        if deadline.expired():
            result.timed_out = True
            if result.move is None:
                result.move = move
            break
        score = lookahead.score(board, hand, move, depth - 1)
        if score > result.score:
            result.score = score
            result.move = move

    result.nodes = lookahead.nodes
    result.timed_out = result.timed_out or deadline.hit
    if result.timed_out:
        logger.debug(
            "hard search hit %.2fs budget after %d nodes; keeping %s",
            config.time_budget,
            result.nodes,
            result.move.label,
        )
    else:
        logger.debug(
            "hard search depth=%d nodes=%d best=%s score=%.2f",
            depth,
            result.nodes,
            result.move.label,
            result.score,
        )
    return result


def rank_moves(
    board: Board,
    hand: Sequence[Tile],
    moves: Sequence[Move],
    weights: HeuristicWeights = DEFAULT_WEIGHTS,
) -> List[Move]:
    """Moves ordered best first by immediate heuristic score (stable on ties)."""
    return sorted(moves, key=lambda m: evaluate_move(board, hand, m.tile, m.side, weights), reverse=True)
