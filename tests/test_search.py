from __future__ import annotations

import random
from dataclasses import replace
from typing import Iterator, Tuple

import pytest

from dominoduel.ai.heuristic import evaluate_move
from dominoduel.ai.search import (
    DEFAULT_SEARCH,
    search_depth,
    select_easy,
    select_hard,
    select_medium,
)
from dominoduel.engine import Board, Move, Side, Tile, list_legal_moves
from dominoduel.game import Seat, deal


def board_with_ends(left: int, right: int) -> Board:
    return Board().place(Tile(left, right), Side.LEFT)


class SteppingClock:
    """Advances by ``step`` seconds on every reading."""

    def __init__(self, step: float) -> None:
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


def sample_positions(count: int = 12) -> Iterator[Tuple[Board, Tuple[Tile, ...], int]]:
    for seed in range(count):
        state = deal(seed=seed)
        board = state.board
        # Lay a few tiles from the stock so positions are not all empty boards.
        for tile in state.stock[:6]:
            for side in (Side.LEFT, Side.RIGHT):
                if board.can_place(tile, side):
                    board = board.place(tile, side)
                    break
        hand = state.hand(Seat.AI)
        yield board, hand, len(state.stock)


def test_easy_picks_a_legal_move() -> None:
    rng = random.Random(7)
    for board, hand, _pool in sample_positions():
        moves = list_legal_moves(board, hand)
        choice = select_easy(moves, rng)
        if moves:
            assert choice in moves
        else:
            assert choice is None


def test_medium_picks_a_maximal_score() -> None:
    for board, hand, _pool in sample_positions():
        moves = list_legal_moves(board, hand)
        choice = select_medium(board, hand, moves)
        if not moves:
            assert choice is None
            continue
        best = evaluate_move(board, hand, choice.tile, choice.side)
        for move in moves:
            assert best >= evaluate_move(board, hand, move.tile, move.side)


def test_medium_breaks_ties_by_enumeration_order() -> None:
    board = board_with_ends(3, 3)
    hand = (Tile(3, 5),)
    moves = list_legal_moves(board, hand)
    assert select_medium(board, hand, moves) == Move(Tile(3, 5), Side.LEFT)


def test_medium_prefers_double_on_empty_board() -> None:
    hand = (Tile(1, 1), Tile(2, 5))
    moves = list_legal_moves(Board(), hand)
    assert select_medium(Board(), hand, moves) == Move(Tile(1, 1), Side.LEFT)


def test_search_depth_deepens_when_pool_is_small() -> None:
    assert search_depth(14) == DEFAULT_SEARCH.shallow_depth == 2
    assert search_depth(6) == 2
    assert search_depth(5) == DEFAULT_SEARCH.deep_depth == 3
    assert search_depth(0) == 3


def test_hard_returns_legal_moves() -> None:
    for board, hand, pool in sample_positions():
        moves = list_legal_moves(board, hand)
        result = select_hard(board, hand, moves, pool)
        if moves:
            assert result.move in moves
            assert result.nodes >= len(moves)
        else:
            assert result.move is None


def test_hard_prefers_the_winning_move() -> None:
    board = board_with_ends(3, 6)
    last_tile = (Tile(6, 2),)
    result = select_hard(board, last_tile, list_legal_moves(board, last_tile), pool_size=0)
    assert result.move == Move(Tile(6, 2), Side.RIGHT)
    assert result.score >= DEFAULT_SEARCH.win_bonus


def test_win_bonus_dominates_lookahead_scores() -> None:
    board = board_with_ends(3, 6)
    hand = (Tile(3, 6),)
    config = replace(DEFAULT_SEARCH, win_bonus=1000.0)
    result = select_hard(board, hand, list_legal_moves(board, hand), pool_size=10, config=config)
    assert result.move.tile == Tile(3, 6)
    assert result.score > 1000.0


def test_hard_prefers_the_line_that_keeps_playing() -> None:
    board = board_with_ends(5, 0)
    # (0,2) opens a run of 2s; (5,6) leaves the 2s waiting on a single tile.
    hand = (Tile(5, 6), Tile(0, 2), Tile(2, 2), Tile(2, 1))
    moves = list_legal_moves(board, hand)
    result = select_hard(board, hand, moves, pool_size=0)
    assert result.move in moves
    assert result.move.tile == Tile(0, 2)
    assert not result.timed_out


def test_hard_returns_a_candidate_when_budget_is_already_spent() -> None:
    board = board_with_ends(3, 6)
    hand = (Tile(3, 1), Tile(6, 4), Tile(1, 4))
    moves = list_legal_moves(board, hand)
    result = select_hard(board, hand, moves, pool_size=10, clock=SteppingClock(step=10.0))
    assert result.timed_out
    assert result.move == moves[0]
    assert result.nodes == 0


def test_hard_keeps_best_so_far_on_timeout() -> None:
    board = board_with_ends(3, 6)
    hand = (Tile(3, 1), Tile(6, 6), Tile(1, 4), Tile(6, 2))
    moves = list_legal_moves(board, hand)
    config = replace(DEFAULT_SEARCH, time_budget=4.5)
    # Every clock reading costs a second, so the search stops part way.
    result = select_hard(board, hand, moves, pool_size=10, config=config, clock=SteppingClock(step=1.0))
    assert result.timed_out
    assert result.move in moves


def test_hard_with_no_moves_returns_none() -> None:
    result = select_hard(board_with_ends(3, 6), (Tile(1, 2),), [], pool_size=3)
    assert result.move is None
    assert not result.timed_out


@pytest.mark.parametrize("pool", [0, 14])
def test_hard_does_not_mutate_inputs(pool: int) -> None:
    board = board_with_ends(3, 6)
    hand = (Tile(3, 1), Tile(6, 4), Tile(1, 4), Tile(4, 4))
    board_before = (board.tiles, board.ends())
    select_hard(board, hand, list_legal_moves(board, hand), pool)
    assert (board.tiles, board.ends()) == board_before
    assert hand == (Tile(3, 1), Tile(6, 4), Tile(1, 4), Tile(4, 4))
