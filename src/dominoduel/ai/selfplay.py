from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from dominoduel.game import (
    DRAW,
    GameState,
    Outcome,
    Seat,
    deal,
    draw_tile,
    pass_turn,
    play_tile,
)

from .agent import AIAgent

logger = logging.getLogger(__name__)


@dataclass
class SelfPlayResult:
    winner: Optional[Outcome]
    points: int
    plies: int
    end_reason: str


@dataclass
class SeriesResult:
    games: int = 0
    wins: Dict[str, int] = field(default_factory=dict)
    points: Dict[str, int] = field(default_factory=dict)
    draws: int = 0
    results: List[SelfPlayResult] = field(default_factory=list)


def _agent_turn(state: GameState, seat: Seat, agent: AIAgent) -> GameState:
    move = agent.select_move(state.board, state.hand(seat), len(state.stock))
    if move is not None:
        return play_tile(state, seat, move)
    if state.stock:
        next_state, _drawn = draw_tile(state, seat)
        return next_state
    return pass_turn(state, seat)


def self_play_game(
    first: AIAgent,
    second: AIAgent,
    seed: Optional[int] = None,
    max_plies: int = 200,
) -> SelfPlayResult:
    """Play one round with ``first`` in the player seat and ``second`` in the AI seat.

    Agents choose synchronously; thinking delays are not applied.
    """
    agents = {Seat.PLAYER: first, Seat.AI: second}
    state = deal(seed=seed)
    plies = 0
    while state.active and plies < max_plies:
        state = _agent_turn(state, state.turn, agents[state.turn])
        plies += 1

    if state.active:
        return SelfPlayResult(winner=None, points=0, plies=plies, end_reason="max_plies")
    points = state.scores[state.winner] if isinstance(state.winner, Seat) else 0
    return SelfPlayResult(
        winner=state.winner,
        points=points,
        plies=plies,
        end_reason=state.summary or "terminal",
    )


def play_series(
    first: AIAgent,
    second: AIAgent,
    games: int = 20,
    seed: Optional[int] = None,
) -> SeriesResult:
    """Alternate seats across ``games`` rounds and tally wins per difficulty label."""
    labels = (f"first:{first.difficulty.value}", f"second:{second.difficulty.value}")
    series = SeriesResult(
        wins={label: 0 for label in labels},
        points={label: 0 for label in labels},
    )
    for game_idx in range(games):
        game_seed = None if seed is None else seed + game_idx
        swapped = game_idx % 2 == 1
        order = (1, 0) if swapped else (0, 1)
        seated = (second, first) if swapped else (first, second)
        result = self_play_game(seated[0], seated[1], seed=game_seed)
        series.games += 1
        series.results.append(result)
        if result.winner is None or result.winner == DRAW:
            series.draws += 1
            continue
        label = labels[order[0] if result.winner is Seat.PLAYER else order[1]]
        series.wins[label] += 1
        series.points[label] += result.points
    logger.info("Series finished: %s", series.wins)
    return series
