"""Round flow for a human-vs-AI match: dealing, turns, drawing and scoring.

Every action returns a new ``GameState``; the previous state is left as it
was. Each round carries a ``round_id`` so a decision computed for one round
can be recognised as stale once a new round has been dealt.
"""
from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from .engine import (
    Board,
    Hand,
    Move,
    Tile,
    full_set,
    hand_pips,
    is_blocked,
    is_locked,
    legal_moves,
    remove_tile,
    serialize_board,
    serialize_tile,
)

logger = logging.getLogger(__name__)

TILES_PER_HAND = 7
DRAW = "draw"


class Seat(str, Enum):
    PLAYER = "player"
    AI = "ai"

    def opponent(self) -> "Seat":
        return Seat.AI if self is Seat.PLAYER else Seat.PLAYER


class StartRule(str, Enum):
    """Who leads a freshly dealt round."""

    DOUBLE = "double"
    RANDOM = "random"
    PLAYER = "player"
    AI = "ai"


class GameRuleError(ValueError):
    """The requested action is not allowed in the current state."""


class StaleRoundError(GameRuleError):
    """An action was issued for a round that is no longer being played."""


Outcome = Union[Seat, str]  # a seat, or DRAW


@dataclass(frozen=True)
class GameState:
    board: Board
    hands: Dict[Seat, Hand]
    stock: Tuple[Tile, ...]
    turn: Seat
    round_id: str
    round_number: int = 1
    winner: Optional[Outcome] = None
    summary: Optional[str] = None
    scores: Dict[Seat, int] = field(default_factory=lambda: {Seat.PLAYER: 0, Seat.AI: 0})
    wins: Dict[Seat, int] = field(default_factory=lambda: {Seat.PLAYER: 0, Seat.AI: 0})
    history: Tuple[str, ...] = ()

    @property
    def active(self) -> bool:
        return self.winner is None

    def hand(self, seat: Seat) -> Hand:
        return self.hands[seat]


def _new_round_id() -> str:
    return uuid.uuid4().hex[:12]


def _highest_double(hand: Hand) -> int:
    return max((tile.a for tile in hand if tile.is_double), default=-1)


def deal(
    seed: Optional[int] = None,
    round_number: int = 1,
    scores: Optional[Dict[Seat, int]] = None,
    wins: Optional[Dict[Seat, int]] = None,
    tiles_per_hand: int = TILES_PER_HAND,
    starting_player: Union[str, StartRule] = StartRule.DOUBLE,
) -> GameState:
    """Shuffle a full set and deal a fresh round.

    With ``StartRule.DOUBLE`` the holder of the highest double leads; the
    player leads on a tie or when neither hand holds a double. ``RANDOM``
    tosses a coin from the same seeded generator; ``PLAYER`` and ``AI`` fix
    the leader.
    """
    if not 1 <= tiles_per_hand <= len(full_set()) // 2:
        raise ValueError(f"Invalid tiles_per_hand: {tiles_per_hand}")
    rule = StartRule(starting_player)
    rng = random.Random(seed)
    tiles = list(full_set())
    rng.shuffle(tiles)
    player_hand = tuple(tiles[:tiles_per_hand])
    ai_hand = tuple(tiles[tiles_per_hand : tiles_per_hand * 2])
    stock = tuple(tiles[tiles_per_hand * 2 :])

    if rule is StartRule.DOUBLE:
        turn = Seat.AI if _highest_double(ai_hand) > _highest_double(player_hand) else Seat.PLAYER
    elif rule is StartRule.RANDOM:
        turn = rng.choice((Seat.PLAYER, Seat.AI))
    else:
        turn = Seat(rule.value)
    state = GameState(
        board=Board(),
        hands={Seat.PLAYER: player_hand, Seat.AI: ai_hand},
        stock=stock,
        turn=turn,
        round_id=_new_round_id(),
        round_number=round_number,
        scores=dict(scores) if scores else {Seat.PLAYER: 0, Seat.AI: 0},
        wins=dict(wins) if wins else {Seat.PLAYER: 0, Seat.AI: 0},
        history=(f"round {round_number} dealt, {turn.value} leads",),
    )
    logger.info("Dealt round %d (%s); %s leads", round_number, state.round_id, turn.value)
    return state


def new_game(
    seed: Optional[int] = None,
    tiles_per_hand: int = TILES_PER_HAND,
    starting_player: Union[str, StartRule] = StartRule.DOUBLE,
) -> GameState:
    return deal(seed=seed, tiles_per_hand=tiles_per_hand, starting_player=starting_player)


def next_round(
    state: GameState,
    seed: Optional[int] = None,
    starting_player: Union[str, StartRule] = StartRule.DOUBLE,
) -> GameState:
    """Deal the next round, carrying scores and wins over."""
    return deal(
        seed=seed,
        round_number=state.round_number + 1,
        scores=state.scores,
        wins=state.wins,
        tiles_per_hand=TILES_PER_HAND,
        starting_player=starting_player,
    )


def _require_turn(state: GameState, seat: Seat, round_id: Optional[str]) -> None:
    if round_id is not None and round_id != state.round_id:
        raise StaleRoundError(f"Round {round_id} is over; current round is {state.round_id}")
    if not state.active:
        raise GameRuleError("Round already finished")
    if state.turn is not seat:
        raise GameRuleError(f"It is not {seat.value}'s turn")


def _with_hand(state: GameState, seat: Seat, hand: Hand) -> Dict[Seat, Hand]:
    hands = dict(state.hands)
    hands[seat] = hand
    return hands


def _finish(state: GameState, winner: Outcome, points: int, summary: str) -> GameState:
    scores = dict(state.scores)
    wins = dict(state.wins)
    if isinstance(winner, Seat):
        scores[winner] += points
        wins[winner] += 1
    logger.info("Round %d over: %s (%d points)", state.round_number, summary, points)
    return replace(
        state,
        winner=winner,
        summary=summary,
        scores=scores,
        wins=wins,
        history=state.history + (summary,),
    )


def _settle(state: GameState, mover: Seat) -> GameState:
    """End the round if the mover went out or the table is locked."""
    if not state.hand(mover):
        points = hand_pips(state.hand(mover.opponent()))
        return _finish(state, mover, points, f"{mover.value} dominoed")
    if is_locked(state.board, state.hand(Seat.PLAYER), state.hand(Seat.AI), state.stock):
        player_pips = hand_pips(state.hand(Seat.PLAYER))
        ai_pips = hand_pips(state.hand(Seat.AI))
        if player_pips < ai_pips:
            return _finish(state, Seat.PLAYER, ai_pips - player_pips, "blocked, player has fewer pips")
        if ai_pips < player_pips:
            return _finish(state, Seat.AI, player_pips - ai_pips, "blocked, ai has fewer pips")
        return _finish(state, DRAW, 0, "blocked with equal pips")
    return state


def play_tile(state: GameState, seat: Seat, move: Move, round_id: Optional[str] = None) -> GameState:
    """Lay ``move.tile`` from ``seat``'s hand and hand the turn over."""
    _require_turn(state, seat, round_id)
    hand = state.hand(seat)
    if move.tile not in hand:
        raise GameRuleError(f"{move.tile.label} is not in {seat.value}'s hand")
    board = state.board.place(move.tile, move.side)
    next_state = replace(
        state,
        board=board,
        hands=_with_hand(state, seat, remove_tile(hand, move.tile)),
        turn=seat.opponent(),
        history=state.history + (f"{seat.value} played {move.label}",),
    )
    return _settle(next_state, seat)


def draw_tile(state: GameState, seat: Seat, round_id: Optional[str] = None) -> Tuple[GameState, Tile]:
    """Draw one tile for a seat that cannot play.

    The seat keeps the turn if the drawn tile makes a play possible; otherwise
    the turn passes to the opponent.
    """
    _require_turn(state, seat, round_id)
    if not is_blocked(state.board, state.hand(seat)):
        raise GameRuleError("Cannot draw while holding a playable tile")
    if not state.stock:
        raise GameRuleError("The stock is empty")
    drawn = state.stock[-1]
    hand = state.hand(seat) + (drawn,)
    playable = drawn in legal_moves(state.board, (drawn,))
    note = f"{seat.value} drew" if playable else f"{seat.value} drew and passed"
    next_state = replace(
        state,
        hands=_with_hand(state, seat, hand),
        stock=state.stock[:-1],
        turn=seat if playable else seat.opponent(),
        history=state.history + (note,),
    )
    return _settle(next_state, seat), drawn


def pass_turn(state: GameState, seat: Seat, round_id: Optional[str] = None) -> GameState:
    _require_turn(state, seat, round_id)
    if not is_blocked(state.board, state.hand(seat)):
        raise GameRuleError("Cannot pass while holding a playable tile")
    if state.stock:
        raise GameRuleError("Must draw from the stock before passing")
    next_state = replace(
        state,
        turn=seat.opponent(),
        history=state.history + (f"{seat.value} passed",),
    )
    return _settle(next_state, seat)


def partition_ok(state: GameState) -> bool:
    """Hands, stock and board hold each of the 28 tiles exactly once."""
    zones: List[Tile] = [
        *state.hand(Seat.PLAYER),
        *state.hand(Seat.AI),
        *state.stock,
        *state.board.tiles,
    ]
    return len(zones) == len(set(zones)) and set(zones) == set(full_set())


def serialize_state(state: GameState, reveal_ai: bool = False) -> Dict:
    """JSON-friendly view of the round; the AI hand is hidden unless revealed."""
    ai_hand = state.hand(Seat.AI)
    return {
        "round_id": state.round_id,
        "round": state.round_number,
        "turn": state.turn.value,
        "winner": state.winner.value if isinstance(state.winner, Seat) else state.winner,
        "summary": state.summary,
        "board": serialize_board(state.board),
        "player_hand": [serialize_tile(tile) for tile in state.hand(Seat.PLAYER)],
        "ai_hand": [serialize_tile(tile) for tile in ai_hand] if reveal_ai else None,
        "ai_hand_size": len(ai_hand),
        "stock_size": len(state.stock),
        "scores": {seat.value: value for seat, value in state.scores.items()},
        "wins": {seat.value: value for seat, value in state.wins.items()},
        "history": list(state.history),
    }
