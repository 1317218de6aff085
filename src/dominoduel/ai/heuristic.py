"""Move scoring shared by the medium and hard opponents.

A move is scored by adding five independent terms:

* double bonus - doubles are the hardest tiles to place later, shed them early;
* value shedding - heavy tiles count against the holder when a round ends;
* flexibility - other tiles in hand that match the value the move exposes;
* scarcity - penalty when the mover would hold no other tile for that value;
* lookahead - tiles left in hand that fit either end after the move.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from dominoduel.engine import MAX_TILE_PIPS, Board, Side, Tile, legal_moves, remove_tile


@dataclass(frozen=True)
class HeuristicWeights:
    double_bonus: float = 25.0
    shed_weight: float = 20.0
    flexibility_per_tile: float = 5.0
    scarcity_penalty: float = 10.0
    lookahead_per_tile: float = 5.0


DEFAULT_WEIGHTS = HeuristicWeights()


def exposed_value(board: Board, tile: Tile, side: Side) -> int:
    """Value left facing outward on ``side`` once ``tile`` is laid there."""
    return board.place(tile, side).end(Side(side))


def score_breakdown(
    board: Board,
    hand: Sequence[Tile],
    tile: Tile,
    side: Side,
    weights: Optional[HeuristicWeights] = None,
) -> Dict[str, float]:
    """Return each scoring term for laying ``tile`` on ``side``.

    ``hand`` is the mover's hand before the move and must contain ``tile``.
    Raises ``IllegalMoveError`` if the tile does not fit that end.
    """
    weights = weights or DEFAULT_WEIGHTS
    side = Side(side)
    next_board = board.place(tile, side)
    exposed = next_board.end(side)
    remaining = remove_tile(hand, tile)

    flexibility = sum(1 for other in remaining if other.matches(exposed))
    holders = sum(1 for held in hand if held.matches(exposed))
    playable_after = len(legal_moves(next_board, remaining))

    return {
        "double": weights.double_bonus if tile.is_double else 0.0,
        "shed": (tile.pips / MAX_TILE_PIPS) * weights.shed_weight,
        "flexibility": flexibility * weights.flexibility_per_tile,
        "scarcity": -weights.scarcity_penalty if holders == 1 else 0.0,
        "lookahead": playable_after * weights.lookahead_per_tile,
    }


def evaluate_move(
    board: Board,
    hand: Sequence[Tile],
    tile: Tile,
    side: Side,
    weights: Optional[HeuristicWeights] = None,
) -> float:
    return sum(score_breakdown(board, hand, tile, side, weights).values())
