"""Core rules for double-six dominoes: tiles, the line of play and legal moves.

The engine is deterministic and UI-agnostic so it can be shared by the AI,
the server and clients. Boards and hands are values: placing a tile returns a
new board and removing a tile returns a new hand, so lookahead code can branch
freely without copying state by hand.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

MAX_PIP = 6
MAX_TILE_PIPS = MAX_PIP * 2


class Side(str, Enum):
    LEFT = "left"
    RIGHT = "right"

    def opposite(self) -> "Side":
        return Side.RIGHT if self is Side.LEFT else Side.LEFT


# Any tile may open the line; it is reported on this side only.
DEFAULT_SIDE = Side.LEFT


class IllegalMoveError(ValueError):
    """A tile was offered to an end it does not match."""


@dataclass(frozen=True, eq=False)
class Tile:
    """A domino. ``(a, b)`` is the current orientation; identity is the pair."""

    a: int
    b: int

    def __post_init__(self) -> None:
        for value in (self.a, self.b):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"Tile values must be integers, got {value!r}")
            if not 0 <= value <= MAX_PIP:
                raise ValueError(f"Tile value out of range 0-{MAX_PIP}: {value}")

    @property
    def key(self) -> Tuple[int, int]:
        return (self.a, self.b) if self.a <= self.b else (self.b, self.a)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tile):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        return f"Tile({self.a}, {self.b})"

    def __str__(self) -> str:
        return f"[{self.a}|{self.b}]"

    @property
    def is_double(self) -> bool:
        return self.a == self.b

    @property
    def pips(self) -> int:
        return self.a + self.b

    @property
    def label(self) -> str:
        low, high = self.key
        return f"{low}-{high}"

    def matches(self, value: Optional[int]) -> bool:
        return self.a == value or self.b == value

    def other_end(self, value: int) -> int:
        if value == self.a:
            return self.b
        if value == self.b:
            return self.a
        raise ValueError(f"{value} is not an end of {self}")

    def flipped(self) -> "Tile":
        return Tile(self.b, self.a)


def parse_tile(token: str) -> Tile:
    """Parse ``"2-5"`` (or ``"2|5"``) into a tile."""
    cleaned = token.strip().strip("[]")
    for sep in ("-", "|", ","):
        if sep in cleaned:
            left, right = cleaned.split(sep, 1)
            break
    else:
        raise ValueError(f"Invalid tile token: {token}")
    try:
        return Tile(int(left), int(right))
    except ValueError as exc:
        raise ValueError(f"Invalid tile token: {token}") from exc


def matches(tile: Tile, value: Optional[int]) -> bool:
    return tile.matches(value)


def full_set() -> Tuple[Tile, ...]:
    """All 28 tiles of a double-six set, in canonical order."""
    return tuple(Tile(a, b) for a in range(MAX_PIP + 1) for b in range(a, MAX_PIP + 1))


def suit(value: int) -> Tuple[Tile, ...]:
    if not 0 <= value <= MAX_PIP:
        raise ValueError(f"Invalid suit value: {value}")
    return tuple(tile for tile in full_set() if tile.matches(value))


@dataclass(frozen=True)
class Move:
    tile: Tile
    side: Side

    @property
    def label(self) -> str:
        return f"{self.tile.label}@{self.side.value}"


@dataclass(frozen=True)
class Board:
    """The line of play. ``tiles`` are stored left to right as laid."""

    tiles: Tuple[Tile, ...] = field(default_factory=tuple)
    left_end: Optional[int] = None
    right_end: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return not self.tiles

    def end(self, side: Side) -> Optional[int]:
        return self.left_end if side is Side.LEFT else self.right_end

    def ends(self) -> Tuple[Optional[int], Optional[int]]:
        return self.left_end, self.right_end

    def can_place(self, tile: Tile, side: Side) -> bool:
        return self.is_empty or tile.matches(self.end(side))

    def place(self, tile: Tile, side: Side) -> "Board":
        """Return a new board with ``tile`` laid on ``side``.

        The tile is flipped when needed so the matching value touches the
        chain. Raises ``IllegalMoveError`` without touching this board when
        the tile does not match that end.
        """
        side = Side(side)
        if self.is_empty:
            return Board(tiles=(tile,), left_end=tile.a, right_end=tile.b)

        if side is Side.LEFT:
            if tile.b == self.left_end:
                laid = tile
            elif tile.a == self.left_end:
                laid = tile.flipped()
            else:
                raise IllegalMoveError(f"{tile} does not match left end {self.left_end}")
            return Board(tiles=(laid,) + self.tiles, left_end=laid.a, right_end=self.right_end)

        if tile.a == self.right_end:
            laid = tile
        elif tile.b == self.right_end:
            laid = tile.flipped()
        else:
            raise IllegalMoveError(f"{tile} does not match right end {self.right_end}")
        return Board(tiles=self.tiles + (laid,), left_end=self.left_end, right_end=laid.b)

    def is_consistent(self) -> bool:
        if self.is_empty:
            return self.left_end is None and self.right_end is None
        if self.left_end != self.tiles[0].a or self.right_end != self.tiles[-1].b:
            return False
        return all(left.b == right.a for left, right in zip(self.tiles, self.tiles[1:]))

    def pretty(self) -> str:
        if self.is_empty:
            return "(empty)"
        return "".join(str(tile) for tile in self.tiles)


Hand = Tuple[Tile, ...]


def remove_tile(hand: Sequence[Tile], tile: Tile) -> Hand:
    """Return ``hand`` without ``tile`` (matched by identity, not orientation)."""
    items = list(hand)
    try:
        items.remove(tile)
    except ValueError:
        raise ValueError(f"{tile} is not in hand") from None
    return tuple(items)


def hand_pips(hand: Iterable[Tile]) -> int:
    return sum(tile.pips for tile in hand)


def legal_moves(board: Board, hand: Sequence[Tile]) -> Dict[Tile, List[Side]]:
    """Map each playable tile in ``hand`` to the sides it may be laid on.

    On an empty board every tile is playable on ``DEFAULT_SIDE`` only. A tile
    that fits both ends (doubles included) is listed with both sides.
    """
    moves: Dict[Tile, List[Side]] = {}
    for tile in hand:
        if board.is_empty:
            moves[tile] = [DEFAULT_SIDE]
            continue
        sides: List[Side] = []
        if tile.matches(board.left_end):
            sides.append(Side.LEFT)
        if tile.matches(board.right_end):
            sides.append(Side.RIGHT)
        if sides:
            moves[tile] = sides
    return moves


def list_legal_moves(board: Board, hand: Sequence[Tile]) -> List[Move]:
    return [
        Move(tile=tile, side=side)
        for tile, sides in legal_moves(board, hand).items()
        for side in sides
    ]


def apply_move(board: Board, move: Move) -> Board:
    return board.place(move.tile, move.side)


def is_blocked(board: Board, hand: Sequence[Tile]) -> bool:
    return not legal_moves(board, hand)


def is_locked(
    board: Board,
    hand: Sequence[Tile],
    other_hand: Sequence[Tile],
    stock: Sequence[Tile],
) -> bool:
    """Neither hand can play and nothing is left to draw."""
    return not stock and is_blocked(board, hand) and is_blocked(board, other_hand)


def serialize_tile(tile: Tile) -> List[int]:
    return [tile.a, tile.b]


def serialize_move(move: Move) -> Dict:
    return {"tile": move.tile.label, "side": move.side.value}


def serialize_board(board: Board) -> Dict:
    return {
        "tiles": [serialize_tile(tile) for tile in board.tiles],
        "left_end": board.left_end,
        "right_end": board.right_end,
    }


def deserialize_board(payload: Dict) -> Board:
    tiles = tuple(Tile(int(a), int(b)) for a, b in payload.get("tiles", []))
    board = Board(
        tiles=tiles,
        left_end=payload.get("left_end"),
        right_end=payload.get("right_end"),
    )
    if not board.is_consistent():
        raise ValueError("Board payload breaks the chain invariant")
    return board
