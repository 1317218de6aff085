"""dominoduel package."""

from .engine import (  # noqa: F401
    Board,
    IllegalMoveError,
    Move,
    Side,
    Tile,
    apply_move,
    full_set,
    is_blocked,
    is_locked,
    legal_moves,
    list_legal_moves,
    matches,
)
from .game import GameRuleError, GameState, Seat, StaleRoundError, new_game  # noqa: F401
from .ai import AIAgent, Difficulty, select_move  # noqa: F401
__all__ = [
    "__version__",
    "Board",
    "IllegalMoveError",
    "Move",
    "Side",
    "Tile",
    "apply_move",
    "full_set",
    "is_blocked",
    "is_locked",
    "legal_moves",
    "list_legal_moves",
    "matches",
    "GameRuleError",
    "GameState",
    "Seat",
    "StaleRoundError",
    "new_game",
    "create_app",
    "AIAgent",
    "Difficulty",
    "select_move",
]

__version__ = "0.1.0"


def create_app():
    """Lazy import to avoid requiring FastAPI unless requested."""
    from dominoduel.api import create_app as factory

    return factory()
