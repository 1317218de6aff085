"""AI components: heuristic scoring, lookahead search, difficulty control and arena play."""

from .agent import AIAgent, Difficulty, parse_difficulty, select_move  # noqa: F401
from .heuristic import HeuristicWeights, evaluate_move  # noqa: F401
from .search import SearchConfig, SearchResult, select_easy, select_hard, select_medium  # noqa: F401
from .selfplay import play_series, self_play_game  # noqa: F401
