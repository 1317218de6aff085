"""Simple CLI entrypoint for dominoduel."""
import argparse
import logging

from . import __version__


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="dominoduel")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--serve", action="store_true", help="Run FastAPI server")
    parser.add_argument("--host", default="127.0.0.1", help="Server host")
    parser.add_argument("--port", type=int, default=8000, help="Server port")
    parser.add_argument(
        "--arena",
        action="store_true",
        help="Play AI-vs-AI rounds and report wins per difficulty.",
    )
    parser.add_argument(
        "--games",
        type=int,
        default=20,
        help="Number of arena rounds, seats alternate each round (default: 20).",
    )
    parser.add_argument(
        "--first",
        default="hard",
        choices=["easy", "medium", "hard"],
        help="Difficulty of the first arena agent (default: hard).",
    )
    parser.add_argument(
        "--second",
        default="medium",
        choices=["easy", "medium", "hard"],
        help="Difficulty of the second arena agent (default: medium).",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for dealing and easy picks.")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING).",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.version:
        print(__version__)
        return 0

    if args.arena:
        from dominoduel.ai import AIAgent, play_series

        first = AIAgent(difficulty=args.first, think_time=0.0, think_jitter=0.0, seed=args.seed)
        second = AIAgent(
            difficulty=args.second,
            think_time=0.0,
            think_jitter=0.0,
            seed=None if args.seed is None else args.seed + 1,
        )
        series = play_series(first, second, games=args.games, seed=args.seed)
        for label, wins in series.wins.items():
            print(f"{label}: {wins} wins, {series.points[label]} points")
        print(f"draws: {series.draws} / {series.games}")
        return 0

    if args.serve:
        try:
            from uvicorn import run
            from dominoduel.api import create_app
        except ImportError:
            print("uvicorn and fastapi are required to serve the API. Install extras.")
            return 1

        run(create_app(), host=args.host, port=args.port, reload=False)
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
