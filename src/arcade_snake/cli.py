"""Command-line launcher for Arcade Snake."""

from __future__ import annotations

import argparse
import logging
import sys

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arcade-snake",
        description="Arcade Snake game server and headless simulator.",
    )
    sub = parser.add_subparsers(dest="command", help="Available commands.")

    # --- serve ---
    serve_p = sub.add_parser("serve", help="Run the HTTP/WebSocket game server.")
    serve_p.add_argument("--host", type=str, default="127.0.0.1")
    serve_p.add_argument("--port", type=int, default=8000)
    serve_p.add_argument(
        "--config", type=str, default=None,
        help="Path to a JSON game config file.",
    )
    serve_p.add_argument(
        "--storage", type=str, default=None,
        help="JSON file for high score and games played.",
    )

    # --- simulate ---
    sim_p = sub.add_parser(
        "simulate", help="Play headless games with the greedy autopilot.",
    )
    sim_p.add_argument("--config", type=str, default=None)
    sim_p.add_argument("--games", type=int, default=10)
    sim_p.add_argument(
        "--mode", type=str, default=None, choices=["classic", "speed", "wall"],
    )
    sim_p.add_argument("--grid-width", type=int, default=None)
    sim_p.add_argument("--grid-height", type=int, default=None)
    sim_p.add_argument("--seed", type=int, default=None)
    sim_p.add_argument("--max-ticks", type=int, default=5_000)
    sim_p.add_argument("--storage", type=str, default=None)

    return parser


def _load_config(args: argparse.Namespace):
    from arcade_snake.config import GameConfig

    config = GameConfig.load(args.config) if args.config else GameConfig()

    flag_map = {
        "mode": "mode",
        "grid_width": "grid_width",
        "grid_height": "grid_height",
        "seed": "seed",
        "storage": "storage_path",
    }
    overrides = {
        cfg_name: getattr(args, cli_name)
        for cli_name, cfg_name in flag_map.items()
        if getattr(args, cli_name, None) is not None
    }
    if overrides:
        d = config.to_dict()
        d.update(overrides)
        config = GameConfig(**d)
    return config


def _run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from arcade_snake.server.app import create_app

    app = create_app(_load_config(args))
    logger.info("Serving on %s:%d", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def _run_simulate(args: argparse.Namespace) -> int:
    from arcade_snake.autopilot import simulate
    from arcade_snake.score import InMemoryStorage, JsonFileStorage, ScoreTracker

    config = _load_config(args)
    storage = (
        JsonFileStorage(config.storage_path)
        if config.storage_path else InMemoryStorage()
    )
    result = simulate(
        config,
        games=args.games,
        max_ticks=args.max_ticks,
        tracker=ScoreTracker(storage),
    )
    print(result.summary())  # noqa: T201
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``arcade-snake`` CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    handlers = {
        "serve": _run_serve,
        "simulate": _run_simulate,
    }
    return handlers[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
