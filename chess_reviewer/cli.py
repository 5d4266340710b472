# chess_reviewer/cli.py
"""
The command-line entry point: `chess-reviewer review GAME.pgn`.

Starts a Stockfish engine, reviews the first game of a PGN file and prints one
line per move followed by the accuracy of each side (or, with `--json`, a
machine-readable report).
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

import structlog
from pydantic import ValidationError

from chess_reviewer.config.settings import (EngineSettings, ReviewSettings,
                                            Settings, settings)
from chess_reviewer.containers import get_container
from chess_reviewer.exceptions import ChessReviewerError
from chess_reviewer.output.review_report import build_json_report, format_text_report
from chess_reviewer.services.evaluation_provider import EvaluationProvider
from chess_reviewer.services.stockfish_service import StockfishService
from chess_reviewer.session import ReviewSession
from chess_reviewer.utils.logging_config import setup_logging
from chess_reviewer.utils.system_utils import find_stockfish_executable

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chess-reviewer", description="Engine-backed chess game review.")
    parser.add_argument("--log-level", default=None, help="Logging level (default: from settings).")
    parser.add_argument("--log-file", type=Path, default=None, help="Also append JSON log records to this file.")
    parser.add_argument("--log-json", action="store_true", help="Render console log records as JSON.")
    parser.add_argument("--quiet", action="store_true", help="Do not log to the console.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    review = subparsers.add_parser("review", help="Review the first game of a PGN file.")
    review.add_argument("pgn", type=Path, help="Path to the PGN file.")
    review.add_argument("--stockfish", default=None, help="Path to the Stockfish executable.")
    review.add_argument("--depth", type=int, default=None, help="Search depth per position.")
    review.add_argument("--opening-book", default=None, help="Path to a JSON opening book.")
    review.add_argument("--brilliant", action="store_true", help="Enable sacrifice ('Brilliant') detection.")
    review.add_argument("--json", action="store_true", help="Print a JSON report instead of text.")
    return parser


def settings_from_args(args: argparse.Namespace, base: Settings) -> Settings:
    """
    Layers command-line overrides on top of the environment-derived settings.

    Raises:
        pydantic.ValidationError: If an override violates the settings schema, e.g. `--depth 0`.
    """
    review_data = base.review.model_dump()
    if args.depth is not None:
        review_data["target_depth"] = args.depth
    if args.brilliant:
        review_data["classification"]["detect_brilliant"] = True
    review = ReviewSettings.model_validate(review_data)

    update = {"review": review}
    if args.opening_book:
        update["opening_book_path"] = args.opening_book
    if args.stockfish:
        update["stockfish_path"] = args.stockfish
    return base.model_copy(update=update)


async def run_review(args: argparse.Namespace, app_settings: Settings) -> int:
    try:
        pgn_text = args.pgn.read_text(encoding="utf-8")
    except OSError as e:
        logger.error("Could not read PGN file.", path=str(args.pgn), error=str(e))
        return 1

    try:
        stockfish_path = find_stockfish_executable(app_settings.stockfish_path)
    except FileNotFoundError as e:
        logger.error("Stockfish not available.", error=str(e))
        return 1

    engine_settings = EngineSettings(
        path=str(stockfish_path),
        depth=app_settings.review.target_depth,
        parameters=app_settings.engine_parameters,
    )

    try:
        engine = await StockfishService.create(engine_settings)
    except ChessReviewerError as e:
        logger.error("Engine failed to start.", error=str(e))
        return 1

    container = get_container(app_settings, engine)
    try:
        session = container.resolve(ReviewSession)
        headers = session.load_pgn(pgn_text)
        store = await session.review_game()
    except ChessReviewerError as e:
        logger.error("Review failed.", error=str(e), error_type=type(e).__name__)
        return 1
    finally:
        await container.resolve(EvaluationProvider).close()

    main_line = session.timeline.main_line()
    if args.json:
        print(json.dumps(build_json_report(main_line, store, headers), indent=2))
    else:
        white, black = headers.get("White", "?"), headers.get("Black", "?")
        print(f"{white} vs. {black}")
        for line in format_text_report(main_line, store):
            print(line)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Parses `argv`, runs the requested command and returns the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(
        log_level=args.log_level or settings.default_log_level,
        log_file=args.log_file,
        json_console=args.log_json,
        quiet=args.quiet,
    )

    try:
        app_settings = settings_from_args(args, settings)
    except ValidationError as e:
        parser.error(f"invalid review options: {e.errors()[0]['msg']}")
    return asyncio.run(run_review(args, app_settings))


if __name__ == "__main__":
    sys.exit(main())
