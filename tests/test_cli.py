# tests/test_cli.py
import logging

import pytest
from pydantic import ValidationError

from chess_reviewer.cli import build_parser, main, settings_from_args
from chess_reviewer.config.settings import Settings


def test_settings_from_args_applies_overrides():
    args = build_parser().parse_args(
        ["review", "game.pgn", "--depth", "14", "--brilliant", "--opening-book", "book.json", "--stockfish", "/opt/sf"]
    )

    result = settings_from_args(args, Settings())

    assert result.review.target_depth == 14
    assert result.review.classification.detect_brilliant is True
    assert result.opening_book_path == "book.json"
    assert result.stockfish_path == "/opt/sf"


def test_settings_from_args_keeps_defaults():
    base = Settings()
    args = build_parser().parse_args(["review", "game.pgn"])

    result = settings_from_args(args, base)

    assert result.review == base.review
    assert result.opening_book_path == base.opening_book_path


def test_missing_pgn_file_exits_with_error(tmp_path):
    assert main(["review", str(tmp_path / "missing.pgn")]) == 1


def test_depth_override_is_validated():
    args = build_parser().parse_args(["review", "game.pgn", "--depth", "0"])

    with pytest.raises(ValidationError):
        settings_from_args(args, Settings())


def test_invalid_depth_is_a_usage_error(tmp_path):
    with pytest.raises(SystemExit) as exc_info:
        main(["review", str(tmp_path / "game.pgn"), "--depth", "0"])

    assert exc_info.value.code == 2


def test_logging_flags_reach_logging_setup(tmp_path):
    log_file = tmp_path / "review.log"

    assert main(["--quiet", "--log-file", str(log_file), "review", str(tmp_path / "missing.pgn")]) == 1

    handlers = logging.getLogger().handlers
    assert not any(type(h) is logging.StreamHandler for h in handlers)
    assert "Could not read PGN file." in log_file.read_text(encoding="utf-8")
