# tests/core/test_position.py
import chess
import pytest

from chess_reviewer.core.position import Position
from chess_reviewer.exceptions import InvalidPositionError

FORCED_FEN = "k7/8/8/8/8/8/8/1R5K b - - 0 1"
PROMOTION_FEN = "8/P7/8/8/8/8/8/k6K w - - 0 1"
EN_PASSANT_FEN = "rnbqkbnr/1pp1pppp/p7/3pP3/8/8/PPPP1PPP/RNBQKBNR w KQkq d6 0 3"


def test_initial_position():
    position = Position.initial()
    assert position.fen == chess.STARTING_FEN
    assert position.move is None
    assert position.turn == chess.WHITE
    assert position.legal_move_count() == 20


def test_from_fen_rejects_garbage():
    with pytest.raises(InvalidPositionError):
        Position.from_fen("not a fen")


def test_from_fen_rejects_impossible_board():
    # No kings on the board.
    with pytest.raises(InvalidPositionError):
        Position.from_fen("8/8/8/8/8/8/8/8 w - - 0 1")


def test_push_returns_new_position_and_leaves_receiver_untouched():
    # Arrange
    start = Position.initial()

    # Act
    after = start.push("e2", "e4")

    # Assert
    assert after is not None
    assert start.fen == chess.STARTING_FEN
    assert after.turn == chess.BLACK
    assert after.move.san == "e4"
    assert after.move.uci == "e2e4"
    assert after.move.from_square == "e2"
    assert after.move.to_square == "e4"
    assert after.move.captured is None


def test_push_illegal_move_returns_none():
    start = Position.initial()
    assert start.push("e2", "e5") is None
    assert start.push("e7", "e5") is None
    assert start.push("z9", "e4") is None


def test_push_promotion():
    position = Position.from_fen(PROMOTION_FEN)

    promoted = position.push("a7", "a8", "q")

    assert promoted is not None
    assert promoted.move.promotion == "q"
    assert promoted.move.uci == "a7a8q"
    assert position.push("a7", "a8") is None
    assert position.push("a7", "a8", "k") is None


def test_push_en_passant_records_captured_pawn():
    position = Position.from_fen(EN_PASSANT_FEN)

    after = position.push("e5", "d6")

    assert after is not None
    assert after.move.captured == "p"


def test_push_capture_records_captured_piece():
    position = Position.initial().push_move("e2e4").push_move("d7d5")

    after = position.push("e4", "d5")

    assert after.move.captured == "p"
    assert after.move.san == "exd5"


def test_legal_moves_from():
    position = Position.initial()
    assert sorted(position.legal_moves_from("e2")) == ["e3", "e4"]
    assert sorted(position.legal_moves_from("g1")) == ["f3", "h3"]
    assert position.legal_moves_from("e4") == []
    assert position.legal_moves_from("zz") == []


def test_legal_moves_from_deduplicates_promotions():
    position = Position.from_fen(PROMOTION_FEN)
    assert position.legal_moves_from("a7") == ["a8"]


def test_is_forced():
    assert Position.from_fen(FORCED_FEN).is_forced()
    assert not Position.initial().is_forced()


def test_san_for():
    position = Position.initial()
    assert position.san_for("g1f3") == "Nf3"
    assert position.san_for("g1g3") is None
    assert position.san_for(None) is None
    assert position.san_for("garbage") is None


def test_board_returns_independent_copy():
    position = Position.initial()
    board = position.board()
    board.push_san("e4")
    assert position.fen == chess.STARTING_FEN
