# tests/core/test_timeline.py
import chess
import pytest

from chess_reviewer.core.timeline import Timeline
from chess_reviewer.exceptions import InvalidPositionError, PgnParsingError
from chess_reviewer.types import Cursor

SIMPLE_PGN = """
[Event "Test Game"]
[White "Player A"]
[Black "Player B"]
[Result "1-0"]

1. e4 e5 2. Nf3 Nc6 3. Bb5 a6 1-0
"""

FEN_PGN = """
[Event "Test Game From FEN"]
[White "Player A"]
[Black "Player B"]
[Result "*"]
[FEN "rnbqkbnr/pppp1ppp/8/4p3/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 2"]
[SetUp "1"]

2. Nf3 Nc6 *
"""


@pytest.fixture
def timeline():
    return Timeline()


@pytest.fixture
def loaded(timeline):
    timeline.load_main(["e2e4", "e7e5", "g1f3"])
    return timeline


def test_new_timeline_starts_on_hypothetical_root(timeline):
    assert timeline.cursor == Cursor(on_main=False, index=0)
    assert timeline.main_line() == ()
    assert len(timeline.hypothetical_line()) == 1
    assert timeline.current().fen == chess.STARTING_FEN


def test_load_main(timeline):
    # Act
    metadata = timeline.load_main(["e2e4", "e7e5"], {"White": "A"})

    # Assert
    assert metadata == {"White": "A"}
    assert len(timeline.main_line()) == 3
    assert timeline.hypothetical_line() == ()
    assert timeline.cursor == Cursor(on_main=True, index=0)
    assert timeline.main_line()[2].move.san == "e5"


def test_load_main_accepts_chess_moves(timeline):
    timeline.load_main([chess.Move.from_uci("d2d4")])
    assert timeline.main_line()[1].move.san == "d4"


def test_load_main_with_illegal_move_leaves_timeline_unchanged(loaded):
    before = loaded.main_line()

    with pytest.raises(PgnParsingError):
        loaded.load_main(["e2e4", "e2e4"])

    assert loaded.main_line() == before
    assert loaded.cursor == Cursor(on_main=True, index=0)


def test_main_line_is_a_snapshot(loaded):
    line = loaded.main_line()
    assert isinstance(line, tuple)
    loaded.load_main(["d2d4"])
    assert len(line) == 4


def test_move_on_main_forks_hypothetical_branch(loaded):
    # Arrange: position after 1. e4, Black to move.
    loaded.step_forward()

    # Act
    result = loaded.attempt_move("c7", "c5")

    # Assert
    assert result.valid
    assert result.cursor == Cursor(on_main=False, index=0)
    assert loaded.fork_index == 1
    assert len(loaded.hypothetical_line()) == 1
    assert loaded.current().move.san == "c5"
    assert len(loaded.main_line()) == 4


def test_move_in_middle_of_hypothetical_truncates(timeline):
    for from_sq, to_sq in [("e2", "e4"), ("e7", "e5"), ("g1", "f3")]:
        assert timeline.attempt_move(from_sq, to_sq).valid
    assert len(timeline.hypothetical_line()) == 4

    timeline.step_backward()
    timeline.step_backward()
    assert timeline.cursor == Cursor(on_main=False, index=1)

    result = timeline.attempt_move("c7", "c5")

    assert result.cursor == Cursor(on_main=False, index=2)
    assert len(timeline.hypothetical_line()) == 3
    assert timeline.current().move.san == "c5"


def test_move_at_end_of_hypothetical_appends(timeline):
    timeline.attempt_move("e2", "e4")
    result = timeline.attempt_move("e7", "e5")
    assert result.cursor == Cursor(on_main=False, index=2)
    assert len(timeline.hypothetical_line()) == 3


def test_illegal_move_changes_nothing(loaded):
    loaded.step_forward()
    cursor = loaded.cursor
    hypothetical = loaded.hypothetical_line()

    result = loaded.attempt_move("e2", "e4")

    assert not result.valid
    assert result.cursor == cursor
    assert loaded.cursor == cursor
    assert loaded.hypothetical_line() == hypothetical


def test_step_backward_from_hypothetical_root_collapses_to_fork(loaded):
    loaded.jump_to_end()
    loaded.attempt_move("b8", "c6")

    cursor = loaded.step_backward()

    assert cursor == Cursor(on_main=True, index=3)
    assert loaded.hypothetical_line() == ()


def test_step_backward_at_root_without_main_is_noop(timeline):
    assert timeline.step_backward() == Cursor(on_main=False, index=0)
    assert len(timeline.hypothetical_line()) == 1


def test_step_forward_stops_at_end(loaded):
    for _ in range(10):
        loaded.step_forward()
    assert loaded.cursor == Cursor(on_main=True, index=3)


def test_jump_to_start_reaches_fixed_point(loaded):
    # Arrange: fork from index 2 and walk into the branch.
    loaded.step_forward()
    loaded.step_forward()
    loaded.attempt_move("g1", "f3")
    loaded.attempt_move("b8", "c6")

    # Act
    cursor = loaded.jump_to_start()

    # Assert
    assert cursor == Cursor(on_main=True, index=0)
    assert loaded.hypothetical_line() == ()
    assert loaded.step_backward() == cursor


def test_jump_to_end(loaded):
    assert loaded.jump_to_end() == Cursor(on_main=True, index=3)
    assert loaded.step_forward() == Cursor(on_main=True, index=3)


def test_load_standalone(loaded):
    fen = "k7/8/8/8/8/8/8/1R5K b - - 0 1"

    loaded.load_standalone(fen)

    assert loaded.main_line() == ()
    assert loaded.cursor == Cursor(on_main=False, index=0)
    assert loaded.current().fen == fen
    assert loaded.jump_to_start() == Cursor(on_main=False, index=0)


def test_load_standalone_invalid_fen_leaves_timeline_unchanged(loaded):
    with pytest.raises(InvalidPositionError):
        loaded.load_standalone("definitely not a fen")
    assert len(loaded.main_line()) == 4


def test_load_pgn_returns_headers(timeline):
    headers = timeline.load_pgn(SIMPLE_PGN)

    assert headers["White"] == "Player A"
    assert headers["Result"] == "1-0"
    assert len(timeline.main_line()) == 7
    assert timeline.cursor == Cursor(on_main=True, index=0)


def test_load_pgn_from_fen_header(timeline):
    timeline.load_pgn(FEN_PGN)

    main = timeline.main_line()
    assert main[0].fen == "rnbqkbnr/pppp1ppp/8/4p3/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 2"
    assert [p.move.san for p in main[1:]] == ["Nf3", "Nc6"]


def test_load_pgn_malformed_leaves_timeline_unchanged(loaded):
    before = loaded.main_line()

    with pytest.raises(PgnParsingError):
        loaded.load_pgn("1. e4 e5 2. Ke3 Nc6")

    assert loaded.main_line() == before
