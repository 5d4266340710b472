# tests/services/test_stockfish_service.py
import subprocess
from unittest.mock import MagicMock

import chess
import pytest
from stockfish import StockfishException

from chess_reviewer.config.settings import EngineSettings
from chess_reviewer.exceptions import EngineAnalysisError, EngineInitializationError
from chess_reviewer.services.stockfish_service import StockfishService
from chess_reviewer.types import GameOutcome

FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
STALEMATE = "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1"


@pytest.fixture
def stockfish():
    mock = MagicMock()
    mock.get_top_moves.return_value = [
        {"Move": "e2e4", "Centipawn": 35, "Mate": None},
        {"Move": "d2d4", "Centipawn": 30, "Mate": None},
    ]
    return mock


@pytest.fixture
def service(stockfish):
    return StockfishService(stockfish, "16", "/usr/bin/stockfish", multipv=2)


@pytest.mark.asyncio
async def test_evaluate_parses_top_moves(service, stockfish):
    # Act
    evaluation = await service.evaluate(chess.STARTING_FEN, 12)

    # Assert
    stockfish.set_depth.assert_called_once_with(12)
    stockfish.set_fen_position.assert_called_once_with(chess.STARTING_FEN)
    stockfish.get_top_moves.assert_called_once_with(2)
    assert evaluation.depth == 12
    assert evaluation.nodes is None
    assert evaluation.outcome is None
    assert [line.rank for line in evaluation.lines] == [1, 2]
    assert evaluation.top_line.score_cp == 35
    assert evaluation.best_move == "e2e4"


@pytest.mark.asyncio
async def test_evaluate_parses_mate_scores(service, stockfish):
    stockfish.get_top_moves.return_value = [{"Move": "d8h4", "Centipawn": None, "Mate": -1}]

    evaluation = await service.evaluate(chess.STARTING_FEN, 10)

    assert evaluation.top_line.is_mate
    assert evaluation.top_line.score_mate == -1


@pytest.mark.asyncio
async def test_checkmate_is_answered_without_engine(service, stockfish):
    evaluation = await service.evaluate(FOOLS_MATE, 10)

    assert evaluation.outcome == GameOutcome.BLACK_WIN
    assert evaluation.lines == []
    stockfish.get_top_moves.assert_not_called()


@pytest.mark.asyncio
async def test_stalemate_is_a_draw(service, stockfish):
    evaluation = await service.evaluate(STALEMATE, 10)

    assert evaluation.outcome == GameOutcome.DRAW
    stockfish.get_top_moves.assert_not_called()


@pytest.mark.asyncio
async def test_engine_crash_marks_service_unusable(service, stockfish):
    stockfish.get_top_moves.side_effect = StockfishException("process died")

    with pytest.raises(EngineAnalysisError):
        await service.evaluate(chess.STARTING_FEN, 10)
    with pytest.raises(EngineAnalysisError):
        await service.evaluate(chess.STARTING_FEN, 10)
    assert stockfish.get_top_moves.call_count == 1


@pytest.mark.asyncio
async def test_no_lines_for_playable_position_is_an_error(service, stockfish):
    stockfish.get_top_moves.return_value = []

    with pytest.raises(EngineAnalysisError):
        await service.evaluate(chess.STARTING_FEN, 10)


@pytest.mark.asyncio
async def test_closed_service_refuses_work(service):
    await service.close()

    with pytest.raises(EngineAnalysisError):
        await service.evaluate(chess.STARTING_FEN, 10)


@pytest.mark.asyncio
async def test_engine_identifier(service):
    assert await service.get_engine_identifier() == "/usr/bin/stockfish_16"


@pytest.mark.asyncio
async def test_create_with_missing_executable(tmp_path):
    settings = EngineSettings(path=str(tmp_path / "no-such-stockfish"))

    with pytest.raises(EngineInitializationError):
        await StockfishService.create(settings)


@pytest.mark.asyncio
async def test_close_quits_running_engine(service, stockfish):
    process = stockfish._stockfish
    process.poll.return_value = None

    await service.close()
    await service.close()

    stockfish._put.assert_called_once_with("quit")
    process.wait.assert_called_once()
    process.kill.assert_not_called()


@pytest.mark.asyncio
async def test_close_kills_engine_that_ignores_quit(service, stockfish):
    process = stockfish._stockfish
    process.poll.return_value = None
    process.wait.side_effect = subprocess.TimeoutExpired("stockfish", 5.0)

    await service.close()

    process.kill.assert_called_once()


@pytest.mark.asyncio
async def test_close_skips_quit_for_exited_engine(service, stockfish):
    stockfish._stockfish.poll.return_value = 0

    await service.close()

    stockfish._put.assert_not_called()
