# chess_reviewer/services/stockfish_service.py
"""
Provides a concrete implementation of the `EvaluationService` protocol for Stockfish.

This module acts as an adapter to a live Stockfish chess engine subprocess,
encapsulating the logic for initialization, communication, and evaluation. It
uses the `python-stockfish` library to manage the engine process and translates
its output into the application's internal data contracts (`EngineEvaluation`).

Scores reported by the library's `get_top_moves` are already on the absolute
scale (positive favours White), which is the scale used throughout this
application. Finished games (checkmate, stalemate) are answered directly from
the rules library without consulting the engine.
"""

import asyncio
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, TYPE_CHECKING

import chess
import structlog
from stockfish import Stockfish, StockfishException

from chess_reviewer.exceptions import (EngineAnalysisError,
                                       EngineInitializationError,
                                       EvaluationCancelledError)
from chess_reviewer.types import (FEN, EngineEvaluation, EngineLine,
                                  EvaluationService, GameOutcome)

if TYPE_CHECKING:
    from chess_reviewer.config.settings import EngineSettings

logger = structlog.get_logger(__name__)

QUIT_TIMEOUT_SECONDS = 5.0


def terminal_outcome(board: chess.Board) -> Optional[GameOutcome]:
    """Returns the outcome of a checkmated or stalemated board, or None while play continues."""
    if board.is_checkmate():
        return GameOutcome.BLACK_WIN if board.turn == chess.WHITE else GameOutcome.WHITE_WIN
    if board.is_stalemate():
        return GameOutcome.DRAW
    return None


class StockfishService(EvaluationService):
    """
    A service that manages and interacts with a Stockfish chess engine subprocess.

    This class provides a thread-safe, asynchronous interface to the synchronous
    `python-stockfish` library by running its blocking calls in a separate
    thread via `asyncio.to_thread`.
    """

    def __init__(self, stockfish_instance: Stockfish, version: str, identifier: str, multipv: int = 1):
        """
        Private constructor. Use the `create` class method for safe instantiation.

        Args:
            stockfish_instance: An initialized `stockfish.Stockfish` object.
            version: The major version of the Stockfish engine.
            identifier: A unique identifier for the engine executable path.
            multipv: How many candidate lines to request per evaluation.
        """
        self._stockfish: Optional[Stockfish] = stockfish_instance
        self._version = version
        self._identifier = identifier
        self._multipv = max(1, multipv)
        self._lock = asyncio.Lock()  # Protects access to the single stockfish instance
        self._generation = 0
        self._is_closed = False

    @classmethod
    def _create_sync(cls, settings: "EngineSettings") -> "StockfishService":
        """
        Synchronous part of the initialization, designed to be run in a thread.

        This method handles the blocking I/O of finding and starting the
        Stockfish subprocess.
        """
        if not settings.path:
            raise EngineInitializationError("No Stockfish executable configured.")
        stockfish_path = Path(settings.path)
        if not stockfish_path.is_file():
            raise EngineInitializationError(f"Stockfish executable not found at {stockfish_path}")

        try:
            stockfish = Stockfish(
                path=str(stockfish_path.resolve()),
                depth=settings.depth,
                parameters=settings.parameters
            )
            # A simple health check to ensure the engine is responsive.
            if not stockfish.is_fen_valid(chess.STARTING_FEN):
                raise EngineInitializationError("Stockfish process started but FEN validation failed.")

            version = str(stockfish.get_stockfish_major_version())
            identifier = str(stockfish_path.resolve())
            multipv = int(settings.parameters.get("MultiPV", 1))
        except (StockfishException, OSError) as e:
            raise EngineInitializationError(f"Failed to initialize Stockfish: {e}") from e

        logger.info("Stockfish engine started.", path=identifier, version=version)
        return cls(stockfish, version, identifier, multipv=multipv)

    @classmethod
    async def create(cls, settings: "EngineSettings") -> "StockfishService":
        """Asynchronously creates and initializes a StockfishService instance."""
        return await asyncio.to_thread(cls._create_sync, settings)

    def _ensure_engine_ready(self) -> Stockfish:
        """Raises an error if the service is closed or the engine has crashed."""
        if self._is_closed or self._stockfish is None:
            raise EngineAnalysisError("StockfishService is closed or the engine has failed.", engine=self)
        return self._stockfish

    def _parse_stockfish_output(self, top_moves: List[Dict]) -> List[EngineLine]:
        """Converts the raw dict output from the library into `EngineLine` dataclasses."""
        lines = []
        for i, move in enumerate(top_moves):
            # The 'PV' from the library, when present, is a list of subsequent moves.
            pv = [move.get("Move")] + move.get("PV", [])
            lines.append(
                EngineLine(
                    rank=i + 1,
                    score_cp=move.get("Centipawn"),
                    score_mate=move.get("Mate"),
                    pv=[m for m in pv if m],  # Filter out potential None values
                )
            )
        return lines

    def _evaluate_sync(self, fen: FEN, depth: int) -> EngineEvaluation:
        """Synchronous evaluation logic, designed to be run in a thread."""
        try:
            board = chess.Board(fen)
        except ValueError as e:
            raise EngineAnalysisError(f"Cannot evaluate malformed FEN '{fen}'.", engine=self) from e

        outcome = terminal_outcome(board)
        if outcome is not None:
            return EngineEvaluation(depth=depth, nodes=None, lines=[], outcome=outcome)

        stockfish = self._ensure_engine_ready()
        try:
            stockfish.set_depth(depth)
            stockfish.set_fen_position(fen)
            top_moves_raw = stockfish.get_top_moves(self._multipv)
        except StockfishException as e:
            # If the engine crashes mid-analysis, we mark it as unusable.
            self._stockfish = None
            raise EngineAnalysisError("Stockfish process crashed during analysis.", engine=self) from e

        lines = self._parse_stockfish_output(top_moves_raw)
        if not lines:
            raise EngineAnalysisError(f"Stockfish returned no lines for a playable position '{fen}'.", engine=self)
        # get_top_moves only keeps lines searched to exactly the requested depth and drops the node count.
        return EngineEvaluation(depth=depth, nodes=None, lines=lines)

    async def evaluate(self, fen: FEN, depth: int) -> EngineEvaluation:
        """
        Evaluates a single position by running the sync logic in a separate thread.

        The internal lock ensures that only one evaluation can run on this engine
        instance at a time. A request overtaken by `cancel()` raises
        `EvaluationCancelledError` instead of returning its result.
        """
        generation = self._generation
        async with self._lock:
            if generation != self._generation:
                raise EvaluationCancelledError("Evaluation cancelled before it started.", engine=self)
            evaluation = await asyncio.to_thread(self._evaluate_sync, fen, depth)
        if generation != self._generation:
            raise EvaluationCancelledError("Evaluation cancelled while in progress.", engine=self)
        return evaluation

    def cancel(self) -> None:
        """Marks every outstanding request as stale. Idempotent."""
        self._generation += 1

    async def get_engine_identifier(self) -> str:
        """Returns a unique identifier for this engine configuration."""
        return f"{self._identifier}_{self._version}"

    def _close_sync(self) -> None:
        """Synchronous helper to explicitly quit the engine subprocess."""
        stockfish, self._stockfish = self._stockfish, None
        if stockfish is None:
            return
        # python-stockfish only sends `quit` from its finalizer, which may never run at interpreter exit.
        process = stockfish._stockfish
        if process.poll() is not None:
            return
        try:
            stockfish._put("quit")
            process.wait(timeout=QUIT_TIMEOUT_SECONDS)
        except (OSError, subprocess.TimeoutExpired):
            logger.warning("Stockfish did not quit in time, killing it.", path=self._identifier)
            process.kill()

    async def close(self) -> None:
        """Gracefully terminates the Stockfish engine subprocess."""
        if self._is_closed:
            return
        self._is_closed = True
        self.cancel()
        async with self._lock:
            await asyncio.to_thread(self._close_sync)
        logger.info("Stockfish engine closed.", path=self._identifier)
