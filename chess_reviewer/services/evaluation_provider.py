# chess_reviewer/services/evaluation_provider.py
"""
Provides a high-level service for fetching engine evaluations.

This module contains the `EvaluationProvider`, which acts as the single owner of
the shared engine. Several parties want evaluations from it (the review pass,
the position currently shown on the board) but the engine can only work on one
position at a time, so the provider enforces a cancel-before-use discipline:

1. Every request takes a ticket from a generation counter.
2. `cancel()` advances the counter, which turns every outstanding ticket stale.
3. Requests are serialized by a lock; a stale request never reaches the engine
   and a request that became stale while running raises instead of returning.

This decouples the callers from the engine's concurrency limits and makes sure
no caller ever receives an evaluation meant for somebody else.
"""
import asyncio
import time
from typing import TYPE_CHECKING

import structlog

from chess_reviewer.exceptions import EvaluationCancelledError
from chess_reviewer.types import FEN, EngineEvaluation
from chess_reviewer.utils.metrics import (EVALUATION_DURATION_SECONDS,
                                          EVALUATIONS_CANCELLED_TOTAL,
                                          EVALUATIONS_TOTAL)

if TYPE_CHECKING:
    from chess_reviewer.types import EvaluationService

logger = structlog.get_logger(__name__)


class EvaluationProvider:
    """A coordinator that hands out exclusive, cancellable access to one `EvaluationService`."""

    def __init__(self, engine: "EvaluationService"):
        """
        Initializes the EvaluationProvider.

        Args:
            engine: An object conforming to the `EvaluationService` protocol.
        """
        self._engine = engine
        self._lock = asyncio.Lock()
        self._generation = 0

    @property
    def engine(self) -> "EvaluationService":
        return self._engine

    def cancel(self) -> None:
        """
        Abandons every outstanding request and asks the engine to stop.

        Idempotent: calling it with nothing in flight is harmless.
        """
        self._generation += 1
        self._engine.cancel()
        logger.debug("Outstanding evaluations cancelled.", generation=self._generation)

    async def evaluate(self, fen: FEN, depth: int, source: str = "review") -> EngineEvaluation:
        """
        Evaluates `fen` to `depth` once the engine is free.

        Args:
            fen: The position to evaluate.
            depth: The requested search depth.
            source: A label for metrics, e.g. "review" or "session".

        Raises:
            EvaluationCancelledError: If `cancel()` was called after this request was made.
            EngineError: Any failure reported by the engine is propagated unchanged.
        """
        ticket = self._generation
        EVALUATIONS_TOTAL.labels(source=source).inc()

        async with self._lock:
            if ticket != self._generation:
                EVALUATIONS_CANCELLED_TOTAL.inc()
                raise EvaluationCancelledError("Evaluation superseded before it started.", engine=self._engine)

            start_time = time.perf_counter()
            evaluation = await self._engine.evaluate(fen, depth)
            EVALUATION_DURATION_SECONDS.observe(time.perf_counter() - start_time)

        if ticket != self._generation:
            EVALUATIONS_CANCELLED_TOTAL.inc()
            raise EvaluationCancelledError("Evaluation superseded while in progress.", engine=self._engine)

        logger.debug("Position evaluated.", fen=fen, depth=depth, source=source, lines=len(evaluation.lines))
        return evaluation

    async def get_engine_identifier(self) -> str:
        return await self._engine.get_engine_identifier()

    async def close(self) -> None:
        self.cancel()
        await self._engine.close()
