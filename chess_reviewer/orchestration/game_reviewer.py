# chess_reviewer/orchestration/game_reviewer.py
"""
Defines the `GameReviewer`, responsible for one end-to-end review pass of a game.

A pass walks the main line in strict order:

1. Every position is evaluated by the engine at the target depth, one at a
   time. After each evaluation the delta of the move that led to it is
   computed and the progress value is advanced.
2. Once every position has an evaluation, the move into each position
   `1..N-1` is classified by the `MoveClassifier` and written to a fresh
   `AnnotationStore`.
3. The store is published and the reviewer is marked completed.

Any engine failure aborts the pass: nothing is published and the reviewer is
left in the FAILED state. A reviewer runs exactly one pass; to review again,
create a new one.
"""

import asyncio
import time
import uuid
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

import structlog

from chess_reviewer.config.settings import ReviewSettings
from chess_reviewer.core.annotations import AnnotationStore
from chess_reviewer.core.chess_utils import absolute_score, mover_delta
from chess_reviewer.core.move_classifier import MoveClassifier
from chess_reviewer.core.opening_book import OpeningBook
from chess_reviewer.exceptions import (EmptyTimelineError, EvaluationFailedError,
                                       ReviewAlreadyCompletedError,
                                       ReviewFailedError, ReviewInProgressError)
from chess_reviewer.types import (Annotation, ClassificationContext,
                                  EvaluationRecord, ReviewState)
from chess_reviewer.utils.metrics import (REVIEW_DURATION_SECONDS,
                                          REVIEWS_COMPLETED_TOTAL,
                                          REVIEWS_FAILED_TOTAL,
                                          REVIEWS_STARTED_TOTAL)

if TYPE_CHECKING:
    from chess_reviewer.core.position import Position
    from chess_reviewer.types import EvaluationService

logger = structlog.get_logger(__name__)


class GameReviewer:
    """Runs a single review pass over a main line and publishes its annotations."""

    def __init__(
        self,
        engine: "EvaluationService",
        opening_book: Optional[OpeningBook] = None,
        settings: Optional[ReviewSettings] = None,
        classifier: Optional[MoveClassifier] = None,
    ):
        """
        Initializes the GameReviewer.

        Args:
            engine: The evaluation capability, usually the shared `EvaluationProvider`.
            opening_book: Known opening positions. Defaults to an empty book.
            settings: Target depth, thresholds and score constants.
            classifier: The decision list used to label moves.
        """
        self._engine = engine
        self._opening_book = opening_book or OpeningBook.empty()
        self._settings = settings or ReviewSettings()
        self._classifier = classifier or MoveClassifier()

        self._state = ReviewState.IDLE
        self._progress = 0.0
        self._records: Optional[List[EvaluationRecord]] = None
        self._annotations: Optional[AnnotationStore] = None

    # --- Queries ---

    @property
    def state(self) -> ReviewState:
        return self._state

    @property
    def progress(self) -> float:
        """Fraction of positions evaluated so far, between 0.0 and 1.0."""
        return self._progress

    def is_busy(self) -> bool:
        return self._state == ReviewState.RUNNING

    def is_completed(self) -> bool:
        return self._state == ReviewState.COMPLETED

    def get_annotations(self) -> Optional[AnnotationStore]:
        """The published annotations, or None unless the pass completed."""
        return self._annotations if self.is_completed() else None

    def get_records(self) -> Optional[List[EvaluationRecord]]:
        """The evaluation record of every main-line position, or None unless the pass completed."""
        return list(self._records) if self.is_completed() and self._records is not None else None

    # --- Review pass ---

    def _check_can_start(self) -> None:
        if self._state == ReviewState.RUNNING:
            raise ReviewInProgressError("A game review is already in progress.")
        if self._state == ReviewState.COMPLETED:
            raise ReviewAlreadyCompletedError("This game review has already completed.")
        if self._state == ReviewState.FAILED:
            raise ReviewFailedError("This game review has failed; start a new review.")

    async def run_review(self, main_line: Sequence["Position"]) -> AnnotationStore:
        """
        Evaluates and classifies every move of `main_line`.

        Args:
            main_line: The positions of the game, starting position first.

        Returns:
            The completed `AnnotationStore`, also available via `get_annotations()`.

        Raises:
            ReviewInProgressError: If a pass is already running on this reviewer.
            ReviewAlreadyCompletedError: If this reviewer already completed a pass.
            ReviewFailedError: If this reviewer's pass already failed.
            EmptyTimelineError: If `main_line` is empty.
            EvaluationFailedError: If the engine fails on any position.
        """
        self._check_can_start()
        positions: Tuple["Position", ...] = tuple(main_line)
        if not positions:
            raise EmptyTimelineError("Cannot review an empty main line.")

        self._state = ReviewState.RUNNING
        self._progress = 0.0
        REVIEWS_STARTED_TOTAL.inc()
        start_time = time.perf_counter()

        with structlog.contextvars.bound_contextvars(review_id=uuid.uuid4().hex[:8]):
            logger.info("Starting game review.", positions=len(positions), depth=self._settings.target_depth)
            try:
                # The engine is shared; anything it was computing for somebody else is now stale.
                self._engine.cancel()
                records = await self._evaluate_main_line(positions)
                store = self._classify_main_line(positions, records)
            except Exception as e:
                self._state = ReviewState.FAILED
                REVIEWS_FAILED_TOTAL.labels(error_type=type(e.__cause__ or e).__name__).inc()
                logger.error("Game review failed.", error=str(e), evaluated=round(self._progress * len(positions)))
                raise
            except asyncio.CancelledError:
                self._state = ReviewState.FAILED
                logger.warning("Game review task was cancelled.")
                raise

            self._records = records
            self._annotations = store
            self._state = ReviewState.COMPLETED
            REVIEWS_COMPLETED_TOTAL.inc()
            REVIEW_DURATION_SECONDS.observe(time.perf_counter() - start_time)
            logger.info(
                "Game review completed.",
                annotated_moves=len(store.annotated_indices()),
                accuracy=round(store.accuracy(), 3),
            )
        return store

    async def _evaluate_main_line(self, positions: Sequence["Position"]) -> List[EvaluationRecord]:
        decisive = self._settings.scores.decisive_score_cp
        records: List[EvaluationRecord] = []
        previous_score: Optional[int] = None

        for i, position in enumerate(positions):
            try:
                evaluation = await self._engine.evaluate(position.fen, self._settings.target_depth)
                score = absolute_score(evaluation, decisive)
            except Exception as e:
                raise EvaluationFailedError(f"Evaluation failed at position {i}: {e}") from e

            if previous_score is None:
                delta = 0
            else:
                # The side that moved into position i is the side to move in position i-1.
                delta = mover_delta(previous_score, score, positions[i - 1].turn)
            records.append(EvaluationRecord(evaluation=evaluation, delta=delta))
            previous_score = score

            self._progress = (i + 1) / len(positions)
            logger.debug("Position evaluated.", index=i, score=score, delta=delta, progress=round(self._progress, 3))

        return records

    def _classify_main_line(self, positions: Sequence["Position"], records: Sequence[EvaluationRecord]) -> AnnotationStore:
        store = AnnotationStore(len(positions), first_mover=positions[0].turn)

        for i in range(1, len(positions)):
            before, after = positions[i - 1], positions[i]
            if after.move is None:
                raise ValueError(f"Main-line position {i} has no move leading to it.")

            best_move_san = before.san_for(records[i - 1].evaluation.best_move)
            lookahead = tuple((positions[j], records[j]) for j in (i + 1, i + 2) if j < len(positions))
            context = ClassificationContext(
                index=i, move=after.move,
                position_before=before, position_after=after,
                record_before=records[i - 1], record_after=records[i],
                opening_name=self._opening_book.name_for(after.fen),
                is_forced=before.is_forced(),
                best_move_san=best_move_san,
                settings=self._settings,
                lookahead=lookahead,
            )
            result = self._classifier.classify_move(context)
            store.add(i, Annotation(
                classification=result.classification,
                description=result.description,
                evaluation=records[i].evaluation,
                delta=records[i].delta,
                best_move=records[i].evaluation.best_move,
                best_move_san=best_move_san,
            ))

        return store
