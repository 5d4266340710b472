# chess_reviewer/session.py
"""
The application-facing facade over a timeline, its review and the shared engine.

A `ReviewSession` owns one `Timeline`, the metadata of the loaded game and the
annotations of its last completed review. Front ends never touch those pieces
directly; they call the session and subscribe to `SessionSnapshot`s, which are
pushed only when something observable (cursor, lines, annotations, metadata,
review state) actually changed.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, TYPE_CHECKING

import structlog

from chess_reviewer.config.settings import ReviewSettings
from chess_reviewer.core.opening_book import OpeningBook
from chess_reviewer.core.timeline import Timeline
from chess_reviewer.exceptions import EmptyTimelineError, ReviewInProgressError
from chess_reviewer.orchestration.game_reviewer import GameReviewer
from chess_reviewer.types import (FEN, Annotation, Cursor, EngineEvaluation,
                                  MoveResult, ReviewState)

if TYPE_CHECKING:
    from chess_reviewer.core.annotations import AnnotationStore
    from chess_reviewer.core.position import Position
    from chess_reviewer.services.evaluation_provider import EvaluationProvider

logger = structlog.get_logger(__name__)

ReviewerFactory = Callable[[], GameReviewer]


@dataclass(frozen=True)
class SessionSnapshot:
    """An immutable view of everything a board or move list needs to render."""
    cursor: Cursor
    position: "Position"
    main_line: Tuple["Position", ...]
    hypothetical_line: Tuple["Position", ...]
    fork_index: int
    annotation: Optional[Annotation]
    annotations: Optional["AnnotationStore"]
    metadata: Dict[str, str] = field(default_factory=dict)
    review_state: Optional[ReviewState] = None
    review_progress: float = 0.0


class ReviewSession:
    """Coordinates a `Timeline`, its annotations and the shared evaluation engine."""

    def __init__(
        self,
        provider: "EvaluationProvider",
        opening_book: Optional[OpeningBook] = None,
        settings: Optional[ReviewSettings] = None,
        reviewer_factory: Optional[ReviewerFactory] = None,
    ):
        self._provider = provider
        self._settings = settings or ReviewSettings()
        self._opening_book = opening_book or OpeningBook.empty()
        self._reviewer_factory = reviewer_factory or (
            lambda: GameReviewer(self._provider, self._opening_book, self._settings)
        )

        self._timeline = Timeline()
        self._metadata: Dict[str, str] = {}
        self._annotations: Optional["AnnotationStore"] = None
        self._reviewer: Optional[GameReviewer] = None

        self._subscribers: List[Callable[[SessionSnapshot], None]] = []
        self._last_snapshot: Optional[SessionSnapshot] = None

    # --- Observation ---

    def subscribe(self, callback: Callable[[SessionSnapshot], None]) -> Callable[[], None]:
        """
        Registers `callback` for future snapshots and returns a function that unregisters it.

        The unsubscribe function is safe to call more than once.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def snapshot(self) -> SessionSnapshot:
        cursor = self._timeline.cursor
        annotation = None
        if cursor.on_main and self._annotations is not None:
            annotation = self._annotations.get(cursor.index)
        return SessionSnapshot(
            cursor=cursor,
            position=self._timeline.current(),
            main_line=self._timeline.main_line(),
            hypothetical_line=self._timeline.hypothetical_line(),
            fork_index=self._timeline.fork_index,
            annotation=annotation,
            annotations=self._annotations,
            metadata=dict(self._metadata),
            review_state=self._reviewer.state if self._reviewer else None,
            review_progress=self._reviewer.progress if self._reviewer else 0.0,
        )

    def _publish(self) -> None:
        snapshot = self.snapshot()
        if snapshot == self._last_snapshot:
            return
        self._last_snapshot = snapshot
        for callback in list(self._subscribers):
            callback(snapshot)

    # --- Queries ---

    @property
    def timeline(self) -> Timeline:
        return self._timeline

    @property
    def metadata(self) -> Dict[str, str]:
        return dict(self._metadata)

    @property
    def annotations(self) -> Optional["AnnotationStore"]:
        return self._annotations

    @property
    def reviewer(self) -> Optional[GameReviewer]:
        """The reviewer of the most recent review request, if any."""
        return self._reviewer

    def is_reviewing(self) -> bool:
        return self._reviewer is not None and self._reviewer.is_busy()

    # --- Loading ---

    def _check_not_reviewing(self) -> None:
        if self.is_reviewing():
            raise ReviewInProgressError("Cannot change the game while a review is in progress.")

    def load_pgn(self, pgn_text: str) -> Dict[str, str]:
        """
        Loads a game and returns its headers. Previous annotations are discarded.

        Raises:
            PgnParsingError: If the text is malformed; the session is left unchanged.
            ReviewInProgressError: If a review of the current game is running.
        """
        self._check_not_reviewing()
        self._metadata = self._timeline.load_pgn(pgn_text)
        self._annotations = None
        self._reviewer = None
        logger.info("Game loaded.", plies=len(self._timeline.main_line()) - 1,
                    white=self._metadata.get("White"), black=self._metadata.get("Black"))
        self._publish()
        return dict(self._metadata)

    def load_fen(self, fen: FEN) -> None:
        """
        Starts free exploration from `fen`, discarding the loaded game.

        Raises:
            InvalidPositionError: If `fen` is malformed; the session is left unchanged.
            ReviewInProgressError: If a review of the current game is running.
        """
        self._check_not_reviewing()
        self._timeline.load_standalone(fen)
        self._metadata = {}
        self._annotations = None
        self._reviewer = None
        self._publish()

    def load_annotations(self, annotations: "AnnotationStore") -> None:
        """Attaches a completed store to the loaded main line."""
        if len(annotations) != len(self._timeline.main_line()):
            raise ValueError("Annotation store does not match the loaded main line.")
        self._annotations = annotations
        self._publish()

    def clear_annotations(self) -> None:
        self._annotations = None
        self._publish()

    # --- Moves and navigation ---

    def attempt_move(self, from_square: str, to_square: str, promotion: Optional[str] = None) -> MoveResult:
        result = self._timeline.attempt_move(from_square, to_square, promotion)
        if result.valid:
            self._publish()
        return result

    def step_backward(self) -> Cursor:
        cursor = self._timeline.step_backward()
        self._publish()
        return cursor

    def step_forward(self) -> Cursor:
        cursor = self._timeline.step_forward()
        self._publish()
        return cursor

    def jump_to_start(self) -> Cursor:
        cursor = self._timeline.jump_to_start()
        self._publish()
        return cursor

    def jump_to_end(self) -> Cursor:
        cursor = self._timeline.jump_to_end()
        self._publish()
        return cursor

    # --- Engine ---

    async def evaluate_current(self, depth: Optional[int] = None) -> EngineEvaluation:
        """
        Evaluates the position under the cursor, superseding any earlier request of this kind.

        Raises:
            ReviewInProgressError: If a review currently owns the engine.
            EvaluationCancelledError: If a newer request superseded this one.
        """
        if self.is_reviewing():
            raise ReviewInProgressError("The engine is busy with a game review.")
        self._provider.cancel()
        return await self._provider.evaluate(
            self._timeline.current().fen, depth or self._settings.target_depth, source="session"
        )

    async def review_game(self) -> "AnnotationStore":
        """
        Reviews the loaded main line with a fresh `GameReviewer` and attaches the result.

        Raises:
            EmptyTimelineError: If no game is loaded.
            ReviewInProgressError: If a review is already running.
            EvaluationFailedError: If the engine fails; no annotations are attached.
        """
        self._check_not_reviewing()
        main_line = self._timeline.main_line()
        if not main_line:
            raise EmptyTimelineError("Load a game before requesting a review.")

        self._reviewer = self._reviewer_factory()
        try:
            store = await self._reviewer.run_review(main_line)
        except (Exception, asyncio.CancelledError):
            self._publish()
            raise
        self._annotations = store
        self._publish()
        return store
