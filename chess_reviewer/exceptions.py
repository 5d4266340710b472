# chess_reviewer/exceptions.py
"""
Defines custom exceptions for the Chess Reviewer application.

Centralizing exceptions in this module prevents circular dependencies that can
arise when different components need to catch errors defined in others. A clear
exception hierarchy, with a common `ChessReviewerError` base, allows callers to
catch everything the application raises in one place while still being able to
react to specific failures.

Illegal moves are deliberately absent: the timeline reports them through a
`MoveResult` instead of raising.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from chess_reviewer.types import EvaluationService


class ChessReviewerError(Exception):
    """Base class for all application-specific, catchable errors."""
    pass


class InvalidPositionError(ChessReviewerError):
    """Raised when a board encoding (FEN) cannot be loaded."""
    pass


class EngineError(ChessReviewerError):
    """
    Base class for errors related to the evaluation engine.

    Attributes:
        engine: An optional reference to the failed engine service instance,
                allowing for targeted cleanup or replacement.
    """
    def __init__(self, message: str, engine: Optional["EvaluationService"] = None):
        super().__init__(message)
        self.engine = engine


class EngineInitializationError(EngineError):
    """
    Raised when the engine process fails to initialize correctly.

    This typically occurs if the executable path is invalid, file permissions
    are incorrect, or the engine process starts but fails to respond to initial
    UCI commands.
    """
    pass


class EngineAnalysisError(EngineError):
    """
    Raised when an error occurs while an engine evaluates a position.

    This covers crashed processes as well as evaluations that carry neither a
    game outcome nor a single candidate line.
    """
    pass


class EvaluationCancelledError(EngineError):
    """Raised for an evaluation request that was superseded or cancelled."""
    pass


class PgnError(ChessReviewerError):
    """Base class for errors related to PGN (Portable Game Notation) handling."""
    pass


class PgnParsingError(PgnError):
    """
    Raised when notation text cannot be turned into a game.

    Covers unreadable text as well as game-level integrity errors such as
    illegal moves. The timeline is left untouched when this is raised.
    """
    pass


class ReviewError(ChessReviewerError):
    """Base class for errors raised by a game review pass."""
    pass


class EmptyTimelineError(ReviewError):
    """Raised when a review is requested for an empty main line."""
    pass


class ReviewInProgressError(ReviewError):
    """Raised when a review is started while another pass is running."""
    pass


class ReviewAlreadyCompletedError(ReviewError):
    """Raised when a review is started on a reviewer that already completed."""
    pass


class ReviewFailedError(ReviewError):
    """Raised when a review is started on a reviewer whose pass already failed."""
    pass


class EvaluationFailedError(ReviewError):
    """
    Raised when the evaluation engine fails mid-review.

    Fatal to the pass: no partial annotations are published and the caller
    must start over with a fresh reviewer.
    """
    pass
