# chess_reviewer/core/chess_utils.py
"""
Provides a collection of pure, stateless functions for evaluation arithmetic.

This module acts as the "math library" for the review. It has no dependencies
on other parts of this application except for the data contracts defined in
`types.py`. Its functions are deterministic and form the foundational
building blocks for the classifier and the reviewer.
"""

from typing import Dict, Final, Optional

import chess

from chess_reviewer.exceptions import EngineAnalysisError
from chess_reviewer.types import EngineEvaluation, GameOutcome

# A constant dictionary mapping piece types to their standard pawn-unit values.
PIECE_VALUES: Final[Dict[chess.PieceType, float]] = {
    chess.PAWN: 1.0,
    chess.KNIGHT: 3.0,
    chess.BISHOP: 3.0,
    chess.ROOK: 5.0,
    chess.QUEEN: 9.0,
    chess.KING: 0.0,
}

DEFAULT_DECISIVE_SCORE: Final[int] = 1000


def absolute_score(evaluation: EngineEvaluation, decisive_score: int = DEFAULT_DECISIVE_SCORE) -> int:
    """
    Collapses an evaluation into one White-positive number.

    The game outcome wins if the position is terminal (draw 0, decisive
    results +/- `decisive_score`), then the top line's centipawns, then
    +/- `decisive_score` for a forced mate.

    Raises:
        EngineAnalysisError: If the evaluation has neither an outcome nor a scored top line.
    """
    if evaluation.outcome is not None:
        return {
            GameOutcome.DRAW: 0,
            GameOutcome.WHITE_WIN: decisive_score,
            GameOutcome.BLACK_WIN: -decisive_score,
        }[evaluation.outcome]

    top = evaluation.top_line
    if top is None:
        raise EngineAnalysisError("Evaluation has no outcome and no candidate line.")
    if top.is_mate:
        return -decisive_score if top.score_mate < 0 else decisive_score
    if top.score_cp is not None:
        return top.score_cp
    raise EngineAnalysisError("Top engine line carries no score.")


def mover_delta(score_before: int, score_after: int, mover: chess.Color) -> int:
    """
    The change in absolute score caused by a move, seen from the side that made it.

    Positive means the move improved things for `mover`.
    """
    delta = score_after - score_before
    return delta if mover == chess.WHITE else -delta


def mate_for(evaluation: EngineEvaluation, color: chess.Color) -> Optional[int]:
    """
    Returns the mate distance if the top line shows a forced mate delivered by `color`.

    Mate scores are absolute, so White mates are positive and Black mates negative.
    """
    top = evaluation.top_line
    if top is None or not top.is_mate:
        return None
    if (top.score_mate > 0) == (color == chess.WHITE):
        return abs(top.score_mate)
    return None


def shows_mate(evaluation: EngineEvaluation) -> bool:
    top = evaluation.top_line
    return top is not None and top.is_mate


def is_win_for(evaluation: EngineEvaluation, color: chess.Color) -> bool:
    """True if the evaluation reports a finished game won by `color`."""
    winning = GameOutcome.WHITE_WIN if color == chess.WHITE else GameOutcome.BLACK_WIN
    return evaluation.outcome == winning


def same_coordinates(move_uci: Optional[str], other_uci: Optional[str]) -> bool:
    """Compares two UCI moves by origin and destination only, ignoring promotion suffixes."""
    if not move_uci or not other_uci:
        return False
    return move_uci[:4] == other_uci[:4]


def piece_value(symbol: Optional[str]) -> float:
    """Pawn-unit value of a piece letter such as 'n' or 'Q'; 0 for None."""
    if not symbol:
        return 0.0
    return PIECE_VALUES[chess.Piece.from_symbol(symbol).piece_type]
