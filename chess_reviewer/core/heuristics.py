# chess_reviewer/core/heuristics.py
"""
Contains a collection of concrete `Heuristic` implementations.

Each heuristic is a single rule of the move classification decision list,
adhering to the `Heuristic` protocol defined in `types.py`. A heuristic either
claims the move by returning a `ClassificationResult` or passes by returning
None, in which case the next rule in the chain is consulted. The order of the
chain is owned by `MoveClassifier`.
"""

from typing import Optional, TYPE_CHECKING

import chess

from chess_reviewer.core.chess_utils import (absolute_score, is_win_for, mate_for,
                                             mover_delta, piece_value,
                                             same_coordinates, shows_mate)
from chess_reviewer.types import ClassificationResult, Heuristic, MoveClassification

if TYPE_CHECKING:
    from chess_reviewer.types import ClassificationContext


def _best_move_sentence(context: "ClassificationContext", prefix: str = "The best move was") -> str:
    if not context.best_move_san:
        return ""
    return f"{prefix} {context.best_move_san}."


class BookMoveHeuristic(Heuristic):
    """Claims any move whose resulting position is in the opening book."""
    def apply(self, context: "ClassificationContext") -> Optional[ClassificationResult]:
        if context.opening_name is None:
            return None
        return ClassificationResult(
            MoveClassification.BOOK, f"This move plays the {context.opening_name}."
        )


class BrilliantSacrificeHeuristic(Heuristic):
    """
    Identifies a sound piece sacrifice across three plies.

    For a move A played into `index`:

    1. A does not lose more than the Good threshold.
    2. The reply B captures material worth at least `brilliant_min_material`,
       B is the engine's top move and was not the only legal move.
    3. The follow-up C does not recapture on B's destination square, and the
       evaluation after C is strictly better for A's side than it was before A.

    Only active when `detect_brilliant` is enabled.
    """
    def apply(self, context: "ClassificationContext") -> Optional[ClassificationResult]:
        s = context.settings.classification
        if not s.detect_brilliant or len(context.lookahead) < 2:
            return None
        if context.record_after.delta < -s.good_threshold_cp:
            return None

        (reply_position, _), (follow_position, follow_record) = context.lookahead[:2]
        reply, follow = reply_position.move, follow_position.move
        if reply is None or follow is None:
            return None

        # The reply must actually cash in the offered material...
        if piece_value(reply.captured) < s.brilliant_min_material:
            return None
        # ...and be the engine's choice from a position that offered alternatives.
        if not same_coordinates(reply.uci, context.record_after.evaluation.best_move):
            return None
        if context.position_after.is_forced():
            return None

        if follow.captured is not None and follow.to_square == reply.to_square:
            return None

        decisive = context.settings.scores.decisive_score_cp
        before = absolute_score(context.record_before.evaluation, decisive)
        after = absolute_score(follow_record.evaluation, decisive)
        if mover_delta(before, after, context.position_before.turn) <= 0:
            return None

        piece_name = chess.piece_name(chess.Piece.from_symbol(reply.captured).piece_type)
        return ClassificationResult(
            MoveClassification.BRILLIANT, f"This move sacrifices the {piece_name} for a lasting advantage."
        )


class BestMoveHeuristic(Heuristic):
    """Claims the move if it matches the engine's top line from the previous position."""
    def apply(self, context: "ClassificationContext") -> Optional[ClassificationResult]:
        if same_coordinates(context.move.uci, context.record_before.evaluation.best_move):
            return ClassificationResult(MoveClassification.BEST)
        return None


class MissedMateHeuristic(Heuristic):
    """Claims the move if the mover had a forced mate before it and no longer has one."""
    def apply(self, context: "ClassificationContext") -> Optional[ClassificationResult]:
        mover = context.position_before.turn
        mate_before = mate_for(context.record_before.evaluation, mover)
        if mate_before is None:
            return None

        after = context.record_after.evaluation
        if is_win_for(after, mover) or mate_for(after, mover) is not None:
            return None

        description = f"A mate in {mate_before} was available."
        if context.best_move_san:
            description = f"A mate in {mate_before} was available with {context.best_move_san}."
        return ClassificationResult(MoveClassification.MISS, description)


class GoodMoveHeuristic(Heuristic):
    """Claims forced moves and any move that stays within the Good threshold."""
    def apply(self, context: "ClassificationContext") -> Optional[ClassificationResult]:
        if context.is_forced:
            return ClassificationResult(MoveClassification.GOOD, "This move was forced.")

        if context.record_after.delta < -context.settings.classification.good_threshold_cp:
            return None

        description = ""
        best_move = context.record_before.evaluation.best_move
        if best_move and not same_coordinates(context.move.uci, best_move):
            description = _best_move_sentence(context, prefix="A better move was")
        return ClassificationResult(MoveClassification.GOOD, description)


class DubiousMoveHeuristic(Heuristic):
    """Claims moves that lose more than the Good threshold but stay within the Blunder threshold."""
    def apply(self, context: "ClassificationContext") -> Optional[ClassificationResult]:
        if context.record_after.delta < -context.settings.classification.blunder_threshold_cp:
            return None
        return ClassificationResult(MoveClassification.DUBIOUS, _best_move_sentence(context))


class BlunderHeuristic(Heuristic):
    """The fallback rule. Always claims the move."""
    def apply(self, context: "ClassificationContext") -> Optional[ClassificationResult]:
        opponent = not context.position_before.turn
        parts = []
        mate_against = mate_for(context.record_after.evaluation, opponent)
        if mate_against is not None and not shows_mate(context.record_before.evaluation):
            parts.append(f"This move allows a mate in {mate_against}.")
        if sentence := _best_move_sentence(context):
            parts.append(sentence)
        return ClassificationResult(MoveClassification.BLUNDER, " ".join(parts))
