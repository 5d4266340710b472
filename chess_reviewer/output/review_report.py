# chess_reviewer/output/review_report.py
"""
Formats a completed review for people and for machines.

These are "dumb" presentation helpers: they contain no review logic and rely
on the reviewer to provide them with a finished `AnnotationStore` and the
main line it was computed for.
"""

from typing import Any, Dict, List, Mapping, Sequence, TYPE_CHECKING

import chess

from chess_reviewer.types import MoveClassification, PlayerSummary

if TYPE_CHECKING:
    from chess_reviewer.core.annotations import AnnotationStore
    from chess_reviewer.core.position import Position


def move_label(position_before: "Position", san: str) -> str:
    """Numbers a move the way PGN does, e.g. '1. e4' or '1... e5'."""
    board = position_before.board()
    dots = "." if board.turn == chess.WHITE else "..."
    return f"{board.fullmove_number}{dots} {san}"


def _player_line(name: str, player: PlayerSummary) -> str:
    return (
        f"{name:<6} accuracy {player.accuracy:6.1%}  weighted {player.weighted_accuracy:6.1%}  "
        f"best {player.move_counts.get(MoveClassification.BEST, 0)}  "
        f"blunders {player.move_counts.get(MoveClassification.BLUNDER, 0)}"
    )


def format_text_report(main_line: Sequence["Position"], store: "AnnotationStore") -> List[str]:
    """Returns one line per annotated move followed by the accuracy of each side."""
    lines: List[str] = []
    for i in store.annotated_indices():
        annotation = store[i]
        move = main_line[i].move
        label = move_label(main_line[i - 1], move.san if move else "?")
        text = f"{label:<14}{annotation.classification.value:<10}{annotation.description}"
        lines.append(text.rstrip())

    summary = store.summary()
    lines.append("")
    lines.append(_player_line("White", summary.white))
    lines.append(_player_line("Black", summary.black))
    return lines


def build_json_report(
    main_line: Sequence["Position"], store: "AnnotationStore", headers: Mapping[str, str]
) -> Dict[str, Any]:
    """Returns a JSON-serializable description of the review."""
    moves = []
    for i in store.annotated_indices():
        annotation = store[i]
        move = main_line[i].move
        moves.append({
            "index": i,
            "san": move.san if move else None,
            "uci": move.uci if move else None,
            "classification": annotation.classification.value,
            "description": annotation.description,
            "delta": annotation.delta,
            "best_move_san": annotation.best_move_san,
            "best_reply_uci": annotation.best_move,
        })

    summary = store.summary()

    def player(p: PlayerSummary) -> Dict[str, Any]:
        return {
            "accuracy": p.accuracy,
            "weighted_accuracy": p.weighted_accuracy,
            "move_counts": {label.value: count for label, count in p.move_counts.items()},
        }

    return {
        "headers": dict(headers),
        "moves": moves,
        "accuracy": summary.accuracy,
        "weighted_accuracy": summary.weighted_accuracy,
        "white": player(summary.white),
        "black": player(summary.black),
    }
