# chess_reviewer/types.py
"""
A central module for shared data structures and service interfaces (Protocols).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import (Dict, List, Optional, Protocol, Tuple, TYPE_CHECKING,
                    runtime_checkable, TypeAlias)

if TYPE_CHECKING:
    import chess
    from chess_reviewer.config.settings import ReviewSettings
    from chess_reviewer.core.position import Position

FEN: TypeAlias = str
UCI: TypeAlias = str

class MoveClassification(str, Enum):
    BOOK = "Book"; BRILLIANT = "Brilliant"; BEST = "Best"; MISS = "Miss"
    GOOD = "Good"; DUBIOUS = "Dubious"; BLUNDER = "Blunder"

POSITIVE_CLASSIFICATIONS = frozenset({
    MoveClassification.BOOK, MoveClassification.BRILLIANT,
    MoveClassification.BEST, MoveClassification.GOOD,
})

# Book moves count towards the plain accuracy ratio but carry no weight.
CLASSIFICATION_WEIGHTS: Dict[MoveClassification, float] = {
    MoveClassification.BEST: 1.0,
    MoveClassification.BRILLIANT: 1.0,
    MoveClassification.GOOD: 0.5,
    MoveClassification.DUBIOUS: 0.25,
    MoveClassification.BLUNDER: 0.0,
    MoveClassification.MISS: 0.0,
    MoveClassification.BOOK: 0.0,
}

class GameOutcome(str, Enum):
    DRAW = "Draw"; WHITE_WIN = "WhiteWin"; BLACK_WIN = "BlackWin"

class ReviewState(str, Enum):
    IDLE = "Idle"; RUNNING = "Running"; COMPLETED = "Completed"; FAILED = "Failed"

# --- DATA CONTRACTS ---

@dataclass(frozen=True, slots=True)
class MoveRecord:
    """The move that produced a position, in both coordinate and SAN form."""
    from_square: str; to_square: str; san: str; uci: UCI
    promotion: Optional[str] = None; captured: Optional[str] = None

@dataclass(frozen=True, slots=True)
class Cursor:
    """Which branch of the timeline is active and where on it we stand."""
    on_main: bool; index: int

@dataclass(frozen=True, slots=True)
class MoveResult:
    valid: bool; cursor: Cursor

@dataclass(frozen=True, slots=True)
class EngineLine:
    """
    A single candidate continuation reported by the engine.

    Scores are absolute: positive values favour White, whichever side is to move.
    Exactly one of `score_cp` and `score_mate` is set for a well-formed line.
    """
    rank: int; score_cp: Optional[int]; score_mate: Optional[int]; pv: List[UCI]

    @property
    def is_mate(self) -> bool:
        return self.score_mate is not None

@dataclass(frozen=True, slots=True)
class EngineEvaluation:
    """
    One engine evaluation of one position.

    `depth` is the depth the reported lines were searched to. `nodes` is None
    when the engine adapter cannot report a node count.
    """
    depth: int; nodes: Optional[int]; lines: List[EngineLine]
    outcome: Optional[GameOutcome] = None

    @property
    def top_line(self) -> Optional[EngineLine]:
        return self.lines[0] if self.lines else None

    @property
    def best_move(self) -> Optional[UCI]:
        top = self.top_line
        if top is None or not top.pv:
            return None
        return top.pv[0]

@dataclass(frozen=True, slots=True)
class EvaluationRecord:
    """An evaluation paired with the delta of the move that led to it, seen from the mover."""
    evaluation: EngineEvaluation; delta: int

@dataclass(frozen=True, slots=True)
class Annotation:
    classification: MoveClassification; description: str
    evaluation: EngineEvaluation; delta: int; best_move: Optional[UCI]
    best_move_san: Optional[str] = None

@dataclass(frozen=True, slots=True)
class ClassificationResult:
    classification: MoveClassification; description: str = ""

@dataclass(frozen=True)
class ClassificationContext:
    """
    Everything the classifier needs to label the move played into `index`.

    `lookahead` holds the (position, record) pairs for the next two plies when
    they exist; it is only consulted by the sacrifice rule.
    """
    index: int; move: MoveRecord
    position_before: "Position"; position_after: "Position"
    record_before: EvaluationRecord; record_after: EvaluationRecord
    opening_name: Optional[str]; is_forced: bool
    best_move_san: Optional[str]; settings: "ReviewSettings"
    lookahead: Tuple[Tuple["Position", EvaluationRecord], ...] = ()

@dataclass(frozen=True)
class ParsedPgn:
    """A game read from notation text: headers, starting position and main-line moves."""
    headers: Dict[str, str]; starting_fen: FEN; moves: List["chess.Move"]

@dataclass(frozen=True)
class PlayerSummary:
    accuracy: float; weighted_accuracy: float
    move_counts: Dict[MoveClassification, int] = field(default_factory=dict)

@dataclass(frozen=True)
class ReviewSummary:
    white: PlayerSummary; black: PlayerSummary
    accuracy: float; weighted_accuracy: float; annotated_moves: int


# --- PROTOCOLS: Abstract Interfaces for Services ---
# These define the "contracts" that concrete implementations must adhere to.
# They enable dependency inversion and allow for easy mocking in tests.

class Heuristic(Protocol):
    """A single rule of the decision list; returns None when it does not match."""
    def apply(self, context: "ClassificationContext") -> Optional["ClassificationResult"]: ...

@runtime_checkable
class EvaluationService(Protocol):
    """Defines the abstract interface for a chess evaluation engine."""
    async def evaluate(self, fen: FEN, depth: int) -> EngineEvaluation: ...
    def cancel(self) -> None: ...
    async def get_engine_identifier(self) -> str: ...
    async def close(self) -> None: ...
