# chess_reviewer/core/move_classifier.py
"""
Contains the central classification engine of the application.

This module provides the `MoveClassifier`, a pure component that labels a move
by walking an ordered chain of composable `Heuristic` objects. This "Chain of
Responsibility" pattern keeps every rule small and independently testable: the
first heuristic that claims the move decides its classification, so the order
of the chain *is* the priority of the rules.
"""
from typing import List, Optional, TYPE_CHECKING

import structlog

from chess_reviewer.core.heuristics import (BestMoveHeuristic, BlunderHeuristic,
                                            BookMoveHeuristic,
                                            BrilliantSacrificeHeuristic,
                                            DubiousMoveHeuristic,
                                            GoodMoveHeuristic,
                                            MissedMateHeuristic)
from chess_reviewer.utils.metrics import MOVE_CLASSIFICATIONS

if TYPE_CHECKING:
    from chess_reviewer.types import (ClassificationContext,
                                      ClassificationResult, Heuristic)

logger = structlog.get_logger(__name__)


class MoveClassifier:
    """
    A stateless classifier that runs a decision list to classify a single chess move.

    The Blunder rule at the end of the chain always matches, so every move
    receives exactly one label.
    """

    def __init__(self, heuristics: Optional[List["Heuristic"]] = None):
        """Initializes the classifier and defines the ordered heuristic chain."""
        self._heuristic_chain: List["Heuristic"] = heuristics or [
            BookMoveHeuristic(),            # 1. Position is a known opening
            BrilliantSacrificeHeuristic(),  # 2. Sound sacrifice (opt-in)
            BestMoveHeuristic(),            # 3. Engine's top move
            MissedMateHeuristic(),          # 4. Threw away a forced mate
            GoodMoveHeuristic(),            # 5. Forced, or small loss
            DubiousMoveHeuristic(),         # 6. Moderate loss
            BlunderHeuristic(),             # 7. Fallback
        ]

    def classify_move(self, context: "ClassificationContext") -> "ClassificationResult":
        """
        Runs the decision list for the move played into `context.index`.

        Args:
            context: A `ClassificationContext` containing the evaluation records
                     on both sides of the move and the surrounding positions.

        Returns:
            The `ClassificationResult` of the first heuristic that matched.

        Raises:
            RuntimeError: If a custom chain has no rule that matches the move.
        """
        for heuristic in self._heuristic_chain:
            result = heuristic.apply(context)
            if result is not None:
                MOVE_CLASSIFICATIONS.labels(classification=result.classification.value).inc()
                logger.debug(
                    "Move classified.", index=context.index, move=context.move.san,
                    classification=result.classification.value,
                    rule=type(heuristic).__name__
                )
                return result
        raise RuntimeError(f"No heuristic classified the move at index {context.index}.")
