# chess_reviewer/core/annotations.py
"""
Stores the per-move results of a review and aggregates them into accuracy figures.

The store is a fixed-size sequence indexed like the main line it was built
for: slot `i` holds the annotation of the move that produced position `i`.
Slot 0 is the starting position and is never annotated.
"""
from collections import Counter
from typing import Dict, Iterator, List, Optional

import chess

from chess_reviewer.types import (CLASSIFICATION_WEIGHTS,
                                  POSITIVE_CLASSIFICATIONS, Annotation,
                                  MoveClassification, PlayerSummary,
                                  ReviewSummary)


def mover_of(index: int, first_mover: chess.Color = chess.WHITE) -> chess.Color:
    """
    The side that played the move into `index` of a main line.

    With White to move at the start, odd indices are White's moves and even
    indices are Black's.
    """
    return first_mover if index % 2 == 1 else not first_mover


class AnnotationStore:
    """A fixed-size list of optional `Annotation`s, one slot per main-line position."""

    def __init__(self, size: int, first_mover: chess.Color = chess.WHITE):
        if size < 0:
            raise ValueError("AnnotationStore size must be non-negative.")
        self.first_mover = first_mover
        self._slots: List[Optional[Annotation]] = [None] * size

    def __len__(self) -> int:
        return len(self._slots)

    def __getitem__(self, index: int) -> Optional[Annotation]:
        return self._slots[index]

    def __iter__(self) -> Iterator[Optional[Annotation]]:
        return iter(self._slots)

    def get(self, index: int) -> Optional[Annotation]:
        """Returns the annotation at `index`, or None if it is empty or out of range."""
        if 0 <= index < len(self._slots):
            return self._slots[index]
        return None

    def add(self, index: int, annotation: Annotation) -> None:
        """
        Places `annotation` in slot `index`.

        Raises:
            ValueError: If `index` is 0, out of range, or already annotated.
        """
        if index == 0:
            raise ValueError("The starting position cannot be annotated.")
        if not 0 < index < len(self._slots):
            raise ValueError(f"Index {index} is outside the annotated range 1..{len(self._slots) - 1}.")
        if self._slots[index] is not None:
            raise ValueError(f"Index {index} is already annotated.")
        self._slots[index] = annotation

    def annotated_indices(self, color: Optional[chess.Color] = None) -> List[int]:
        """Indices of non-empty slots, optionally restricted to the moves of one side."""
        return [
            i for i, annotation in enumerate(self._slots)
            if annotation is not None and (color is None or mover_of(i, self.first_mover) == color)
        ]

    def _annotations(self, color: Optional[chess.Color]) -> List[Annotation]:
        return [self._slots[i] for i in self.annotated_indices(color)]

    def count(self, classification: MoveClassification, color: Optional[chess.Color] = None) -> int:
        return sum(1 for a in self._annotations(color) if a.classification == classification)

    def counts(self, color: Optional[chess.Color] = None) -> Dict[MoveClassification, int]:
        """Number of annotations per label. Labels that never occur are reported as 0."""
        tally = Counter(a.classification for a in self._annotations(color))
        return {label: tally.get(label, 0) for label in MoveClassification}

    def accuracy(self, color: Optional[chess.Color] = None) -> float:
        """
        Share of annotated moves labelled Book, Brilliant, Best or Good.

        Returns 0.0 when there is nothing to score.
        """
        annotations = self._annotations(color)
        if not annotations:
            return 0.0
        positive = sum(1 for a in annotations if a.classification in POSITIVE_CLASSIFICATIONS)
        return positive / len(annotations)

    def weighted_accuracy(self, color: Optional[chess.Color] = None) -> float:
        """
        Average label weight over the annotated moves.

        Best and Brilliant weigh 1.0, Good 0.5, Dubious 0.25 and everything
        else 0. Returns 0.0 when there is nothing to score.
        """
        annotations = self._annotations(color)
        if not annotations:
            return 0.0
        return sum(CLASSIFICATION_WEIGHTS[a.classification] for a in annotations) / len(annotations)

    def summary(self) -> ReviewSummary:
        def player(color: chess.Color) -> PlayerSummary:
            return PlayerSummary(
                accuracy=self.accuracy(color),
                weighted_accuracy=self.weighted_accuracy(color),
                move_counts=self.counts(color),
            )

        return ReviewSummary(
            white=player(chess.WHITE),
            black=player(chess.BLACK),
            accuracy=self.accuracy(),
            weighted_accuracy=self.weighted_accuracy(),
            annotated_moves=len(self.annotated_indices()),
        )
