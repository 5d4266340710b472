# tests/core/test_annotations.py
import chess
import pytest

from chess_reviewer.core.annotations import AnnotationStore
from chess_reviewer.types import (Annotation, EngineEvaluation, EngineLine,
                                  MoveClassification)

EVALUATION = EngineEvaluation(depth=10, nodes=0, lines=[EngineLine(1, 0, None, ["e2e4"])])


def _annotation(classification):
    return Annotation(
        classification=classification, description="", evaluation=EVALUATION,
        delta=0, best_move="e2e4",
    )


@pytest.fixture
def store():
    store = AnnotationStore(5)
    store.add(1, _annotation(MoveClassification.BEST))
    store.add(2, _annotation(MoveClassification.BLUNDER))
    store.add(3, _annotation(MoveClassification.GOOD))
    store.add(4, _annotation(MoveClassification.DUBIOUS))
    return store


def test_add_rejects_invalid_indices():
    store = AnnotationStore(3)
    store.add(1, _annotation(MoveClassification.BEST))

    with pytest.raises(ValueError):
        store.add(0, _annotation(MoveClassification.BEST))
    with pytest.raises(ValueError):
        store.add(3, _annotation(MoveClassification.BEST))
    with pytest.raises(ValueError):
        store.add(-1, _annotation(MoveClassification.BEST))
    with pytest.raises(ValueError):
        store.add(1, _annotation(MoveClassification.GOOD))


def test_store_is_fixed_size():
    store = AnnotationStore(4)
    assert len(store) == 4
    assert list(store) == [None, None, None, None]
    assert store.get(10) is None


def test_empty_store_scores_zero():
    store = AnnotationStore(3)
    assert store.accuracy() == 0.0
    assert store.weighted_accuracy() == 0.0
    assert AnnotationStore(0).accuracy() == 0.0


def test_accuracy_over_annotated_moves(store):
    assert store.accuracy() == pytest.approx(0.5)
    assert store.weighted_accuracy() == pytest.approx((1.0 + 0.0 + 0.5 + 0.25) / 4)


def test_accuracy_per_colour(store):
    assert store.accuracy(chess.WHITE) == pytest.approx(1.0)
    assert store.weighted_accuracy(chess.WHITE) == pytest.approx(0.75)
    assert store.accuracy(chess.BLACK) == pytest.approx(0.0)
    assert store.weighted_accuracy(chess.BLACK) == pytest.approx(0.125)


def test_accuracy_per_colour_when_black_moves_first():
    store = AnnotationStore(3, first_mover=chess.BLACK)
    store.add(1, _annotation(MoveClassification.BEST))
    store.add(2, _annotation(MoveClassification.BLUNDER))

    assert store.annotated_indices(chess.BLACK) == [1]
    assert store.accuracy(chess.BLACK) == 1.0
    assert store.accuracy(chess.WHITE) == 0.0


def test_book_counts_as_accurate_but_carries_no_weight():
    store = AnnotationStore(2)
    store.add(1, _annotation(MoveClassification.BOOK))
    assert store.accuracy() == 1.0
    assert store.weighted_accuracy() == 0.0


@pytest.mark.parametrize("classification", list(MoveClassification))
def test_scores_stay_within_bounds(classification):
    store = AnnotationStore(3)
    store.add(1, _annotation(classification))
    store.add(2, _annotation(MoveClassification.BLUNDER))
    assert 0.0 <= store.accuracy() <= 1.0
    assert 0.0 <= store.weighted_accuracy() <= 1.0


def test_counts_and_summary(store):
    counts = store.counts()
    assert counts[MoveClassification.BEST] == 1
    assert counts[MoveClassification.MISS] == 0
    assert store.count(MoveClassification.GOOD, chess.WHITE) == 1
    assert store.annotated_indices() == [1, 2, 3, 4]

    summary = store.summary()

    assert summary.annotated_moves == 4
    assert summary.accuracy == pytest.approx(0.5)
    assert summary.white.move_counts[MoveClassification.BEST] == 1
    assert summary.black.move_counts[MoveClassification.BLUNDER] == 1
