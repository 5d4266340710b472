# chess_reviewer/containers.py
"""
Defines the Dependency Injection (DI) container for the application.

This module uses the `punq` library to manage the creation and wiring of
all services and components for a review session. This centralizes the
application's dependency graph, making it more maintainable, testable,
and extensible.

The engine itself is started asynchronously and therefore created outside the
container; it is registered as a ready-made instance.
"""

import punq

from chess_reviewer.config.settings import ReviewSettings, Settings
from chess_reviewer.core.move_classifier import MoveClassifier
from chess_reviewer.core.opening_book import OpeningBook
from chess_reviewer.orchestration.game_reviewer import GameReviewer
from chess_reviewer.services.evaluation_provider import EvaluationProvider
from chess_reviewer.session import ReviewSession
from chess_reviewer.types import EvaluationService


def get_container(app_settings: Settings, engine: EvaluationService) -> punq.Container:
    """
    Initializes and returns a DI container configured for one engine instance.
    """
    container = punq.Container()

    # Register instances that are created outside the container's control.
    container.register(Settings, instance=app_settings)
    container.register(ReviewSettings, instance=app_settings.review)
    container.register(EvaluationService, instance=engine)

    container.register(
        OpeningBook, factory=lambda: OpeningBook.load(app_settings.opening_book_path), scope=punq.Scope.singleton
    )
    # A single provider per container: it is the only gate to the engine.
    container.register(
        EvaluationProvider, factory=lambda: EvaluationProvider(engine), scope=punq.Scope.singleton
    )
    container.register(MoveClassifier, factory=lambda: MoveClassifier())

    # Reviewers run exactly one pass, so every resolve builds a new one.
    def create_game_reviewer() -> GameReviewer:
        return GameReviewer(
            container.resolve(EvaluationProvider),
            container.resolve(OpeningBook),
            app_settings.review,
            container.resolve(MoveClassifier),
        )

    container.register(GameReviewer, factory=create_game_reviewer)
    container.register(
        ReviewSession,
        factory=lambda: ReviewSession(
            container.resolve(EvaluationProvider),
            container.resolve(OpeningBook),
            app_settings.review,
            reviewer_factory=lambda: container.resolve(GameReviewer),
        ),
        scope=punq.Scope.singleton,
    )

    return container
