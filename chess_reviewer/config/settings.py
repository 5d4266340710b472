# chess_reviewer/config/settings.py
"""
Configuration settings for the Chess Reviewer application, powered by Pydantic.

This module centralizes all tunable parameters, default values, and configuration
schemas. Using Pydantic allows for type-safe, self-documenting configuration
that can be loaded from environment variables, providing a clear separation of
configuration from code.
"""
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# The opening book shipped inside the package, resolved independently of the working directory.
DEFAULT_OPENING_BOOK_PATH = Path(__file__).resolve().parent.parent / "data" / "openings.json"

# --- Nested Models for Configuration Schemas ---

class ClassificationSettings(BaseModel):
    """
    Defines the delta thresholds and switches of the move classifier.

    Deltas are signed centipawn changes seen from the side that moved, so a
    move that loses 60 centipawns has a delta of -60.
    """
    good_threshold_cp: int = Field(50, description="A move losing at most this many centipawns is 'Good'.")
    blunder_threshold_cp: int = Field(200, description="A move losing at most this many centipawns is 'Dubious'; anything worse is a 'Blunder'.")
    detect_brilliant: bool = Field(False, description="Enable the three-ply piece sacrifice rule that yields 'Brilliant'.")
    brilliant_min_material: float = Field(3.0, description="Minimum material (in pawns) the opponent must win by capturing the sacrificed piece.")

    @model_validator(mode='after')
    def validate_thresholds_are_sorted(self) -> 'ClassificationSettings':
        """Ensures that the Good threshold does not exceed the Blunder threshold."""
        if self.good_threshold_cp < 0 or self.blunder_threshold_cp < 0:
            raise ValueError("Configuration error: classification thresholds must be non-negative.")
        if self.good_threshold_cp > self.blunder_threshold_cp:
            raise ValueError("Configuration error: good_threshold_cp must not exceed blunder_threshold_cp.")
        return self

class ScoreSettings(BaseModel):
    """Constants used to turn an engine evaluation into a single absolute score."""
    decisive_score_cp: int = Field(1000, description="Score assigned to a won position or a forced mate (negated for Black).")

class ReviewSettings(BaseModel):
    """Groups all settings related to a full game review pass."""
    target_depth: int = Field(10, ge=1, description="The search depth requested for every position of the main line.")
    classification: ClassificationSettings = Field(default_factory=ClassificationSettings)
    scores: ScoreSettings = Field(default_factory=ScoreSettings)

class EngineSettings(BaseModel):
    """Configuration for the chess engine instance."""
    path: str = Field(description="The file path to the Stockfish executable.")
    depth: int = Field(10, description="The default search depth for this engine.")
    parameters: dict = Field(default_factory=dict, description="A dictionary of UCI parameters to set on engine startup (e.g., {'Threads': 4, 'Hash': 1024}).")

# --- Main Application Settings Class ---

class Settings(BaseSettings):
    """
    Main configuration class for the application.

    It loads settings from environment variables with the prefix 'CHESS_REVIEWER_'.
    Nested models can be configured using a double underscore delimiter, e.g.,
    `CHESS_REVIEWER_REVIEW__TARGET_DEPTH=15`.
    """
    model_config = SettingsConfigDict(env_prefix='CHESS_REVIEWER_', env_nested_delimiter='__')

    review: ReviewSettings = Field(default_factory=ReviewSettings)
    stockfish_path: Optional[str] = None
    engine_parameters: dict = Field(default_factory=lambda: {"Threads": 1, "Hash": 128})
    opening_book_path: str = str(DEFAULT_OPENING_BOOK_PATH)
    default_log_level: str = "INFO"

# A singleton instance of the settings, accessible throughout the application.
settings = Settings()
