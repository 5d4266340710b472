# chess_reviewer/core/opening_book.py
"""
A static position-to-opening-name lookup.

The book is a JSON object mapping FEN strings to opening names, loaded once at
start-up. Keys are normalized through `python-chess` so that lookups match the
canonical FENs produced by `Position`. A book that cannot be loaded is never
fatal: the review simply runs without `Book` classifications.
"""
import json
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

import chess
import structlog

from chess_reviewer.types import FEN

logger = structlog.get_logger(__name__)


def _normalize_fen(fen: str) -> Optional[FEN]:
    try:
        return chess.Board(fen).fen()
    except ValueError:
        return None


class OpeningBook:
    """An immutable mapping from exact post-move FEN to opening name."""

    def __init__(self, entries: Optional[Mapping[str, str]] = None):
        self._entries: Dict[FEN, str] = {}
        skipped = 0
        for fen, name in (entries or {}).items():
            normalized = _normalize_fen(fen)
            if normalized is None or not isinstance(name, str):
                skipped += 1
                continue
            self._entries[normalized] = name
        if skipped:
            logger.warning("Skipped invalid opening book entries.", skipped=skipped)

    @classmethod
    def empty(cls) -> "OpeningBook":
        return cls()

    @classmethod
    def load(cls, path: Union[str, Path]) -> "OpeningBook":
        """
        Loads a JSON opening book from `path`.

        Any failure (missing file, unreadable file, invalid JSON, a payload
        that is not an object) is logged and yields an empty book.
        """
        book_path = Path(path)
        try:
            with book_path.open("r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Opening book unavailable, continuing without it.", path=str(book_path), error=str(e))
            return cls.empty()

        if not isinstance(payload, dict):
            logger.warning("Opening book is not a JSON object, continuing without it.", path=str(book_path))
            return cls.empty()

        book = cls(payload)
        logger.info("Opening book loaded.", path=str(book_path), entries=len(book))
        return book

    def name_for(self, fen: FEN) -> Optional[str]:
        return self._entries.get(fen)

    def __contains__(self, fen: object) -> bool:
        return fen in self._entries

    def __len__(self) -> int:
        return len(self._entries)
