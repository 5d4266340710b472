# chess_reviewer/core/timeline.py
"""
The branching record of board positions.

A `Timeline` holds two branches:

* `main`: the positions of an imported game. Never modified by moves made
  on the board; it only changes when a new game or position is loaded.
* `hypothetical`: positions explored by the user. Making a move while on
  `main` forks a new hypothetical branch from the current main-line index;
  making a move from the middle of the hypothetical branch discards the
  abandoned future before appending.

The cursor says which branch is active and where on it we stand. While the
cursor is on `main` the hypothetical branch is empty. Stepping backwards from
the root of a hypothetical branch collapses it and returns to the fork point.
"""
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

import chess
import structlog

from chess_reviewer.core.pgn_parser import parse_pgn
from chess_reviewer.core.position import Position
from chess_reviewer.exceptions import InvalidPositionError, PgnParsingError
from chess_reviewer.types import Cursor, FEN, MoveResult

logger = structlog.get_logger(__name__)


class Timeline:
    """Main line, hypothetical line, fork index and cursor."""

    def __init__(self) -> None:
        self._main: List[Position] = []
        self._hypothetical: List[Position] = [Position.initial()]
        self._fork_index = 0
        self._cursor = Cursor(on_main=False, index=0)

    # --- Queries ---

    @property
    def cursor(self) -> Cursor:
        return self._cursor

    @property
    def fork_index(self) -> int:
        return self._fork_index

    def main_line(self) -> Tuple[Position, ...]:
        return tuple(self._main)

    def hypothetical_line(self) -> Tuple[Position, ...]:
        return tuple(self._hypothetical)

    def has_main_line(self) -> bool:
        return bool(self._main)

    def current(self) -> Position:
        """Returns the Position under the cursor."""
        branch = self._main if self._cursor.on_main else self._hypothetical
        return branch[self._cursor.index]

    # --- Loading ---

    def load_main(
        self,
        moves: Iterable[Union[chess.Move, str]],
        metadata: Optional[Mapping[str, str]] = None,
        starting_fen: FEN = chess.STARTING_FEN,
    ) -> Dict[str, str]:
        """
        Replaces the main line with `moves` played from `starting_fen`.

        The hypothetical branch is cleared and the cursor is moved to the start
        of the main line. `metadata` is passed through untouched.

        Raises:
            PgnParsingError: If a move is illegal in sequence. The timeline is
                             left unchanged.
        """
        try:
            position = Position.from_fen(starting_fen)
        except InvalidPositionError as e:
            raise PgnParsingError(f"Cannot start a main line from '{starting_fen}'.") from e
        main = [position]
        for ply, move in enumerate(moves):
            next_position = position.push_move(move)
            if next_position is None:
                raise PgnParsingError(f"Illegal move '{move}' at ply {ply + 1}.")
            main.append(next_position)
            position = next_position

        self._main = main
        self._hypothetical = []
        self._fork_index = 0
        self._cursor = Cursor(on_main=True, index=0)
        logger.debug("Main line loaded.", positions=len(main))
        return dict(metadata or {})

    def load_pgn(self, pgn_text: str) -> Dict[str, str]:
        """
        Parses PGN text and loads its main line. Returns the game's headers.

        Raises:
            PgnParsingError: If the text is malformed. The timeline is left unchanged.
        """
        parsed = parse_pgn(pgn_text)
        return self.load_main(parsed.moves, parsed.headers, starting_fen=parsed.starting_fen)

    def load_standalone(self, fen: FEN) -> None:
        """
        Discards both branches and starts a lone hypothetical branch at `fen`.

        Raises:
            InvalidPositionError: If `fen` cannot be loaded. The timeline is left unchanged.
        """
        root = Position.from_fen(fen)
        self._main = []
        self._hypothetical = [root]
        self._fork_index = 0
        self._cursor = Cursor(on_main=False, index=0)

    # --- Moves and navigation ---

    def attempt_move(self, from_square: str, to_square: str, promotion: Optional[str] = None) -> MoveResult:
        """
        Tries to play a move from the current position.

        An illegal move leaves every part of the timeline untouched and is
        reported with `valid=False`.
        """
        next_position = self.current().push(from_square, to_square, promotion)
        if next_position is None:
            return MoveResult(valid=False, cursor=self._cursor)

        if self._cursor.on_main:
            self._fork_index = self._cursor.index
            self._hypothetical = [next_position]
            self._cursor = Cursor(on_main=False, index=0)
        else:
            if self._cursor.index < len(self._hypothetical) - 1:
                del self._hypothetical[self._cursor.index + 1:]
            self._hypothetical.append(next_position)
            self._cursor = Cursor(on_main=False, index=self._cursor.index + 1)

        return MoveResult(valid=True, cursor=self._cursor)

    def step_backward(self) -> Cursor:
        if self._cursor.index > 0:
            self._cursor = Cursor(on_main=self._cursor.on_main, index=self._cursor.index - 1)
        elif not self._cursor.on_main and self._main:
            # Collapse the hypothetical branch back onto the main line.
            self._cursor = Cursor(on_main=True, index=self._fork_index)
            self._hypothetical = []
        return self._cursor

    def step_forward(self) -> Cursor:
        branch = self._main if self._cursor.on_main else self._hypothetical
        if self._cursor.index < len(branch) - 1:
            self._cursor = Cursor(on_main=self._cursor.on_main, index=self._cursor.index + 1)
        return self._cursor

    def jump_to_start(self) -> Cursor:
        """Steps backward until the cursor stops moving."""
        last = self._cursor
        while self.step_backward() != last:
            last = self._cursor
        return self._cursor

    def jump_to_end(self) -> Cursor:
        """Steps forward until the cursor stops moving."""
        last = self._cursor
        while self.step_forward() != last:
            last = self._cursor
        return self._cursor
