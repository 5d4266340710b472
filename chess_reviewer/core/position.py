# chess_reviewer/core/position.py
"""
The immutable board snapshot that timelines are made of.

A `Position` wraps a FEN string together with the move that produced it. It
is the only place where the rest of the application touches the rules engine
(`python-chess`) directly for move legality and notation, which keeps the
timeline and the reviewer free of board-manipulation details.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Union

import chess

from chess_reviewer.exceptions import InvalidPositionError
from chess_reviewer.types import FEN, MoveRecord

PROMOTION_PIECES = ("q", "r", "b", "n")


@dataclass(frozen=True)
class Position:
    """
    One board state plus the move that led to it (None for a root position).

    Instances never change; `push` always derives a new Position.
    """
    fen: FEN
    move: Optional[MoveRecord] = None
    _board: chess.Board = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_board", chess.Board(self.fen))

    @classmethod
    def from_fen(cls, fen: FEN) -> "Position":
        """
        Loads a root position from a FEN string.

        Raises:
            InvalidPositionError: If the FEN cannot be parsed or describes an
                                  impossible board (e.g. missing kings).
        """
        try:
            board = chess.Board(fen)
        except ValueError as e:
            raise InvalidPositionError(f"Invalid FEN '{fen}': {e}") from e
        if not board.is_valid():
            raise InvalidPositionError(f"FEN '{fen}' does not describe a legal position.")
        return cls(board.fen())

    @classmethod
    def initial(cls) -> "Position":
        return cls(chess.STARTING_FEN)

    @property
    def turn(self) -> chess.Color:
        """The side to move."""
        return self._board.turn

    def board(self) -> chess.Board:
        """Returns a fresh copy of the underlying board, safe for the caller to mutate."""
        return self._board.copy(stack=False)

    def legal_moves_from(self, square: str) -> List[str]:
        """Returns the destination squares reachable from `square`, without duplicates."""
        try:
            from_sq = chess.parse_square(square)
        except ValueError:
            return []
        destinations: List[str] = []
        for move in self._board.legal_moves:
            if move.from_square == from_sq:
                name = chess.square_name(move.to_square)
                if name not in destinations:
                    destinations.append(name)
        return destinations

    def legal_move_count(self) -> int:
        return self._board.legal_moves.count()

    def is_forced(self) -> bool:
        """True if the side to move has exactly one legal move."""
        return self.legal_move_count() == 1

    def push(self, from_square: str, to_square: str, promotion: Optional[str] = None) -> Optional["Position"]:
        """
        Applies a move given in coordinates and returns the resulting Position.

        Args:
            from_square: Origin square name, e.g. "e2".
            to_square: Destination square name, e.g. "e4".
            promotion: Piece letter for pawn promotions ("q", "r", "b" or "n").

        Returns:
            The new Position, or None if the move is not legal here.
        """
        try:
            promotion_type = None
            if promotion:
                if promotion.lower() not in PROMOTION_PIECES:
                    return None
                promotion_type = chess.Piece.from_symbol(promotion.lower()).piece_type
            move = chess.Move(
                chess.parse_square(from_square),
                chess.parse_square(to_square),
                promotion=promotion_type,
            )
        except ValueError:
            return None
        return self.push_move(move)

    def push_move(self, move: Union[chess.Move, str]) -> Optional["Position"]:
        """Applies a `chess.Move` (or UCI string), returning None when it is illegal."""
        if isinstance(move, str):
            try:
                move = chess.Move.from_uci(move)
            except ValueError:
                return None
        board = self.board()
        if not board.is_legal(move):
            return None

        captured: Optional[str] = None
        if board.is_en_passant(move):
            captured = "p"
        elif (piece := board.piece_at(move.to_square)) is not None:
            captured = piece.symbol().lower()

        record = MoveRecord(
            from_square=chess.square_name(move.from_square),
            to_square=chess.square_name(move.to_square),
            san=board.san(move),
            uci=move.uci(),
            promotion=chess.piece_symbol(move.promotion) if move.promotion else None,
            captured=captured,
        )
        board.push(move)
        return Position(board.fen(), record)

    def san_for(self, uci: Optional[str]) -> Optional[str]:
        """Converts a UCI move (e.g. from an engine line) to SAN, or None if it is not legal here."""
        if not uci:
            return None
        try:
            move = chess.Move.from_uci(uci)
        except ValueError:
            return None
        if not self._board.is_legal(move):
            return None
        return self._board.san(move)
