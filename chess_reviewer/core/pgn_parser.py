# chess_reviewer/core/pgn_parser.py
"""
Parses PGN text into the application's internal data contracts.

This module acts as an Anti-Corruption Layer, translating data from the external
`python-chess` library into a pure `ParsedPgn` (headers, starting position and
ordered main-line moves). It is designed to be resilient to common PGN format
issues, such as games starting from custom positions (FENs), and to refuse
anything it cannot replay move by move.
"""
import io
from typing import List

import chess
import chess.pgn
import structlog

from chess_reviewer.exceptions import PgnParsingError
from chess_reviewer.types import ParsedPgn

logger = structlog.get_logger(__name__)


def parse_pgn(pgn_text: str) -> ParsedPgn:
    """
    Reads the first game of `pgn_text`.

    Args:
        pgn_text: The notation text, headers optional.

    Returns:
        A `ParsedPgn` with the headers as a plain `dict[str, str]`, the FEN of
        the starting position and the main-line moves in order.

    Raises:
        PgnParsingError: If no game can be read, the reader reported errors
                         (e.g. an illegal SAN token), or a move cannot be
                         replayed from the starting position.
    """
    if not pgn_text or not pgn_text.strip():
        raise PgnParsingError("PGN text is empty.")

    try:
        game = chess.pgn.read_game(io.StringIO(pgn_text))
    except (ValueError, RuntimeError) as e:
        raise PgnParsingError(f"Could not read PGN: {e}") from e

    if game is None:
        raise PgnParsingError("No game found in PGN text.")
    if game.errors:
        logger.warning("Rejecting PGN with reader errors.", errors=[str(err) for err in game.errors])
        raise PgnParsingError(f"Malformed PGN: {game.errors[0]}")

    headers = {key: value for key, value in game.headers.items()}

    try:
        # Use game.board() instead of chess.Board() to correctly initialize
        # the board from the PGN's FEN header if it exists.
        board = game.board()
    except ValueError as e:
        raise PgnParsingError(f"Invalid FEN header: {e}") from e
    starting_fen = board.fen()

    moves: List[chess.Move] = []
    try:
        for move in game.mainline_moves():
            # board.push() is the true validator of a move's legality in sequence.
            if not board.is_legal(move):
                raise chess.IllegalMoveError(f"illegal move {move.uci()} in {board.fen()}")
            board.push(move)
            moves.append(move)
    except (AssertionError, chess.IllegalMoveError, ValueError) as e:
        game_id_str = f"'{headers.get('White', '?')} vs. {headers.get('Black', '?')}'"
        logger.warning(
            "Rejecting game due to PGN integrity error during move processing.",
            game=game_id_str, error=str(e)
        )
        raise PgnParsingError(f"Corrupt or illegal game data in game {game_id_str}.") from e

    return ParsedPgn(headers=headers, starting_fen=starting_fen, moves=moves)
