from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from . import movegen
from .board import MoveRecord, Position, promotion_row
from .move import Move, Square, on_board
from .pieces import PROMOTION_KINDS, Color, Piece, PieceKind


logger = logging.getLogger(__name__)


class GameStatus(str, Enum):
    PLAYING = "playing"
    CHECK = "check"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"


class Game:
    """Game wrapper around a position with helper operations.

    Responsibility: validate and apply moves, take them back, and keep the
    game status in step with the position. Terminal states do not block
    further calls; that is up to the caller.
    """

    def __init__(self, position: Optional[Position] = None) -> None:
        self._position = position if position is not None else Position.startpos()
        self._status = GameStatus.PLAYING
        self._refresh_status()

    @classmethod
    def new(cls) -> "Game":
        return cls(Position.startpos())

    @classmethod
    def from_setup(cls, text: str) -> "Game":
        """Raises :class:`~knightmare.engine.board.SetupError` on malformed input."""
        return cls(Position.from_setup(text))

    def reset(self) -> None:
        """Back to the standard layout with an empty history, white to move."""
        self._position = Position.startpos()
        self._refresh_status()

    def load(self, text: str) -> None:
        """Replace the position by a parsed setup; the game is unchanged on error."""
        self._position = Position.from_setup(text)
        self._refresh_status()

    def to_setup(self) -> str:
        return self._position.to_setup()

    # --- Queries ---

    @property
    def position(self) -> Position:
        return self._position

    @property
    def status(self) -> GameStatus:
        return self._status

    @property
    def side_to_move(self) -> Color:
        return self._position.side_to_move

    def piece_at(self, square: Square) -> Optional[Piece]:
        piece = self._position.piece_at(square)
        return piece.copy() if piece is not None else None

    def legal_moves(self, square: Square, analysis: bool = False) -> list[Square]:
        """Legal destinations from ``square``.

        Args:
            square (Square): Origin square.
            analysis (bool): Also answer for the side not to move.

        Returns:
            list[Square]: Destinations, each at most once. Empty when the
                square is empty or holds a piece of the side not to move
                (unless ``analysis`` is set).
        """
        row, col = square
        if not on_board(row, col):
            return []
        piece = self._position.piece_at(square)
        if piece is None:
            return []
        if piece.color is not self._position.side_to_move and not analysis:
            return []
        return movegen.legal_destinations(self._position, square)

    def all_legal_moves(self) -> list[Move]:
        """Every legal move of the side to move; promotions default to queen."""
        moves: list[Move] = []
        for origin, _ in self._position.pieces(self._position.side_to_move):
            for dest in movegen.legal_destinations(self._position, origin):
                promo = PieceKind.QUEEN if self.needs_promotion(origin, dest) else None
                moves.append(Move(origin, dest, promo))
        return moves

    def needs_promotion(self, origin: Square, destination: Square) -> bool:
        """Whether moving ``origin`` to ``destination`` would promote a pawn."""
        if not (on_board(*origin) and on_board(*destination)):
            return False
        piece = self._position.piece_at(origin)
        return (
            piece is not None
            and piece.kind is PieceKind.PAWN
            and destination[0] == promotion_row(piece.color)
        )

    def is_in_check(self, color: Optional[Color] = None) -> bool:
        return movegen.is_in_check(self._position, color or self._position.side_to_move)

    def is_check(self) -> bool:
        return self._status is GameStatus.CHECK

    def is_checkmate(self) -> bool:
        return self._status is GameStatus.CHECKMATE

    def is_stalemate(self) -> bool:
        return self._status is GameStatus.STALEMATE

    def captured(self, color: Color) -> list[Piece]:
        return self._position.captured(color)

    def move_history(self) -> list[str]:
        return [record.to_uci() for record in self._position.history]

    def last_move(self) -> Optional[MoveRecord]:
        history = self._position.history
        return history[-1] if history else None

    # --- Commands ---

    def make_move(
        self, origin: Square, destination: Square, promotion: Optional[PieceKind] = None
    ) -> bool:
        """Validate and play a move.

        Returns:
            bool: False, with nothing changed, if ``origin`` is empty, holds a
                piece of the side not to move, ``destination`` is not a legal
                destination, or ``promotion`` is not a promotable kind.
        """
        if not (on_board(*origin) and on_board(*destination)):
            logger.debug("rejected move %r -> %r: off the board", origin, destination)
            return False
        piece = self._position.piece_at(origin)
        if piece is None or piece.color is not self._position.side_to_move:
            logger.debug("rejected move %r -> %r: no piece of the side to move", origin, destination)
            return False
        if promotion is not None and promotion not in PROMOTION_KINDS:
            logger.debug("rejected move %r -> %r: cannot promote to %s", origin, destination, promotion)
            return False
        if destination not in movegen.legal_destinations(self._position, origin):
            logger.debug("rejected move %r -> %r: not legal", origin, destination)
            return False

        self._position.apply(origin, destination, promotion)
        self._refresh_status()
        return True

    def undo_move(self) -> bool:
        """Take back the last move; False if there is nothing to take back."""
        record = self._position.revert()
        if record is None:
            logger.debug("undo requested with empty history")
            return False
        self._refresh_status()
        return True

    def _refresh_status(self) -> None:
        side = self._position.side_to_move
        in_check = movegen.is_in_check(self._position, side)
        has_legal = movegen.has_legal_moves(self._position, side)
        if in_check and not has_legal:
            self._status = GameStatus.CHECKMATE
        elif in_check:
            self._status = GameStatus.CHECK
        elif not has_legal:
            self._status = GameStatus.STALEMATE
        else:
            self._status = GameStatus.PLAYING
