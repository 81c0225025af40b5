from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .pieces import KIND_TO_CHAR, PieceKind


# (row, col); row 0 is black's back rank, row 7 is white's back rank
Square = tuple[int, int]


def on_board(row: int, col: int) -> bool:
    return 0 <= row < 8 and 0 <= col < 8


@dataclass(frozen=True)
class Move:
    """Engine-internal move representation.

    Attributes:
        origin (Square): Square the piece leaves.
        destination (Square): Square the piece lands on.
        promotion (Optional[PieceKind]): Requested promotion kind, if any.
    """

    origin: Square
    destination: Square
    promotion: Optional[PieceKind] = None

    def to_uci(self) -> str:
        """Serialize the move as coordinates, e.g. ``"e2e4"`` or ``"e7e8q"``."""
        return move_to_str(self.origin, self.destination, self.promotion)


def move_to_str(origin: Square, destination: Square, promotion: Optional[PieceKind] = None) -> str:
    suffix = KIND_TO_CHAR[promotion].lower() if promotion is not None else ""
    return square_to_str(origin) + square_to_str(destination) + suffix


def str_to_square(s: str) -> Square:
    """Convert algebraic notation into a ``(row, col)`` square.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        Square: ``(row, col)`` with row 0 on rank 8.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    col = ord(s[0]) - ord("a")
    row = 8 - int(s[1])
    return (row, col)


def square_to_str(sq: Square) -> str:
    """Convert a ``(row, col)`` square into algebraic notation.

    Raises:
        ValueError: If ``sq`` lies outside the board.
    """
    row, col = sq
    if not on_board(row, col):
        raise ValueError(f"invalid square: {sq!r}")
    return chr(ord("a") + col) + str(8 - row)
