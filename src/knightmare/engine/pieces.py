from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Color(str, Enum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE


class PieceKind(str, Enum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"


# Kinds that also move like a knight under the variant rule
AUGMENTED_KINDS = frozenset({PieceKind.KNIGHT, PieceKind.BISHOP, PieceKind.ROOK, PieceKind.QUEEN})
PROMOTION_KINDS = frozenset({PieceKind.QUEEN, PieceKind.ROOK, PieceKind.BISHOP, PieceKind.KNIGHT})

KIND_TO_CHAR: dict[PieceKind, str] = {
    PieceKind.PAWN: "P",
    PieceKind.KNIGHT: "N",
    PieceKind.BISHOP: "B",
    PieceKind.ROOK: "R",
    PieceKind.QUEEN: "Q",
    PieceKind.KING: "K",
}
CHAR_TO_KIND: dict[str, PieceKind] = {v: k for k, v in KIND_TO_CHAR.items()}


@dataclass
class Piece:
    """A piece on the board.

    Mutable on purpose: promotion changes ``kind`` of the very piece that
    reached the last rank, and undo changes it back.
    """

    kind: PieceKind
    color: Color

    @classmethod
    def from_char(cls, ch: str) -> "Piece":
        """Build a piece from a setup letter (uppercase white, lowercase black).

        Raises:
            ValueError: If ``ch`` is not one of ``KQRBNP`` in either case.
        """
        kind = CHAR_TO_KIND.get(ch.upper()) if len(ch) == 1 else None
        if kind is None:
            raise ValueError(f"unknown piece letter: {ch!r}")
        return cls(kind, Color.WHITE if ch.isupper() else Color.BLACK)

    def to_char(self) -> str:
        ch = KIND_TO_CHAR[self.kind]
        return ch if self.color is Color.WHITE else ch.lower()

    def copy(self) -> "Piece":
        return Piece(self.kind, self.color)
