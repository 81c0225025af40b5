from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from .move import Square, move_to_str, on_board
from .pieces import Color, Piece, PieceKind


STARTPOS_SETUP = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq"

BACK_RANK = (
    PieceKind.ROOK,
    PieceKind.KNIGHT,
    PieceKind.BISHOP,
    PieceKind.QUEEN,
    PieceKind.KING,
    PieceKind.BISHOP,
    PieceKind.KNIGHT,
    PieceKind.ROOK,
)


class SetupError(ValueError):
    """Raised when a board-setup string is malformed."""


def home_row(color: Color) -> int:
    """Back-rank row of ``color``."""
    return 7 if color is Color.WHITE else 0


def promotion_row(color: Color) -> int:
    """Farthest row for pawns of ``color``."""
    return 0 if color is Color.WHITE else 7


def castling_rook_squares(row: int, king_dest_col: int) -> tuple[Square, Square]:
    """Return ``(rook_from, rook_to)`` for a king castling onto ``king_dest_col``."""
    if king_dest_col == 6:
        return (row, 7), (row, 5)
    return (row, 0), (row, 3)


@dataclass
class CastleRights:
    king_side: bool = True
    queen_side: bool = True

    def copy(self) -> "CastleRights":
        return CastleRights(self.king_side, self.queen_side)


@dataclass(frozen=True)
class MoveRecord:
    """Everything needed to take a move back.

    ``piece`` is a snapshot of the mover before the move (a pawn stays a pawn
    here even when it promoted). ``captured_square`` is where the captured
    piece stood, which differs from ``destination`` for en passant.
    """

    origin: Square
    destination: Square
    piece: Piece
    captured: Optional[Piece]
    captured_square: Optional[Square]
    is_castling: bool
    is_en_passant: bool
    promotion: Optional[PieceKind]
    castle_rights_before: CastleRights
    en_passant_before: Optional[Square]

    def to_uci(self) -> str:
        return move_to_str(self.origin, self.destination, self.promotion)


class Position:
    """Board, side to move, castling rights, en-passant window and history.

    Notes:
    - Squares are ``(row, col)``; row 0 is black's back rank.
    - State is read through properties and changed only through
      :meth:`apply`, :meth:`revert` and :meth:`trial_move`. Legality is not
      checked here; see :mod:`knightmare.engine.movegen`.
    """

    def __init__(
        self,
        side_to_move: Color = Color.WHITE,
        castling: Optional[dict[Color, CastleRights]] = None,
        en_passant: Optional[Square] = None,
    ) -> None:
        self._grid: list[list[Optional[Piece]]] = [[None] * 8 for _ in range(8)]
        self._side_to_move = side_to_move
        if castling is None:
            castling = {Color.WHITE: CastleRights(), Color.BLACK: CastleRights()}
        self._castling = castling
        self._en_passant = en_passant
        self._history: list[MoveRecord] = []
        self._captured: dict[Color, list[Piece]] = {Color.WHITE: [], Color.BLACK: []}

    @classmethod
    def startpos(cls) -> "Position":
        """Create a position in the standard starting layout."""
        pos = cls()
        for col, kind in enumerate(BACK_RANK):
            pos._put((0, col), Piece(kind, Color.BLACK))
            pos._put((1, col), Piece(PieceKind.PAWN, Color.BLACK))
            pos._put((6, col), Piece(PieceKind.PAWN, Color.WHITE))
            pos._put((7, col), Piece(kind, Color.WHITE))
        return pos

    @classmethod
    def from_setup(cls, text: str) -> "Position":
        """Create a position from a compact setup string.

        The string holds the placement (ranks 8..1 separated by ``/``, digits
        for runs of empty squares, ``KQRBNP`` uppercase for white and
        lowercase for black), the side to move (``w`` or ``b``) and
        optionally the castling rights (subset of ``KQkq`` or ``-``). Any
        further tokens, such as FEN move counters, are ignored.

        Args:
            text (str): Setup string, e.g. ``"4k3/8/8/8/8/8/8/4K2R w K"``.

        Returns:
            Position: Position with empty history and no en-passant window.

        Raises:
            SetupError: If the rank count or a rank width is wrong, a letter is
                not a piece code, or the side or castling token is invalid.
        """
        if not text or not isinstance(text, str):
            raise SetupError("setup must be a non-empty string")
        parts = text.strip().split()
        if len(parts) < 2:
            raise SetupError("setup needs a placement and a side-to-move token")
        placement, stm = parts[0], parts[1]

        if stm == "w":
            side = Color.WHITE
        elif stm == "b":
            side = Color.BLACK
        else:
            raise SetupError(f"side to move must be 'w' or 'b', got {stm!r}")

        castling = _parse_castling(parts[2] if len(parts) > 2 else "KQkq")
        pos = cls(side_to_move=side, castling=castling)

        ranks = placement.split("/")
        if len(ranks) != 8:
            raise SetupError(f"setup board must have 8 ranks, got {len(ranks)}")
        for row, rank in enumerate(ranks):
            col = 0
            for ch in rank:
                if ch in "0123456789":
                    n = int(ch)
                    if n < 1 or n > 8:
                        raise SetupError(f"invalid empty count {ch!r} on rank {8 - row}")
                    col += n
                else:
                    if col >= 8:
                        raise SetupError(f"rank {8 - row} is wider than 8 squares")
                    try:
                        piece = Piece.from_char(ch)
                    except ValueError as e:
                        raise SetupError(str(e)) from e
                    pos._put((row, col), piece)
                    col += 1
                if col > 8:
                    raise SetupError(f"rank {8 - row} is wider than 8 squares")
            if col != 8:
                raise SetupError(f"rank {8 - row} does not sum to 8 squares")
        return pos

    def to_setup(self) -> str:
        """Serialize placement, side to move and castling rights."""
        ranks: list[str] = []
        for row in range(8):
            run = 0
            out = []
            for col in range(8):
                piece = self._grid[row][col]
                if piece is None:
                    run += 1
                    continue
                if run:
                    out.append(str(run))
                    run = 0
                out.append(piece.to_char())
            if run:
                out.append(str(run))
            ranks.append("".join(out))
        stm = "w" if self._side_to_move is Color.WHITE else "b"
        return f"{'/'.join(ranks)} {stm} {self.castling_str()}"

    def castling_str(self) -> str:
        white, black = self._castling[Color.WHITE], self._castling[Color.BLACK]
        flags = (
            ("K", white.king_side),
            ("Q", white.queen_side),
            ("k", black.king_side),
            ("q", black.queen_side),
        )
        return "".join(ch for ch, on in flags if on) or "-"

    # --- Read access ---

    @property
    def side_to_move(self) -> Color:
        return self._side_to_move

    @property
    def en_passant(self) -> Optional[Square]:
        """Destination of the last two-square pawn advance, if it was the last move."""
        return self._en_passant

    @property
    def history(self) -> tuple[MoveRecord, ...]:
        return tuple(self._history)

    def castle_rights(self, color: Color) -> CastleRights:
        return self._castling[color].copy()

    def captured(self, color: Color) -> list[Piece]:
        """Pieces of ``color`` captured so far, oldest first."""
        return [p.copy() for p in self._captured[color]]

    def piece_at(self, sq: Square) -> Optional[Piece]:
        row, col = sq
        if not on_board(row, col):
            raise ValueError(f"square off the board: {sq!r}")
        return self._grid[row][col]

    def pieces(self, color: Color) -> list[tuple[Square, Piece]]:
        """All ``(square, piece)`` pairs of ``color``, materialized as a list."""
        return [
            ((row, col), piece)
            for row in range(8)
            for col, piece in enumerate(self._grid[row])
            if piece is not None and piece.color is color
        ]

    def king_square(self, color: Color) -> Optional[Square]:
        for sq, piece in self.pieces(color):
            if piece.kind is PieceKind.KING:
                return sq
        return None

    def en_passant_victim(self, origin: Square, destination: Square) -> Optional[Square]:
        """Square of the pawn an en-passant move from ``origin`` would remove.

        A pawn moving diagonally onto an empty square captures the enemy pawn
        beside it on its own rank, in the destination's file, provided that
        pawn is the one that opened the en-passant window.
        """
        piece = self._at(origin)
        if piece is None or piece.kind is not PieceKind.PAWN:
            return None
        if origin[1] == destination[1] or self._at(destination) is not None:
            return None
        victim_sq = (origin[0], destination[1])
        if victim_sq != self._en_passant:
            return None
        victim = self._at(victim_sq)
        if victim is None or victim.color is piece.color or victim.kind is not PieceKind.PAWN:
            return None
        return victim_sq

    # --- Mutation ---

    @contextmanager
    def trial_move(self, origin: Square, destination: Square) -> Iterator[None]:
        """Temporarily relocate the piece on ``origin`` to ``destination``.

        The displaced occupant of ``destination`` (and the pawn an en-passant
        move would take) is set aside and put back when the block exits, on
        every exit path.
        """
        piece = self._at(origin)
        displaced = self._at(destination)
        victim_sq = self.en_passant_victim(origin, destination)
        victim = self._at(victim_sq) if victim_sq is not None else None

        self._put(destination, piece)
        self._put(origin, None)
        if victim_sq is not None:
            self._put(victim_sq, None)
        try:
            yield
        finally:
            if victim_sq is not None:
                self._put(victim_sq, victim)
            self._put(origin, piece)
            self._put(destination, displaced)

    def apply(
        self, origin: Square, destination: Square, promotion: Optional[PieceKind] = None
    ) -> MoveRecord:
        """Execute a move in place and push its record onto the history.

        The move must already be known to be legal; this only performs the
        mechanics: capture (en passant included), castling rook, castling
        rights, en-passant window, relocation, promotion, side flip.

        Raises:
            ValueError: If ``origin`` is empty.
        """
        piece = self._at(origin)
        if piece is None:
            raise ValueError(f"no piece on {origin!r}")
        snapshot = piece.copy()
        rights_before = self._castling[piece.color].copy()
        en_passant_before = self._en_passant

        # Capture bookkeeping
        captured: Optional[Piece] = None
        captured_sq: Optional[Square] = None
        victim_sq = self.en_passant_victim(origin, destination)
        is_en_passant = victim_sq is not None
        if victim_sq is not None:
            captured, captured_sq = self._at(victim_sq), victim_sq
            self._put(victim_sq, None)
        elif self._at(destination) is not None:
            captured, captured_sq = self._at(destination), destination
        if captured is not None:
            self._captured[captured.color].append(captured)

        # Castling: the rook lands beside the king's destination
        is_castling = piece.kind is PieceKind.KING and abs(destination[1] - origin[1]) == 2
        if is_castling:
            rook_from, rook_to = castling_rook_squares(origin[0], destination[1])
            self._put(rook_to, self._at(rook_from))
            self._put(rook_from, None)

        rights = self._castling[piece.color]
        if piece.kind is PieceKind.KING:
            rights.king_side = False
            rights.queen_side = False
        elif piece.kind is PieceKind.ROOK:
            if origin[1] == 0:
                rights.queen_side = False
            elif origin[1] == 7:
                rights.king_side = False

        if piece.kind is PieceKind.PAWN and abs(destination[0] - origin[0]) == 2:
            self._en_passant = destination
        else:
            self._en_passant = None

        self._put(destination, piece)
        self._put(origin, None)

        applied_promotion: Optional[PieceKind] = None
        if piece.kind is PieceKind.PAWN and destination[0] == promotion_row(piece.color):
            applied_promotion = promotion or PieceKind.QUEEN
            piece.kind = applied_promotion

        record = MoveRecord(
            origin=origin,
            destination=destination,
            piece=snapshot,
            captured=captured.copy() if captured is not None else None,
            captured_square=captured_sq,
            is_castling=is_castling,
            is_en_passant=is_en_passant,
            promotion=applied_promotion,
            castle_rights_before=rights_before,
            en_passant_before=en_passant_before,
        )
        self._history.append(record)
        self._side_to_move = self._side_to_move.opponent
        return record

    def revert(self) -> Optional[MoveRecord]:
        """Take back the last move; returns its record, or None if there is none."""
        if not self._history:
            return None
        record = self._history[-1]
        piece = self._at(record.destination)
        if piece is None:
            raise RuntimeError(f"history out of step with the board at {record.destination!r}")
        self._history.pop()

        self._put(record.destination, None)
        piece.kind = record.piece.kind
        self._put(record.origin, piece)

        if record.captured is not None and record.captured_square is not None:
            restored = self._captured[record.captured.color].pop()
            self._put(record.captured_square, restored)

        if record.is_castling:
            rook_from, rook_to = castling_rook_squares(record.origin[0], record.destination[1])
            self._put(rook_from, self._at(rook_to))
            self._put(rook_to, None)

        self._castling[record.piece.color] = record.castle_rights_before.copy()
        self._en_passant = record.en_passant_before
        self._side_to_move = self._side_to_move.opponent
        return record

    def _at(self, sq: Square) -> Optional[Piece]:
        return self._grid[sq[0]][sq[1]]

    def _put(self, sq: Square, piece: Optional[Piece]) -> None:
        self._grid[sq[0]][sq[1]] = piece

    def __repr__(self) -> str:
        rows = []
        for row in range(8):
            cells = [p.to_char() if p else "." for p in self._grid[row]]
            rows.append(f"{8 - row} {' '.join(cells)}")
        rows.append("  a b c d e f g h")
        return "\n".join(rows)


def _parse_castling(token: str) -> dict[Color, CastleRights]:
    rights = {
        Color.WHITE: CastleRights(False, False),
        Color.BLACK: CastleRights(False, False),
    }
    if token == "-":
        return rights
    seen = set()
    for ch in token:
        if ch not in "KQkq" or ch in seen:
            raise SetupError(f"invalid castling rights: {token!r}")
        seen.add(ch)
        color = Color.WHITE if ch.isupper() else Color.BLACK
        if ch.lower() == "k":
            rights[color].king_side = True
        else:
            rights[color].queen_side = True
    return rights
