"""Move generation, attack detection and king-safety filtering.

Generation works per square. ``attacks=True`` selects the unfiltered mode the
attack oracle uses, which differs only in leaving out castling. A square is
attacked when it is one of the pseudo-legal destinations of an enemy piece,
so a pawn attacks its push squares and only those diagonals holding a piece
of the other color.
"""

from __future__ import annotations

from typing import Callable, Iterable

from .board import Position, castling_rook_squares, home_row
from .move import Square, on_board
from .pieces import AUGMENTED_KINDS, Color, PieceKind


KNIGHT_OFFSETS: tuple[tuple[int, int], ...] = (
    (-2, -1),
    (-2, 1),
    (-1, -2),
    (-1, 2),
    (1, -2),
    (1, 2),
    (2, -1),
    (2, 1),
)
KING_OFFSETS: tuple[tuple[int, int], ...] = (
    (-1, -1),
    (-1, 0),
    (-1, 1),
    (0, -1),
    (0, 1),
    (1, -1),
    (1, 0),
    (1, 1),
)
BISHOP_DIRS: tuple[tuple[int, int], ...] = ((-1, -1), (-1, 1), (1, -1), (1, 1))
ROOK_DIRS: tuple[tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))
QUEEN_DIRS: tuple[tuple[int, int], ...] = ROOK_DIRS + BISHOP_DIRS

_Generator = Callable[[Position, Square, Color, bool], list[Square]]


def pseudo_legal_destinations(pos: Position, sq: Square) -> list[Square]:
    """Destinations of the piece on ``sq`` before king-safety filtering.

    Returns an empty list for an empty square. Each destination appears once,
    even when reachable both classically and by the knight augmentation.
    """
    return _generate(pos, sq, attacks=False)


def legal_destinations(pos: Position, sq: Square) -> list[Square]:
    """Destinations of the piece on ``sq`` that leave its own king safe.

    Ignores whose turn it is; turn handling belongs to the caller.
    """
    piece = pos.piece_at(sq)
    if piece is None:
        return []
    legal: list[Square] = []
    for dest in pseudo_legal_destinations(pos, sq):
        with pos.trial_move(sq, dest):
            safe = not is_in_check(pos, piece.color)
        if safe:
            legal.append(dest)
    return legal


def has_legal_moves(pos: Position, color: Color) -> bool:
    return any(legal_destinations(pos, sq) for sq, _ in pos.pieces(color))


def is_square_attacked(pos: Position, sq: Square, by_color: Color) -> bool:
    """Whether any piece of ``by_color`` reaches ``sq`` (variant moves included)."""
    for origin, _ in pos.pieces(by_color):
        if sq in _generate(pos, origin, attacks=True):
            return True
    return False


def is_in_check(pos: Position, color: Color) -> bool:
    """Whether ``color``'s king is attacked; a side without a king never is."""
    king_sq = pos.king_square(color)
    if king_sq is None:
        return False
    return is_square_attacked(pos, king_sq, color.opponent)


# --- Generation ---


def _generate(pos: Position, sq: Square, *, attacks: bool) -> list[Square]:
    piece = pos.piece_at(sq)
    if piece is None:
        return []
    moves = _GENERATORS[piece.kind](pos, sq, piece.color, attacks)
    if piece.kind in AUGMENTED_KINDS:
        moves = moves + _knight_moves(pos, sq, piece.color, attacks)
    return _dedupe(moves)


def _dedupe(squares: Iterable[Square]) -> list[Square]:
    seen = set()
    out: list[Square] = []
    for s in squares:
        if s not in seen:
            seen.add(s)
            out.append(s)
    return out


def _can_land(pos: Position, sq: Square, color: Color) -> bool:
    target = pos.piece_at(sq)
    return target is None or target.color is not color


def _step_moves(
    pos: Position, sq: Square, color: Color, offsets: tuple[tuple[int, int], ...]
) -> list[Square]:
    row, col = sq
    out: list[Square] = []
    for dr, dc in offsets:
        r, c = row + dr, col + dc
        if on_board(r, c) and _can_land(pos, (r, c), color):
            out.append((r, c))
    return out


def _slide_moves(
    pos: Position, sq: Square, color: Color, dirs: tuple[tuple[int, int], ...]
) -> list[Square]:
    row, col = sq
    out: list[Square] = []
    for dr, dc in dirs:
        r, c = row + dr, col + dc
        while on_board(r, c):
            target = pos.piece_at((r, c))
            if target is None:
                out.append((r, c))
            else:
                if target.color is not color:
                    out.append((r, c))
                break
            r += dr
            c += dc
    return out


def _pawn_moves(pos: Position, sq: Square, color: Color, attacks: bool) -> list[Square]:
    row, col = sq
    step = -1 if color is Color.WHITE else 1
    ahead = row + step
    out: list[Square] = []
    if not on_board(ahead, col):
        return out

    if pos.piece_at((ahead, col)) is None:
        out.append((ahead, col))
        start = 6 if color is Color.WHITE else 1
        two = (row + 2 * step, col)
        if row == start and pos.piece_at(two) is None:
            out.append(two)

    for dc in (-1, 1):
        c = col + dc
        if not on_board(ahead, c):
            continue
        target = pos.piece_at((ahead, c))
        if target is not None and target.color is not color:
            out.append((ahead, c))

    window = pos.en_passant
    if window is not None and window[0] == row and abs(window[1] - col) == 1:
        victim = pos.piece_at(window)
        dest = (ahead, window[1])
        if (
            victim is not None
            and victim.kind is PieceKind.PAWN
            and victim.color is not color
            and pos.piece_at(dest) is None
        ):
            out.append(dest)
    return out


def _knight_moves(pos: Position, sq: Square, color: Color, attacks: bool) -> list[Square]:
    return _step_moves(pos, sq, color, KNIGHT_OFFSETS)


def _bishop_moves(pos: Position, sq: Square, color: Color, attacks: bool) -> list[Square]:
    return _slide_moves(pos, sq, color, BISHOP_DIRS)


def _rook_moves(pos: Position, sq: Square, color: Color, attacks: bool) -> list[Square]:
    return _slide_moves(pos, sq, color, ROOK_DIRS)


def _queen_moves(pos: Position, sq: Square, color: Color, attacks: bool) -> list[Square]:
    return _slide_moves(pos, sq, color, QUEEN_DIRS)


def _king_moves(pos: Position, sq: Square, color: Color, attacks: bool) -> list[Square]:
    out = _step_moves(pos, sq, color, KING_OFFSETS)
    if not attacks:
        out.extend(_castling_destinations(pos, sq, color))
    return out


def _castling_destinations(pos: Position, sq: Square, color: Color) -> list[Square]:
    """King destinations for castling from ``sq``, both wings.

    Requires the right, the own rook on its corner, empty squares between
    king and rook, a king not in check, and transit and landing squares the
    opponent does not attack.
    """
    row = home_row(color)
    if sq != (row, 4):
        return []
    rights = pos.castle_rights(color)
    if not (rights.king_side or rights.queen_side):
        return []
    opponent = color.opponent
    if is_square_attacked(pos, sq, opponent):
        return []

    out: list[Square] = []
    wings = (
        (rights.king_side, 6, (5, 6)),
        (rights.queen_side, 2, (1, 2, 3)),
    )
    for allowed, dest_col, between in wings:
        if not allowed:
            continue
        rook_from, _ = castling_rook_squares(row, dest_col)
        rook = pos.piece_at(rook_from)
        if rook is None or rook.kind is not PieceKind.ROOK or rook.color is not color:
            continue
        if any(pos.piece_at((row, c)) is not None for c in between):
            continue
        # King walks from col 4 to dest_col; b1/b8 need not be safe
        path = range(5, dest_col + 1) if dest_col > 4 else range(3, dest_col - 1, -1)
        if any(is_square_attacked(pos, (row, c), opponent) for c in path):
            continue
        out.append((row, dest_col))
    return out


_GENERATORS: dict[PieceKind, _Generator] = {
    PieceKind.PAWN: _pawn_moves,
    PieceKind.KNIGHT: _knight_moves,
    PieceKind.BISHOP: _bishop_moves,
    PieceKind.ROOK: _rook_moves,
    PieceKind.QUEEN: _queen_moves,
    PieceKind.KING: _king_moves,
}
