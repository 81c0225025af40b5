from .board import STARTPOS_SETUP, CastleRights, MoveRecord, Position, SetupError
from .game import Game, GameStatus
from .move import Move, Square, square_to_str, str_to_square
from .pieces import Color, Piece, PieceKind

__all__ = [
    "STARTPOS_SETUP",
    "CastleRights",
    "Color",
    "Game",
    "GameStatus",
    "Move",
    "MoveRecord",
    "Piece",
    "PieceKind",
    "Position",
    "SetupError",
    "Square",
    "square_to_str",
    "str_to_square",
]
