from __future__ import annotations

import pytest

from knightmare.engine.game import Game, GameStatus
from knightmare.engine.move import str_to_square as sq
from knightmare.engine.pieces import Color, Piece, PieceKind


SETUP = "8/4P3/8/8/8/8/8/k3K3 w -"


def test_needs_promotion_only_for_pawn_reaching_last_rank() -> None:
    game = Game.from_setup(SETUP)
    assert game.needs_promotion(sq("e7"), sq("e8"))
    assert not game.needs_promotion(sq("e1"), sq("e2"))
    assert not game.needs_promotion(sq("e4"), sq("e5"))
    assert not Game.new().needs_promotion(sq("e2"), sq("e4"))


def test_promotion_defaults_to_queen() -> None:
    game = Game.from_setup(SETUP)
    assert game.make_move(sq("e7"), sq("e8"))
    assert game.piece_at(sq("e8")) == Piece(PieceKind.QUEEN, Color.WHITE)
    assert game.move_history() == ["e7e8q"]


@pytest.mark.parametrize(
    "kind", [PieceKind.KNIGHT, PieceKind.BISHOP, PieceKind.ROOK, PieceKind.QUEEN]
)
def test_promotion_to_chosen_kind(kind: PieceKind) -> None:
    game = Game.from_setup(SETUP)
    assert game.make_move(sq("e7"), sq("e8"), kind)
    assert game.piece_at(sq("e8")) == Piece(kind, Color.WHITE)


@pytest.mark.parametrize("kind", [PieceKind.KING, PieceKind.PAWN])
def test_promotion_to_king_or_pawn_is_rejected(kind: PieceKind) -> None:
    game = Game.from_setup(SETUP)
    assert not game.make_move(sq("e7"), sq("e8"), kind)
    assert game.to_setup() == SETUP
    assert game.move_history() == []


def test_promotion_mutates_the_same_piece_and_undo_demotes_it() -> None:
    game = Game.from_setup(SETUP)
    pawn = game.position.piece_at(sq("e7"))
    assert game.make_move(sq("e7"), sq("e8"), PieceKind.ROOK)
    assert game.position.piece_at(sq("e8")) is pawn
    assert pawn is not None and pawn.kind is PieceKind.ROOK

    assert game.undo_move()
    assert game.position.piece_at(sq("e7")) is pawn
    assert pawn.kind is PieceKind.PAWN
    assert game.to_setup() == SETUP


def test_black_promotion_gives_check() -> None:
    game = Game.from_setup("k7/8/8/8/8/8/3p4/K7 b -")
    assert game.make_move(sq("d2"), sq("d1"))
    assert game.piece_at(sq("d1")) == Piece(PieceKind.QUEEN, Color.BLACK)
    assert game.status is GameStatus.CHECK
