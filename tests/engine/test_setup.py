from __future__ import annotations

import pytest

from knightmare.engine.board import STARTPOS_SETUP, Position, SetupError
from knightmare.engine.move import str_to_square
from knightmare.engine.pieces import Color, Piece, PieceKind


def test_startpos_matches_setup_string() -> None:
    assert Position.startpos().to_setup() == STARTPOS_SETUP
    assert Position.from_setup(STARTPOS_SETUP).to_setup() == STARTPOS_SETUP


@pytest.mark.parametrize(
    "setup",
    [
        "4k3/8/8/8/8/8/3r4/4K2R w K",
        "r3k2r/8/8/8/8/8/8/R3K2R b KQkq",
        "7k/8/8/8/8/8/8/R7 w -",
        "r3k3/8/8/8/8/8/8/4K2R w Kq",
    ],
)
def test_round_trip_various_positions(setup: str) -> None:
    assert Position.from_setup(setup).to_setup() == setup


def test_pieces_land_on_expected_squares() -> None:
    pos = Position.from_setup("4k3/8/8/8/8/8/3r4/4K2R w K")
    assert pos.piece_at(str_to_square("e1")) == Piece(PieceKind.KING, Color.WHITE)
    assert pos.piece_at(str_to_square("h1")) == Piece(PieceKind.ROOK, Color.WHITE)
    assert pos.piece_at(str_to_square("d2")) == Piece(PieceKind.ROOK, Color.BLACK)
    assert pos.piece_at(str_to_square("e8")) == Piece(PieceKind.KING, Color.BLACK)
    assert pos.piece_at(str_to_square("a1")) is None
    assert pos.side_to_move is Color.WHITE


def test_side_token_sets_side_to_move() -> None:
    assert Position.from_setup("4k3/8/8/8/8/8/8/4K3 b").side_to_move is Color.BLACK


def test_missing_castling_token_means_full_rights() -> None:
    pos = Position.from_setup("4k3/8/8/8/8/8/8/4K3 w")
    assert pos.castling_str() == "KQkq"


def test_fen_counters_are_ignored() -> None:
    fen = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
    pos = Position.from_setup(fen)
    assert pos.to_setup() == STARTPOS_SETUP
    assert pos.en_passant is None
    assert pos.history == ()


@pytest.mark.parametrize(
    "setup",
    [
        "",  # empty
        "8/8/8/8/8/8/8/8",  # no side to move
        "k7/8/8/6B1/8/8/K7 w",  # only seven ranks
        "8/8/8/8/8/8/8/8/8 w",  # nine ranks
        "9/8/8/8/8/8/8/8 w",  # bad empty count
        "0/8/8/8/8/8/8/8 w",  # zero empty count
        "7/8/8/8/8/8/8/8 w",  # short rank
        "p8/8/8/8/8/8/8/8 w",  # wide rank
        "ppppppppp/8/8/8/8/8/8/8 w",  # wide rank, letters only
        "8/8/8/8/8/8/8/8 x",  # bad side to move
        "8/8/8/8/8/8/8/8 w A",  # bad castling
        "8/8/8/8/8/8/8/8 w KK",  # repeated castling flag
    ],
)
def test_malformed_setup_raises(setup: str) -> None:
    with pytest.raises(SetupError):
        Position.from_setup(setup)


def test_unknown_letter_is_an_error_not_a_pawn() -> None:
    with pytest.raises(SetupError, match="X"):
        Position.from_setup("rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNX w")


def test_setup_error_is_a_value_error() -> None:
    assert issubclass(SetupError, ValueError)


def test_square_names() -> None:
    assert str_to_square("a1") == (7, 0)
    assert str_to_square("h8") == (0, 7)
    assert str_to_square("e4") == (4, 4)
    for bad in ("", "i1", "a9", "a0", "e44"):
        with pytest.raises(ValueError):
            str_to_square(bad)
