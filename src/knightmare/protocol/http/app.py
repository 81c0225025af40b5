from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Response
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from .error import (
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
    setup_error_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from .session import InMemorySessionStore
from ...engine.board import STARTPOS_SETUP, SetupError
from ...engine.game import Game, GameStatus
from ...engine.move import Square, square_to_str, str_to_square
from ...engine.perft import perft as perft_nodes
from ...engine.pieces import Color, PieceKind


logger = logging.getLogger(__name__)


class CreateGameRequest(BaseModel):
    setup: Optional[str] = Field(
        default=None, description="Board setup string; standard layout when omitted"
    )


class CreateGameResponse(BaseModel):
    game_id: str
    setup: str


class SetPositionRequest(BaseModel):
    setup: str = Field(..., description="Board setup string, e.g. '4k3/8/8/8/8/8/8/4K2R w K'")


class MoveRequest(BaseModel):
    origin: str = Field(..., description="Origin square, e.g. e2")
    destination: str = Field(..., description="Destination square, e.g. e4")
    promotion: Optional[PieceKind] = Field(
        default=None, description="Promotion kind; queen when a pawn promotes without one"
    )


class MovesResponse(BaseModel):
    square: str
    destinations: list[str]


class PromotionResponse(BaseModel):
    needs_promotion: bool


class PerftRequest(BaseModel):
    setup: str = Field(default=STARTPOS_SETUP, description="Board setup string")
    depth: int = Field(default=1, ge=0, le=3)


class CastlingState(BaseModel):
    king_side: bool
    queen_side: bool


class GameState(BaseModel):
    game_id: str
    setup: str
    side_to_move: Color
    status: GameStatus
    in_check: bool
    castling: dict[str, CastlingState]
    en_passant: Optional[str]
    captured: dict[str, list[PieceKind]]
    last_move: Optional[str]
    move_history: list[str]


def create_app(log_level: str = "INFO") -> FastAPI:
    app = FastAPI(title="Knightmare Rules API", version="0.1.0")

    logging.basicConfig(level=log_level)

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(SetupError, setup_error_handler)
    app.add_exception_handler(Exception, exception_handler)

    store = InMemorySessionStore()

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    async def create_game(req: Optional[CreateGameRequest] = None) -> CreateGameResponse:
        game = _load_game(req.setup) if req is not None and req.setup else Game.new()
        game_id = store.create(game)
        return CreateGameResponse(game_id=game_id, setup=game.to_setup())

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    async def get_state(game_id: str) -> GameState:
        return _state(game_id, _require_game(store, game_id))

    @app.delete("/api/games/{game_id}", status_code=204)
    async def delete_game(game_id: str) -> Response:
        if not store.delete(game_id):
            raise HTTPException(status_code=404, detail="game not found")
        return Response(status_code=204)

    @app.get("/api/games/{game_id}/moves/{square}", response_model=MovesResponse)
    async def legal_moves(game_id: str, square: str, analysis: bool = False) -> MovesResponse:
        game = _require_game(store, game_id)
        dests = game.legal_moves(_parse_square(square), analysis=analysis)
        return MovesResponse(square=square, destinations=[square_to_str(d) for d in dests])

    @app.get("/api/games/{game_id}/promotion", response_model=PromotionResponse)
    async def needs_promotion(game_id: str, origin: str, destination: str) -> PromotionResponse:
        game = _require_game(store, game_id)
        return PromotionResponse(
            needs_promotion=game.needs_promotion(_parse_square(origin), _parse_square(destination))
        )

    @app.post("/api/games/{game_id}/move", response_model=GameState)
    async def make_move(game_id: str, req: MoveRequest) -> GameState:
        game = _require_game(store, game_id)
        origin, destination = _parse_square(req.origin), _parse_square(req.destination)
        if not game.make_move(origin, destination, req.promotion):
            raise HTTPException(status_code=400, detail="illegal move")
        logger.info(
            "move played",
            extra={"game_id": game_id, "move": game.move_history()[-1], "status": game.status.value},
        )
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/undo", response_model=GameState)
    async def undo(game_id: str) -> GameState:
        game = _require_game(store, game_id)
        if not game.undo_move():
            raise HTTPException(status_code=400, detail="no moves to undo")
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/reset", response_model=GameState)
    async def reset(game_id: str) -> GameState:
        game = _require_game(store, game_id)
        game.reset()
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/position", response_model=GameState)
    async def set_position(game_id: str, req: SetPositionRequest) -> GameState:
        game = _require_game(store, game_id)
        try:
            game.load(req.setup)
        except SetupError as e:
            raise HTTPException(status_code=400, detail=f"invalid setup: {e}")
        return _state(game_id, game)

    @app.post("/api/perft")
    async def perft(req: PerftRequest) -> dict[str, int]:
        game = _load_game(req.setup)
        return {"nodes": perft_nodes(game, req.depth)}

    return app


def _require_game(store: InMemorySessionStore, game_id: str) -> Game:
    game = store.get(game_id)
    if game is None:
        raise HTTPException(status_code=404, detail="game not found")
    return game


def _load_game(setup: str) -> Game:
    try:
        return Game.from_setup(setup)
    except SetupError as e:
        raise HTTPException(status_code=400, detail=f"invalid setup: {e}")


def _parse_square(name: str) -> Square:
    try:
        return str_to_square(name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _state(game_id: str, game: Game) -> GameState:
    pos = game.position
    castling = {}
    for color in Color:
        rights = pos.castle_rights(color)
        castling[color.value] = CastlingState(
            king_side=rights.king_side, queen_side=rights.queen_side
        )
    history = game.move_history()
    return GameState(
        game_id=game_id,
        setup=game.to_setup(),
        side_to_move=game.side_to_move,
        status=game.status,
        in_check=game.is_in_check(),
        castling=castling,
        en_passant=square_to_str(pos.en_passant) if pos.en_passant is not None else None,
        captured={c.value: [p.kind for p in game.captured(c)] for c in Color},
        last_move=history[-1] if history else None,
        move_history=history,
    )


# Default app for non-factory servers
app = create_app()
