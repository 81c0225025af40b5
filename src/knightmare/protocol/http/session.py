from __future__ import annotations

import logging
import threading
import uuid
from typing import Optional

from ...engine.game import Game


logger = logging.getLogger(__name__)


class InMemorySessionStore:
    """Thread-safe in-memory store of game sessions.

    Only the id -> game map is guarded; a single game is never shared
    between concurrent operations, since each endpoint runs to completion
    on the event loop without awaiting.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._games: dict[str, Game] = {}

    def create(self, game: Optional[Game] = None) -> str:
        """Store ``game`` (a fresh one if omitted) and return its `game_id`."""
        gid = str(uuid.uuid4())
        if game is None:
            game = Game.new()
        with self._lock:
            self._games[gid] = game
        logger.info("game created", extra={"game_id": gid})
        return gid

    def get(self, game_id: str) -> Optional[Game]:
        with self._lock:
            return self._games.get(game_id)

    def delete(self, game_id: str) -> bool:
        """Drop a session; False if it did not exist."""
        with self._lock:
            removed = self._games.pop(game_id, None) is not None
        if removed:
            logger.info("game deleted", extra={"game_id": game_id})
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._games)
