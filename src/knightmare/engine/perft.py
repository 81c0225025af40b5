from __future__ import annotations

from .game import Game


def perft(game: Game, depth: int) -> int:
    """Compute perft node count for `game` at `depth`.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    Promotions count once per destination (as a queen). The game is walked
    with make/undo and left as it was found.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1

    nodes = 0
    for m in game.all_legal_moves():
        if not game.make_move(m.origin, m.destination, m.promotion):
            raise RuntimeError(f"generated move rejected: {m.to_uci()}")
        try:
            nodes += perft(game, depth - 1)
        finally:
            game.undo_move()
    return nodes
