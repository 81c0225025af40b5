#!/usr/bin/env python3
from __future__ import annotations

import argparse
import time

from knightmare.engine.board import STARTPOS_SETUP
from knightmare.engine.game import Game
from knightmare.engine.perft import perft


def main() -> None:
    parser = argparse.ArgumentParser(description="Run perft on a given setup and depth")
    parser.add_argument(
        "--setup", type=str, default=STARTPOS_SETUP, help="Board setup string (default: startpos)"
    )
    parser.add_argument("--depth", type=int, default=2, help="Perft depth (default: 2)")
    args = parser.parse_args()

    game = Game.from_setup(args.setup)
    start = time.perf_counter()
    nodes = perft(game, args.depth)
    dt = time.perf_counter() - start
    print(f"nodes={nodes} depth={args.depth} time_ms={int(dt*1000)} nps={int(nodes/max(dt,1e-9))}")


if __name__ == "__main__":
    main()
