from __future__ import annotations

import logging
from pathlib import Path

from gridsmith.io.puzzle import load_puzzle
from gridsmith.model.build import compile_puzzle
from gridsmith.rules.registry import RuleRegistry

# --- Puzzle-specific configuration ---
PUZZLE_PATH = "puzzles/arrow-killer-6x6.yaml"
OUTPUT_PATH = None  # e.g., "build/arrow-killer-6x6.mzn"; None prints to stdout


def main() -> int:
    logging.basicConfig(level=logging.INFO)

    registry = RuleRegistry.load()
    puzzle = load_puzzle(PUZZLE_PATH, registry)
    model = compile_puzzle(puzzle=puzzle, registry=registry)

    if OUTPUT_PATH is None:
        print(model)
    else:
        out = Path(OUTPUT_PATH)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(model, encoding="utf-8")
        print(f"[Compile] {puzzle!r} -> {out}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
