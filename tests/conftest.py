from pathlib import Path

import pytest

from gridsmith.puzzle import PuzzleModel
from gridsmith.rules.registry import RuleRegistry
from gridsmith.state import Grid, VariableKind


@pytest.fixture(scope="session")
def puzzles_dir():
    return Path(__file__).resolve().parents[1] / "puzzles"


@pytest.fixture(scope="session")
def registry():
    return RuleRegistry.load()


@pytest.fixture
def numbers4():
    return VariableKind("numbers-all", min=1, max=4)


@pytest.fixture
def sudoku4(registry, numbers4):
    """Empty 4x4 puzzle with 2x2 boxes and one numeric layer."""
    puzzle = PuzzleModel(registry)
    puzzle.set_grid(Grid.boxes(4, 4, 2, 2))
    puzzle.set_variables([numbers4])
    return puzzle
