"""Solving pipeline.

This module wires the compiler to an external solving backend:
  - PuzzleSolver mirrors the authoring API and compiles on demand,
  - solve / validate / count_solutions / has_unique_solution hand the compiled
    text to a `SolverBackend`.

The backend (e.g. a MiniZinc runtime with chuffed) is a collaborator: anything
implementing `SolverBackend.solve` works. Compilation errors propagate; backend
failures are reported as an ERROR result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Union

from gridsmith.model.build import compile_puzzle
from gridsmith.puzzle import PuzzleModel
from gridsmith.rules.registry import RuleRegistry
from gridsmith.state import Grid, Group, VariableKind

logger = logging.getLogger(__name__)

Solution = Dict[str, Any]
SolutionCallback = Callable[[Solution], None]
ProgressCallback = Callable[[str], None]


class SolveStatus(str, Enum):
    SATISFIED = "SATISFIED"
    ALL_SOLUTIONS = "ALL_SOLUTIONS"
    UNSATISFIABLE = "UNSATISFIABLE"
    UNKNOWN = "UNKNOWN"
    ERROR = "ERROR"


@dataclass(slots=True)
class SolveOptions:
    solver: str = "chuffed"
    all_solutions: bool = False
    num_solutions: int = 1
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class SolveResult:
    status: SolveStatus
    solutions: List[Solution] = field(default_factory=list)
    time: Optional[float] = None
    error: Optional[str] = None
    model_text: Optional[str] = None

    @property
    def has_solution(self) -> bool:
        return self.status in (SolveStatus.SATISFIED, SolveStatus.ALL_SOLUTIONS)


class SolverBackend(Protocol):
    def solve(
        self,
        model_text: str,
        options: SolveOptions,
        on_solution: Optional[SolutionCallback] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SolveResult: ...


class PuzzleSolver:
    """High-level solver orchestration around one PuzzleModel."""

    def __init__(self, registry: RuleRegistry, backend: SolverBackend):
        self.registry = registry
        self.backend = backend
        self.puzzle = PuzzleModel(registry)
        self.current_model: Optional[str] = None

    # ---------- Authoring ----------

    def configure(self, grid: Grid, variables: Iterable[VariableKind]) -> PuzzleSolver:
        self.puzzle.reset()
        self.puzzle.set_grid(grid)
        self.puzzle.set_variables(variables)
        return self

    def add_global_rule(self, rule_id: str) -> PuzzleSolver:
        self.puzzle.add_global_rule(rule_id)
        return self

    def add_constraint_instance(
        self, rule_id: str, groups: Iterable[Union[Group, dict, list]]
    ) -> PuzzleSolver:
        self.puzzle.add_constraint_instance(rule_id, groups)
        return self

    def add_clue(self, row: int, col: int, variable: str, value) -> PuzzleSolver:
        self.puzzle.add_clue(row, col, variable, value)
        return self

    # ---------- Solving ----------

    def compiled_model(self) -> str:
        """Get the compiled MiniZinc model (for debugging)."""
        self.current_model = compile_puzzle(puzzle=self.puzzle, registry=self.registry)
        return self.current_model

    def solve(
        self,
        options: Optional[SolveOptions] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SolveResult:
        """Compile the puzzle and hand it to the backend.

        Solutions streamed through the backend's solution callback are
        collected into the returned result.
        """
        options = options or SolveOptions()
        model_text = self.compiled_model()
        solutions: List[Solution] = []

        def _collect(solution: Solution) -> None:
            logger.debug("Solution found: %s", solution)
            solutions.append(solution)

        try:
            result = self.backend.solve(model_text, options, _collect, on_progress)
        except Exception as e:
            logger.warning("Solver backend failed: %s", e)
            return SolveResult(
                status=SolveStatus.ERROR,
                solutions=solutions,
                error=str(e),
                model_text=model_text,
            )

        status, error = result.status, result.error
        try:
            status = SolveStatus(status)
        except ValueError:
            logger.warning("Solver backend reported unknown status %r", status)
            status, error = SolveStatus.ERROR, f"Unknown solver status {status!r}"

        return SolveResult(
            status=status,
            solutions=solutions or list(result.solutions),
            time=result.time,
            error=error,
            model_text=model_text,
        )

    def validate(self) -> bool:
        """True when the puzzle has at least one solution."""
        return self.solve(SolveOptions(num_solutions=1)).has_solution

    def count_solutions(self, limit: int = 10) -> int:
        """Count solutions, stopping at `limit`."""
        result = self.solve(SolveOptions(all_solutions=True, num_solutions=limit))
        return min(len(result.solutions), limit)

    def has_unique_solution(self) -> bool:
        return self.count_solutions(limit=2) == 1
