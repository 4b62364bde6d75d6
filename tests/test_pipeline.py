"""Solver orchestration against a scripted backend."""

import pytest

from gridsmith.errors import ConfigurationError
from gridsmith.pipeline import PuzzleSolver, SolveOptions, SolveResult, SolveStatus
from gridsmith.state import Grid, VariableKind


class ScriptedBackend:
    """Streams a fixed list of solutions, honoring `num_solutions`."""

    def __init__(self, solutions=(), status=SolveStatus.SATISFIED, fail=None):
        self.solutions = list(solutions)
        self.status = status
        self.fail = fail
        self.calls = []

    def solve(self, model_text, options, on_solution=None, on_progress=None):
        self.calls.append((model_text, options))
        if self.fail is not None:
            raise self.fail
        if on_progress is not None:
            on_progress("searching")
        for solution in self.solutions[: options.num_solutions]:
            on_solution(solution)
        return SolveResult(status=self.status, time=0.25)


def _solver(backend, registry):
    return (
        PuzzleSolver(registry, backend)
        .configure(Grid.boxes(4, 4, 2, 2), [VariableKind("numbers-all", min=1, max=4)])
        .add_global_rule("sudoku-standard")
        .add_clue(0, 0, "numbers-all", 1)
    )


def test_solve_collects_streamed_solutions(registry):
    backend = ScriptedBackend([{"numbers": [[1]]}])
    progress = []
    result = _solver(backend, registry).solve(on_progress=progress.append)

    assert result.status is SolveStatus.SATISFIED
    assert result.has_solution
    assert result.solutions == [{"numbers": [[1]]}]
    assert result.time == 0.25
    assert result.model_text.startswith('include "globals.mzn";')
    assert progress == ["searching"]

    model_text, options = backend.calls[0]
    assert model_text == result.model_text
    assert options.solver == "chuffed"


def test_backend_status_strings_are_normalized(registry):
    result = _solver(ScriptedBackend(status="UNSATISFIABLE"), registry).solve()
    assert result.status is SolveStatus.UNSATISFIABLE
    assert not result.has_solution


def test_unknown_backend_status_becomes_error_result(registry):
    backend = ScriptedBackend([{"n": 1}], status="OPTIMAL_SOLUTION")
    result = _solver(backend, registry).solve()

    assert result.status is SolveStatus.ERROR
    assert "OPTIMAL_SOLUTION" in result.error
    assert result.solutions == [{"n": 1}]
    assert not result.has_solution


def test_backend_failure_becomes_error_result(registry):
    backend = ScriptedBackend(fail=RuntimeError("minizinc not installed"))
    result = _solver(backend, registry).solve()

    assert result.status is SolveStatus.ERROR
    assert result.error == "minizinc not installed"
    assert result.model_text is not None


def test_compile_errors_propagate(registry):
    backend = ScriptedBackend()
    solver = PuzzleSolver(registry, backend).configure(Grid(4, 4), [])
    solver.add_global_rule("latin-square")

    with pytest.raises(ConfigurationError):
        solver.solve()
    assert backend.calls == []


def test_validate(registry):
    assert _solver(ScriptedBackend([{}]), registry).validate()
    assert not _solver(
        ScriptedBackend(status=SolveStatus.UNSATISFIABLE), registry
    ).validate()


def test_count_solutions_stops_at_limit(registry):
    backend = ScriptedBackend([{"n": i} for i in range(5)], status=SolveStatus.ALL_SOLUTIONS)
    solver = _solver(backend, registry)

    assert solver.count_solutions(limit=3) == 3
    _, options = backend.calls[-1]
    assert options.all_solutions
    assert options.num_solutions == 3


def test_unique_solution(registry):
    assert _solver(ScriptedBackend([{}]), registry).has_unique_solution()
    assert not _solver(ScriptedBackend([{}, {}]), registry).has_unique_solution()


def test_configure_resets_the_puzzle(registry):
    solver = _solver(ScriptedBackend(), registry)
    solver.configure(Grid(2, 2), [VariableKind("numbers-all", min=1, max=2)])
    assert solver.puzzle.global_rules == ()
    assert solver.puzzle.clues == ()
    assert "sudoku-standard" not in solver.compiled_model()
    assert solver.current_model is not None


def test_solve_options_defaults():
    options = SolveOptions()
    assert options.num_solutions == 1
    assert not options.all_solutions
    assert options.extra == {}
