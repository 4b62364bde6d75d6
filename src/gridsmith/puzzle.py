"""Puzzle model accumulated by an authoring session.

The model is the only mutable object of the package. Its mutation entry points
are `set_grid`, `set_variables`, `add_global_rule`, `add_constraint_instance`,
`add_clue` and `reset`; everything else reads it through tuple-valued
properties, so the compiler and the generators only ever see immutable data.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Union

from gridsmith.errors import ConfigurationError
from gridsmith.rules.registry import RuleRegistry
from gridsmith.state import Clue, ConstraintInstance, Grid, Group, VariableKind

__all__ = ["PuzzleModel"]


class PuzzleModel:
    """Grid, variable kinds, rule selections, constraint instances and clues.

    When a registry is given, rule ids are checked as they are added; the
    compiler re-checks everything regardless.
    """

    def __init__(self, registry: Optional[RuleRegistry] = None):
        self.registry = registry
        self.reset()

    def reset(self) -> PuzzleModel:
        self._grid: Optional[Grid] = None
        self._variables: dict[str, VariableKind] = {}
        self._global_rules: list[str] = []
        self._instances: list[ConstraintInstance] = []
        self._clues: list[Clue] = []
        return self

    # ---------- Mutation ----------

    def set_grid(self, grid: Grid) -> PuzzleModel:
        for inst in self._instances:
            self._check_cells(grid, inst.cells(), f"constraint instance '{inst.rule_id}'")
        self._check_cells(grid, ((c.row, c.col) for c in self._clues), "clue")
        self._grid = grid
        return self

    def set_variables(self, kinds: Iterable[VariableKind]) -> PuzzleModel:
        variables: dict[str, VariableKind] = {}
        arrays: dict[str, str] = {}
        for kind in kinds:
            if kind.name in variables:
                raise ConfigurationError(f"Variable kind '{kind.name}' given twice")
            if kind.array in arrays:
                raise ConfigurationError(
                    f"Variable kinds '{arrays[kind.array]}' and '{kind.name}' "
                    f"both map to array '{kind.array}'"
                )
            variables[kind.name] = kind
            arrays[kind.array] = kind.name
        self._variables = variables
        return self

    def add_global_rule(self, rule_id: str) -> PuzzleModel:
        self._check_rule(rule_id, "global")
        if rule_id in self._global_rules:
            raise ConfigurationError(f"Global rule '{rule_id}' is already selected")
        self._global_rules.append(rule_id)
        return self

    def add_constraint_instance(
        self,
        rule_id: str,
        groups: Iterable[Union[Group, dict[str, Any], list[Any]]],
    ) -> ConstraintInstance:
        self._check_rule(rule_id, "local")
        instance = ConstraintInstance(rule_id, groups)
        if self._grid is not None:
            self._check_cells(
                self._grid, instance.cells(), f"constraint instance '{rule_id}'"
            )
        self._instances.append(instance)
        return instance

    def add_clue(
        self, row: int, col: int, variable: str, value: Union[int, bool]
    ) -> Clue:
        clue = Clue(row, col, variable, value)
        if self._grid is not None:
            self._check_cells(self._grid, [(row, col)], "clue")
        self._clues.append(clue)
        return clue

    # ---------- Read-only views ----------

    @property
    def grid(self) -> Optional[Grid]:
        return self._grid

    @property
    def variables(self) -> tuple[VariableKind, ...]:
        return tuple(self._variables.values())

    @property
    def global_rules(self) -> tuple[str, ...]:
        return tuple(self._global_rules)

    @property
    def instances(self) -> tuple[ConstraintInstance, ...]:
        return tuple(self._instances)

    @property
    def clues(self) -> tuple[Clue, ...]:
        return tuple(self._clues)

    def variable(self, name: str) -> VariableKind:
        try:
            return self._variables[name]
        except KeyError as e:
            raise ConfigurationError(f"Unknown variable kind '{name}'") from e

    def __repr__(self) -> str:
        size = f"{self._grid.rows}x{self._grid.cols}" if self._grid else "no grid"
        return (
            f"PuzzleModel({size}, variables={list(self._variables)}, "
            f"global_rules={self._global_rules}, instances={len(self._instances)}, "
            f"clues={len(self._clues)})"
        )

    # ---------- Helpers ----------

    def _check_rule(self, rule_id: str, rule_type: str) -> None:
        if self.registry is None:
            return
        rule = self.registry.get(rule_id)
        if rule.type != rule_type:
            raise ConfigurationError(
                f"Rule '{rule_id}' is a {rule.type} rule, expected a {rule_type} rule"
            )

    @staticmethod
    def _check_cells(grid: Grid, cells: Iterable[tuple[int, int]], what: str) -> None:
        for row, col in cells:
            if not grid.contains(row, col):
                raise ConfigurationError(
                    f"Cell {(row, col)} of {what} lies outside the "
                    f"{grid.rows}x{grid.cols} grid"
                )
