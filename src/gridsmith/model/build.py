"""Model assembly for gridsmith.

Compile a puzzle into one MiniZinc document by:
  1) validating the puzzle against the rule registry (fail fast, no partial output),
  2) declaring the grid, its regions and one array per variable kind,
  3) pinning clues,
  4) emitting global rules in selection order and constraint instances in
     insertion order,
  5) checking the assembled text against the shared naming convention.

Compilation keeps no state between calls: the same puzzle always yields the
same text.
"""

from __future__ import annotations

import logging
from typing import Dict

from gridsmith import naming
from gridsmith.errors import ConfigurationError, UnemittableRule
from gridsmith.model.constraints import apply_rules, emit_clues
from gridsmith.model.variables import declare_grid, declare_variable
from gridsmith.puzzle import PuzzleModel
from gridsmith.rules.base import Rule
from gridsmith.rules.registry import RuleRegistry
from gridsmith.state import Grid

logger = logging.getLogger(__name__)

PRELUDE = 'include "globals.mzn";'
SOLVE_ITEM = "solve satisfy;"


def _check_cell(grid: Grid, row: int, col: int, what: str) -> None:
    if not grid.contains(row, col):
        raise ConfigurationError(
            f"Cell {(row, col)} of {what} lies outside the {grid.rows}x{grid.cols} grid"
        )


def _resolve(registry: RuleRegistry, rule_id: str, rule_type: str, what: str) -> Rule:
    rule = registry.get(rule_id)
    if rule.type != rule_type:
        raise ConfigurationError(
            f"{what} uses '{rule_id}', a {rule.type} rule; expected a {rule_type} rule"
        )
    return rule


def validate_puzzle(puzzle: PuzzleModel, registry: RuleRegistry) -> Dict[str, Rule]:
    """Check every compile-time invariant and return the selected rules by id.

    Raises
    ------
    ConfigurationError
        No grid, unknown or mistyped rule ids, missing variable kinds,
        out-of-bounds cells, invalid clues, unresolved rule dependencies,
        variable arrays named like something a selected fragment declares.
    UnemittableRule
        A selected rule has neither a fragment nor a generator.
    """
    grid = puzzle.grid
    if grid is None:
        raise ConfigurationError("Puzzle has no grid")

    variables = {kind.name: kind for kind in puzzle.variables}
    arrays = [kind.array for kind in variables.values()]
    owners = {kind.array: kind.name for kind in variables.values()}
    if len(set(arrays)) != len(arrays):
        raise ConfigurationError(f"Variable kinds map to clashing arrays: {arrays}")

    for clue in puzzle.clues:
        kind = variables.get(clue.variable)
        if kind is None:
            raise ConfigurationError(
                f"Clue at {(clue.row, clue.col)} uses unknown variable kind '{clue.variable}'"
            )
        _check_cell(grid, clue.row, clue.col, "clue")
        if not kind.accepts(clue.value):
            raise ConfigurationError(
                f"Clue value {clue.value!r} at {(clue.row, clue.col)} is outside "
                f"the domain of '{kind.name}'"
            )

    selected: Dict[str, Rule] = {}
    for rule_id in puzzle.global_rules:
        selected[rule_id] = _resolve(registry, rule_id, "global", "Global selection")
    for position, instance in enumerate(puzzle.instances, start=1):
        what = f"Constraint instance {position}"
        selected[instance.rule_id] = _resolve(registry, instance.rule_id, "local", what)
        for row, col in instance.cells():
            _check_cell(grid, row, col, f"{what} ('{instance.rule_id}')")

    for rule in selected.values():
        missing = rule.missing_variables(variables)
        if missing:
            raise ConfigurationError(
                f"Rule '{rule.id}' requires variable kinds {missing}; "
                f"puzzle has {list(variables)}"
            )
        if not rule.is_emittable:
            raise UnemittableRule(
                f"Rule '{rule.id}' has neither a constraint fragment nor a generator"
            )
        for dep in rule.consumes:
            _resolve(registry, dep, "local", f"Rule '{rule.id}'")
        if rule.fragment is not None:
            for name in naming.declared_names(rule.fragment):
                if name in owners:
                    raise ConfigurationError(
                        f"Variable kind '{owners[name]}' clashes with '{name}', "
                        f"declared by rule '{rule.id}'"
                    )

    return selected


def compile_puzzle(*, puzzle: PuzzleModel, registry: RuleRegistry) -> str:
    """Compile `puzzle` into MiniZinc source.

    Parameters
    ----------
    puzzle : PuzzleModel
        Puzzle snapshot; it is only read.
    registry : RuleRegistry
        Catalog resolving the rule ids used by the puzzle.

    Returns
    -------
    str
        The complete document, ending with ``solve satisfy;`` and a newline.
    """
    rules_by_id = validate_puzzle(puzzle, registry)
    grid = puzzle.grid
    variables = {kind.name: kind for kind in puzzle.variables}

    sections = [PRELUDE, declare_grid(grid)]
    sections.extend(declare_variable(kind) for kind in variables.values())
    if puzzle.clues:
        sections.append(emit_clues(puzzle.clues, variables))
    sections.extend(
        apply_rules(
            grid=grid,
            global_rules=[rules_by_id[rid] for rid in puzzle.global_rules],
            instances=puzzle.instances,
            rules_by_id=rules_by_id,
        )
    )
    sections.append(SOLVE_ITEM)
    document = "\n\n".join(sections) + "\n"

    shapes = {kind.array: (grid.rows, grid.cols) for kind in variables.values()}
    shapes[naming.REGIONS_ARRAY] = (grid.rows, grid.cols)
    naming.check_document(document, shapes)

    logger.debug(
        "Compiled %d global rules and %d instances into %d lines",
        len(puzzle.global_rules),
        len(puzzle.instances),
        document.count("\n"),
    )
    return document
