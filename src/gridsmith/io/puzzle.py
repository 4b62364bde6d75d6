"""YAML puzzle description loader (strict).

Shape of the document (every top-level key except `grid` is optional):

    grid:
      rows: 4
      cols: 4
      boxes: [2, 2]          # or `regions:` as a rows x cols matrix, or nothing
    variables:
      numbers: {min: 1, max: 4}
      shading: {type: bool}
    rules: [sudoku-standard]
    constraints:
      - rule: killer-cage
        groups:
          - cells: [[0, 0], [0, 1]]
            value: 3
    clues:
      - {row: 0, col: 0, variable: numbers, value: 1}

No normalization beyond this shape: if something is off we raise
`ConfigurationError` with the offending path.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from yaml import YAMLError, safe_load

from gridsmith.errors import ConfigurationError
from gridsmith.puzzle import PuzzleModel
from gridsmith.rules.registry import RuleRegistry
from gridsmith.state import Grid, VariableKind

_TOP_LEVEL = {"grid", "variables", "rules", "constraints", "clues"}


def _mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"'{where}' must be a mapping")
    return value


def _list(value: Any, where: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigurationError(f"'{where}' must be a list")
    return value


def _grid(raw: Any) -> Grid:
    cfg = _mapping(raw, "grid")
    rows, cols = cfg.get("rows"), cfg.get("cols")
    if "boxes" in cfg and cfg.get("regions") is not None:
        raise ConfigurationError("'grid' takes either 'boxes' or 'regions', not both")
    if "boxes" in cfg:
        boxes = cfg["boxes"]
        if not isinstance(boxes, list) or len(boxes) != 2:
            raise ConfigurationError("'grid.boxes' must be [box_rows, box_cols]")
        return Grid.boxes(rows, cols, boxes[0], boxes[1])
    regions = cfg.get("regions")
    if regions is not None:
        regions = tuple(
            tuple(_list(row, f"grid.regions[{idx}]"))
            for idx, row in enumerate(_list(regions, "grid.regions"))
        )
    return Grid(rows, cols, regions)


def _variables(raw: Any) -> list[VariableKind]:
    kinds = []
    for name, cfg in _mapping(raw, "variables").items():
        cfg = _mapping(cfg or {}, f"variables.{name}")
        kinds.append(
            VariableKind(
                name=name,
                type=cfg.get("type", "int"),
                min=cfg.get("min"),
                max=cfg.get("max"),
            )
        )
    return kinds


def puzzle_from_mapping(
    data: Mapping[str, Any], registry: Optional[RuleRegistry] = None
) -> PuzzleModel:
    """Build a PuzzleModel from an already parsed description."""
    data = _mapping(data, "puzzle")
    unknown = set(data) - _TOP_LEVEL
    if unknown:
        raise ConfigurationError(
            f"Unknown puzzle keys {sorted(unknown)}; known: {sorted(_TOP_LEVEL)}"
        )
    if "grid" not in data:
        raise ConfigurationError("Puzzle description must contain a 'grid' mapping.")

    puzzle = PuzzleModel(registry)
    puzzle.set_grid(_grid(data["grid"]))
    if data.get("variables") is not None:
        puzzle.set_variables(_variables(data["variables"]))

    for idx, rule_id in enumerate(_list(data.get("rules"), "rules")):
        if not isinstance(rule_id, str) or not rule_id.strip():
            raise ConfigurationError(f"rules[{idx}] must be a non-empty string.")
        puzzle.add_global_rule(rule_id.strip())

    for idx, item in enumerate(_list(data.get("constraints"), "constraints")):
        item = _mapping(item, f"constraints[{idx}]")
        rule_id = item.get("rule")
        if not isinstance(rule_id, str) or not rule_id.strip():
            raise ConfigurationError(f"constraints[{idx}].rule must be a non-empty string.")
        groups = _list(item.get("groups"), f"constraints[{idx}].groups")
        puzzle.add_constraint_instance(rule_id.strip(), groups)

    for idx, item in enumerate(_list(data.get("clues"), "clues")):
        item = _mapping(item, f"clues[{idx}]")
        missing = {"row", "col", "variable", "value"} - set(item)
        if missing:
            raise ConfigurationError(f"clues[{idx}] is missing {sorted(missing)}")
        puzzle.add_clue(item["row"], item["col"], item["variable"], item["value"])

    return puzzle


def load_puzzle(path: str, registry: Optional[RuleRegistry] = None) -> PuzzleModel:
    """Load a puzzle description from YAML at `path`."""
    with open(path, "r", encoding="utf-8") as stream:
        try:
            parsed = safe_load(stream)
        except YAMLError as e:
            raise ConfigurationError(f"{path}: invalid YAML ({e})") from e
    if parsed is None:
        raise ConfigurationError(f"{path}: empty puzzle description")
    return puzzle_from_mapping(parsed, registry)
