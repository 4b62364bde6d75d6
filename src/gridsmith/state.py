"""Module with dataclasses to hold the state for the main entities of a puzzle"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Literal, Mapping, Optional, Sequence, Union

from gridsmith import naming
from gridsmith.errors import ConfigurationError

__all__ = [
    "Cell",
    "Domain",
    "Grid",
    "VariableKind",
    "Group",
    "ConstraintInstance",
    "Clue",
]

Cell = tuple[int, int]
Domain = Literal["int", "bool"]
GroupValue = Union[int, float, str, None]

_KIND_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9_]*(-[A-Za-z0-9_]+)*$")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _as_tuple(raw: Any, what: str) -> tuple:
    if isinstance(raw, (str, bytes)):
        raise ConfigurationError(f"{what} must be a sequence, got {raw!r}")
    try:
        return tuple(raw)
    except TypeError as e:
        raise ConfigurationError(f"{what} must be a sequence, got {raw!r}") from e


def _as_cell(raw: Any) -> Cell:
    try:
        row, col = raw
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"A cell must be a (row, col) pair, got {raw!r}") from e
    if not (_is_int(row) and _is_int(col)) or row < 0 or col < 0:
        raise ConfigurationError(
            f"Cell coordinates must be non-negative integers, got {raw!r}"
        )
    return row, col


@dataclass(frozen=True, slots=True)
class Grid:
    """Rectangular cell array with an optional region partition

    Attributes:
        rows: Number of rows
        cols: Number of columns
        regions: Region id of every cell as a rows x cols matrix of dense ids
            (0..k-1), or None when the grid has no region semantics
    """

    rows: int
    cols: int
    regions: Optional[tuple[tuple[int, ...], ...]] = None

    def __post_init__(self):
        if not _is_int(self.rows) or self.rows < 1:
            raise ConfigurationError("Grid rows must be a positive integer")
        if not _is_int(self.cols) or self.cols < 1:
            raise ConfigurationError("Grid cols must be a positive integer")
        if self.regions is None:
            return

        regions = tuple(tuple(row) for row in self.regions)
        if len(regions) != self.rows or any(len(row) != self.cols for row in regions):
            raise ConfigurationError(
                f"Region map must be {self.rows}x{self.cols} to match the grid"
            )
        if not all(_is_int(rid) for row in regions for rid in row):
            raise ConfigurationError("Region ids must be integers")
        ids = {rid for row in regions for rid in row}
        if ids != set(range(len(ids))):
            raise ConfigurationError(
                f"Region ids must be dense from 0, got {sorted(ids)}"
            )
        object.__setattr__(self, "regions", regions)

    @classmethod
    def boxes(cls, rows: int, cols: int, box_rows: int, box_cols: int) -> Grid:
        """Grid partitioned into box_rows x box_cols boxes, numbered row-major."""
        if (
            not all(_is_int(v) for v in (rows, cols, box_rows, box_cols))
            or box_rows < 1
            or box_cols < 1
            or rows % box_rows
            or cols % box_cols
        ):
            raise ConfigurationError(
                f"A {rows}x{cols} grid cannot be tiled by {box_rows}x{box_cols} boxes"
            )
        per_row = cols // box_cols
        regions = tuple(
            tuple((r // box_rows) * per_row + c // box_cols for c in range(cols))
            for r in range(rows)
        )
        return cls(rows, cols, regions)

    @classmethod
    def from_cell_lists(
        cls, rows: int, cols: int, regions: Iterable[Iterable[Sequence[int]]]
    ) -> Grid:
        """Build the region map from a list of regions, each a list of cells."""
        matrix: list[list[Optional[int]]] = [[None] * cols for _ in range(rows)]
        for rid, region in enumerate(regions):
            for raw in region:
                r, c = _as_cell(raw)
                if r >= rows or c >= cols:
                    raise ConfigurationError(f"Region cell {(r, c)} outside the grid")
                if matrix[r][c] is not None:
                    raise ConfigurationError(f"Cell {(r, c)} belongs to two regions")
                matrix[r][c] = rid
        if any(rid is None for row in matrix for rid in row):
            raise ConfigurationError("Regions must cover every cell of the grid")
        return cls(rows, cols, tuple(tuple(row) for row in matrix))  # type: ignore[arg-type]

    @property
    def n_regions(self) -> int:
        if self.regions is None:
            return 0
        return max(rid for row in self.regions for rid in row) + 1

    def contains(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def region_of(self, row: int, col: int) -> Optional[int]:
        if self.regions is None:
            return None
        return self.regions[row][col]


@dataclass(frozen=True, slots=True)
class VariableKind:
    """A named layer of per-cell state

    Attributes:
        name: Kind name, e.g. "numbers-all"; its family token names the emitted array
        type: "int" for a bounded numeric layer, "bool" for a shading layer
        min: Lower domain bound (numeric layers only)
        max: Upper domain bound (numeric layers only)
    """

    name: str
    type: Domain = "int"
    min: Optional[int] = None
    max: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.name, str) or not _KIND_NAME.match(self.name):
            raise ConfigurationError(f"Invalid variable kind name: {self.name!r}")
        if naming.family(self.name) in naming.RESERVED_NAMES:
            raise ConfigurationError(
                f"Variable kind '{self.name}' would declare the reserved name "
                f"'{naming.family(self.name)}'"
            )
        if self.type == "int":
            if not (_is_int(self.min) and _is_int(self.max)):
                raise ConfigurationError(
                    f"Numeric variable kind '{self.name}' needs integer min and max"
                )
            if self.min > self.max:
                raise ConfigurationError(
                    f"Variable kind '{self.name}' has min {self.min} > max {self.max}"
                )
        elif self.type == "bool":
            if self.min is not None or self.max is not None:
                raise ConfigurationError(
                    f"Boolean variable kind '{self.name}' takes no bounds"
                )
        else:
            raise ConfigurationError(
                f"Variable kind type must be 'int' or 'bool', got {self.type!r}"
            )

    @property
    def family(self) -> str:
        return naming.family(self.name)

    @property
    def array(self) -> str:
        return naming.array_name(self.name)

    def accepts(self, value: Any) -> bool:
        if self.type == "bool":
            return isinstance(value, bool)
        return _is_int(value) and self.min <= value <= self.max


@dataclass(frozen=True, slots=True)
class Group:
    """An ordered cell sequence plus an optional value

    Cells are 0-based. Order is meaningful for rules that read groups
    positionally (arrow pills, thermometer bulbs).
    """

    cells: tuple[Cell, ...]
    value: GroupValue = None

    def __post_init__(self):
        cells = _as_tuple(self.cells, "Group cells")
        object.__setattr__(self, "cells", tuple(_as_cell(c) for c in cells))
        if isinstance(self.value, bool) or not isinstance(
            self.value, (int, float, str, type(None))
        ):
            raise ConfigurationError(
                f"Group value must be a number, a string or None, got {self.value!r}"
            )

    @classmethod
    def coerce(cls, raw: Union[Group, Mapping[str, Any], Sequence[Any]]) -> Group:
        """Accept a Group, a {"cells": ..., "value": ...} mapping or a bare cell list."""
        if isinstance(raw, Group):
            return raw
        if isinstance(raw, Mapping):
            if "cells" not in raw:
                raise ConfigurationError(f"Group mapping needs 'cells': {raw!r}")
            return cls(_as_tuple(raw["cells"], "Group cells"), raw.get("value"))
        return cls(_as_tuple(raw, "A group"))


@dataclass(frozen=True, slots=True)
class ConstraintInstance:
    """A local rule bound to its placement groups

    Attributes:
        rule_id: Id of the local rule
        groups: Ordered placement groups
    """

    rule_id: str
    groups: tuple[Group, ...]

    def __post_init__(self):
        if not isinstance(self.rule_id, str) or not self.rule_id:
            raise ConfigurationError("Constraint instance needs a non-empty rule id")
        groups = _as_tuple(self.groups, "Instance groups")
        object.__setattr__(self, "groups", tuple(Group.coerce(g) for g in groups))

    def cells(self) -> Iterable[Cell]:
        for group in self.groups:
            yield from group.cells


@dataclass(frozen=True, slots=True)
class Clue:
    """A pinned value for one cell of one variable kind"""

    row: int
    col: int
    variable: str
    value: Union[int, bool]

    def __post_init__(self):
        _as_cell((self.row, self.col))
        if not isinstance(self.value, (int, bool)):
            raise ConfigurationError(
                f"Clue value must be an integer or a boolean, got {self.value!r}"
            )
