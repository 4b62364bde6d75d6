"""
Grid and decision variable declarations of the emitted model.

This module produces the first sections of every document: the grid size and
region map, then one rows x cols array per variable kind.
"""

from __future__ import annotations

from gridsmith import naming
from gridsmith.state import Grid, VariableKind


def declare_grid(grid: Grid) -> str:
    """
    Declare ``rows``, ``cols``, ``n_regions`` and the ``regions`` map.

    Region ids are emitted 1-based. A grid without regions still declares the
    map, filled with 0 and with ``n_regions = 0``, so that region loops in
    static fragments become vacuous instead of referring to missing names.
    """
    if grid.regions is None:
        matrix = [[0] * grid.cols for _ in range(grid.rows)]
        header = naming.comment("grid (no regions defined)")
    else:
        matrix = [[rid + 1 for rid in row] for row in grid.regions]
        header = naming.comment("grid")

    body = " | ".join(", ".join(str(v) for v in row) for row in matrix)
    return "\n".join(
        [
            header,
            f"int: rows = {grid.rows};",
            f"int: cols = {grid.cols};",
            f"int: n_regions = {grid.n_regions};",
            f"array[1..rows, 1..cols] of int: {naming.REGIONS_ARRAY} = [| {body} |];",
        ]
    )


def declare_variable(kind: VariableKind) -> str:
    """One decision array per variable kind, bounded by its domain."""
    domain = "bool" if kind.type == "bool" else f"{kind.min}..{kind.max}"
    return "\n".join(
        [
            naming.comment(f"variable kind: {kind.name}"),
            f"array[1..rows, 1..cols] of var {domain}: {kind.array};",
        ]
    )
