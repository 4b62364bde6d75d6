from __future__ import annotations

import warnings
from collections import defaultdict
from typing import Optional

from gridsmith import naming
from gridsmith.errors import CompileWarning
from gridsmith.state import Cell, Grid, Group

NUMBERS = "numbers"
# local rule aggregated by global_region_sum_lines; listed in its `consumes`
REGION_SUM_LINE = "region-sum-line"


def _numeric(value) -> Optional[int]:
    """Integer clue value of a group, if it carries one."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def _pairs(cells: tuple[Cell, ...]):
    return zip(cells, cells[1:])


def _segments_by_region(group: Group, grid: Grid) -> dict[int, list[Cell]]:
    segments: dict[int, list[Cell]] = defaultdict(list)
    for r, c in group.cells:
        segments[grid.region_of(r, c)].append((r, c))
    return dict(sorted(segments.items()))


# ---------- Global rules ----------


def global_region_sum_lines(groups, all_instances, grid):
    """Every region segment of every region-sum-line shares one common total."""
    lines = [
        group
        for inst in all_instances
        if inst.rule_id == REGION_SUM_LINE
        for group in inst.groups
        if group.cells
    ]
    if not lines:
        return naming.neutral("no region-sum-line instances to aggregate")
    if grid.regions is None:
        return naming.neutral("global region sum lines skipped: no regions defined")

    segment_sums = [
        f"({naming.cell_sum(NUMBERS, cells)})"
        for line in lines
        for cells in _segments_by_region(line, grid).values()
    ]
    constraints = [
        "% common total of every region-sum-line segment",
        f"var int: region_sum_line_total = {segment_sums[0]};",
    ]
    for expr in segment_sums[1:]:
        constraints.append(f"constraint {expr} = region_sum_line_total;")
    return "\n".join(constraints)


# ---------- Local rules ----------


def killer_cage(groups, all_instances, grid):
    constraints = []
    for group in groups:
        if not group.cells:
            continue
        constraints.append("% all different in killer cage")
        constraints.append(
            f"constraint all_different({naming.cell_list(NUMBERS, group.cells)});"
        )
        total = _numeric(group.value)
        if total is not None:
            constraints.append(
                f"constraint {naming.cell_sum(NUMBERS, group.cells)} = {total};"
            )
        elif group.value is not None and str(group.value).strip():
            warnings.warn(
                f"Killer cage total {group.value!r} is not an integer; only "
                "all-different is enforced",
                CompileWarning,
                stacklevel=2,
            )
            constraints.append(
                naming.comment(f"cage total {group.value!r} ignored: not an integer")
            )
    return "\n".join(constraints)


def arrow(groups, all_instances, grid):
    """Group 1 is the pill, read as a multi-digit number; groups 2+ are arrows."""
    if len(groups) < 2 or not groups[0].cells:
        return ""

    pill = naming.numeral(NUMBERS, groups[0].cells)
    constraints = []
    for i, group in enumerate(groups[1:], start=1):
        if not group.cells:
            continue
        constraints.append(f"% arrow {i}: sum equals pill value")
        constraints.append(
            f"constraint {naming.cell_sum(NUMBERS, group.cells)} = {pill};"
        )
    return "\n".join(constraints)


def thermometer(groups, all_instances, grid):
    """Digits strictly increase from the bulb (first cell)."""
    constraints = []
    for group in groups:
        for a, b in _pairs(group.cells):
            constraints.append(
                f"constraint {naming.cell_ref(NUMBERS, *a)} < {naming.cell_ref(NUMBERS, *b)};"
            )
    return "\n".join(constraints)


def german_whisper(groups, all_instances, grid):
    constraints = []
    for group in groups:
        for a, b in _pairs(group.cells):
            constraints.append(
                f"constraint abs({naming.cell_ref(NUMBERS, *a)} - {naming.cell_ref(NUMBERS, *b)}) >= 5;"
            )
    return "\n".join(constraints)


def white_dot(groups, all_instances, grid):
    # `kropki_consecutive` is declared by the rule's fragment
    return "\n".join(
        f"constraint kropki_consecutive({naming.cell_ref(NUMBERS, *a)}, {naming.cell_ref(NUMBERS, *b)});"
        for group in groups
        for a, b in _pairs(group.cells)
    )


def black_dot(groups, all_instances, grid):
    # `kropki_ratio` is declared by the rule's fragment
    return "\n".join(
        f"constraint kropki_ratio({naming.cell_ref(NUMBERS, *a)}, {naming.cell_ref(NUMBERS, *b)});"
        for group in groups
        for a, b in _pairs(group.cells)
    )


def region_sum_line(groups, all_instances, grid):
    """Each region a line passes through holds the same sum of digits."""
    if grid.regions is None:
        return naming.neutral("region sum line skipped: no regions defined")

    constraints = []
    for idx, group in enumerate(groups, start=1):
        segments = list(_segments_by_region(group, grid).values())
        if len(segments) <= 1:
            # line entirely inside one region
            continue
        constraints.append(f"% region sum line {idx}: equal sums in each region")
        sums = [f"({naming.cell_sum(NUMBERS, cells)})" for cells in segments]
        for other in sums[1:]:
            constraints.append(f"constraint {sums[0]} = {other};")
    return "\n".join(constraints)
