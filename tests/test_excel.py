"""Excel import of clues and region maps, and export of solved grids."""

import pytest
from openpyxl import Workbook, load_workbook

from gridsmith.errors import ConfigurationError
from gridsmith.io.excel import (
    copy_excel_file,
    is_cell_in_bounds,
    load_clues,
    load_regions,
    save_solution,
)


def _workbook(path, rows, sheet="Grid", row_start=1, col_start=1, title=None):
    wb = Workbook()
    ws = wb.active
    ws.title = sheet
    if title is not None:
        ws.cell(row=1, column=1, value=title)
    for i, row in enumerate(rows):
        for j, value in enumerate(row):
            if value is not None:
                ws.cell(row=row_start + i, column=col_start + j, value=value)
    wb.save(path)
    return path


def test_load_clues_skips_blank_cells(tmp_path):
    path = _workbook(
        tmp_path / "givens.xlsx",
        [
            [1, None, None, 4],
            [None, 2, None, None],
            [None, None, 3, None],
            [4, None, None, 1],
        ],
    )
    clues = load_clues(path, "Grid", "numbers-all", 1, 1, 4, 4)
    assert {(c.row, c.col, c.value) for c in clues} == {
        (0, 0, 1),
        (0, 3, 4),
        (1, 1, 2),
        (2, 2, 3),
        (3, 0, 4),
        (3, 3, 1),
    }
    assert all(c.variable == "numbers-all" for c in clues)
    assert all(type(c.value) is int for c in clues)


def test_load_clues_with_offset(tmp_path):
    path = _workbook(
        tmp_path / "offset.xlsx",
        [[5, 6], [7, 8]],
        row_start=3,
        col_start=2,
        title="Givens",
    )
    clues = load_clues(path, "Grid", "numbers-all", 3, 2, 2, 2)
    assert [(c.row, c.col, c.value) for c in clues] == [
        (0, 0, 5),
        (0, 1, 6),
        (1, 0, 7),
        (1, 1, 8),
    ]


def test_load_clues_rejects_text(tmp_path):
    path = _workbook(tmp_path / "bad.xlsx", [[1, "x"], [2, 3]])
    with pytest.raises(ConfigurationError, match="not a digit"):
        load_clues(path, "Grid", "numbers-all", 1, 1, 2, 2)


def test_load_regions_renumbers_labels(tmp_path):
    path = _workbook(
        tmp_path / "regions.xlsx",
        [
            ["b", "b", "a", "a"],
            ["b", "b", "a", "a"],
            ["c", "c", "d", "d"],
            ["c", "c", "d", "d"],
        ],
    )
    grid = load_regions(path, "Grid", 1, 1, 4, 4)
    assert grid.regions == (
        (0, 0, 1, 1),
        (0, 0, 1, 1),
        (2, 2, 3, 3),
        (2, 2, 3, 3),
    )


def test_load_regions_needs_every_cell(tmp_path):
    path = _workbook(tmp_path / "holes.xlsx", [["a", "a"], ["b", None]])
    with pytest.raises(ConfigurationError, match="blank cells"):
        load_regions(path, "Grid", 1, 1, 2, 2)


def test_is_cell_in_bounds():
    assert is_cell_in_bounds(2, 3, (2, 5), (1, 3))
    assert not is_cell_in_bounds(6, 3, (2, 5), (1, 3))


def test_save_solution_into_a_copy(tmp_path):
    path = _workbook(tmp_path / "puzzle.xlsx", [[None, None], [None, None]])
    copy = copy_excel_file(str(path), "_solved")
    assert copy.endswith("puzzle_solved.xlsx")

    save_solution(copy, "Grid", [[1, 2], [2, 1]], 1, 1)
    ws = load_workbook(copy)["Grid"]
    assert [[ws.cell(row=r, column=c).value for c in (1, 2)] for r in (1, 2)] == [
        [1, 2],
        [2, 1],
    ]
    assert load_workbook(path)["Grid"].cell(row=1, column=1).value is None


def test_save_solution_unknown_sheet(tmp_path):
    path = _workbook(tmp_path / "puzzle.xlsx", [[1]])
    with pytest.raises(ValueError, match="not found"):
        save_solution(str(path), "Missing", [[1]], 1, 1)
