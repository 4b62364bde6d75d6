"""Spreadsheet import of clue grids and region maps, and export of solved grids"""

import shutil
from pathlib import Path

import pandas as pd
from openpyxl import load_workbook

from gridsmith.errors import ConfigurationError
from gridsmith.state import Clue, Grid


def _read_sheet(file_path: str, sheet_name: str) -> pd.DataFrame:
    return pd.read_excel(file_path, sheet_name=sheet_name, header=None, engine="openpyxl")


def _is_blank(cell) -> bool:
    return pd.isna(cell) or (isinstance(cell, str) and not cell.strip())


def _block(df: pd.DataFrame, row_start: int, col_start: int, rows: int, cols: int):
    """Yield (row, col, cell) for the rows x cols block whose top-left is (row_start, col_start).

    Sheet coordinates are 1-based as in Excel; yielded grid coordinates are 0-based.
    """
    ROW_OFFSET = row_start - 1
    COL_OFFSET = col_start - 1

    ROW_BOUNDS = (ROW_OFFSET, rows + ROW_OFFSET - 1)
    COL_BOUNDS = (COL_OFFSET, cols + COL_OFFSET - 1)

    for row_pos in range(df.shape[0]):
        for col_pos, cell in enumerate(df.iloc[row_pos]):
            if is_cell_in_bounds(row_pos, col_pos, ROW_BOUNDS, COL_BOUNDS):
                yield row_pos - ROW_OFFSET, col_pos - COL_OFFSET, cell


def load_clues(
    file_path: str,
    sheet_name: str,
    variable: str,
    row_start: int,
    col_start: int,
    rows: int,
    cols: int,
) -> tuple[Clue, ...]:
    """loads given digits from a grid drawn in the sheet.

    args:
        file_path: Workbook holding the puzzle
        sheet_name: Sheet the grid is drawn on
        variable: The variable kind the digits are pinned on
        row_start: The first row of the grid (1-based)
        col_start: The first column of the grid (1-based)
        rows: The number of grid rows
        cols: The number of grid columns

    returns:
        A tuple of Clue objects, blank cells are skipped
    """

    df = _read_sheet(file_path, sheet_name)

    clues = []
    for r, c, cell in _block(df, row_start, col_start, rows, cols):
        if _is_blank(cell):
            continue
        try:
            value = int(cell)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Cell {(r, c)} of sheet '{sheet_name}' holds {cell!r}, not a digit"
            ) from e
        clues.append(Clue(r, c, variable, value))
    return tuple(clues)


def load_regions(
    file_path: str,
    sheet_name: str,
    row_start: int,
    col_start: int,
    rows: int,
    cols: int,
) -> Grid:
    """loads a region map where every cell holds a region label.

    Labels can be anything (letters, numbers); they are renumbered densely from
    0 in order of first appearance, reading row by row.

    returns:
        A Grid with the loaded regions
    """

    df = _read_sheet(file_path, sheet_name)

    ids: dict = {}
    matrix = [[None] * cols for _ in range(rows)]
    for r, c, cell in _block(df, row_start, col_start, rows, cols):
        if _is_blank(cell):
            continue
        label = cell.strip() if isinstance(cell, str) else cell
        matrix[r][c] = ids.setdefault(label, len(ids))

    if any(rid is None for row in matrix for rid in row):
        raise ConfigurationError(
            f"Region map on sheet '{sheet_name}' has blank cells"
        )
    return Grid(rows, cols, tuple(tuple(row) for row in matrix))


def is_cell_in_bounds(
    row_idx: int, col_idx: int, row_bounds: tuple[int, int], col_bounds: tuple[int, int]
) -> bool:
    """True when (row_idx, col_idx) lies inside the inclusive sheet block bounds."""
    (top, bottom), (left, right) = row_bounds, col_bounds
    return top <= row_idx <= bottom and left <= col_idx <= right


def copy_excel_file(original_path: str, fname_extension: str) -> str:
    """Copy a workbook next to itself, appending `fname_extension` to its stem.

    Solutions are written into the copy so the puzzle sheet stays untouched.
    """
    original = Path(original_path)
    new_path = original.with_name(original.stem + fname_extension + original.suffix)
    shutil.copy2(original, new_path)
    return str(new_path)


def save_solution(
    file_path: str,
    sheet_name: str,
    solution: list[list],
    row_start: int,
    col_start: int,
):
    """Writes a solved grid into a given Excel file

    args:
        file_path: Workbook to write into, usually a copy made by copy_excel_file
        sheet_name: Sheet the grid is drawn on
        solution: Row-major matrix of cell values
        row_start: The first row of the grid (1-based)
        col_start: The first column of the grid (1-based)
    """

    wb = load_workbook(file_path)

    if sheet_name not in wb.sheetnames:
        raise ValueError(f"Sheet '{sheet_name}' not found in the workbook.")

    sheet = wb[sheet_name]

    for i, row in enumerate(solution):
        for j, value in enumerate(row):
            sheet.cell(row=row_start + i, column=col_start + j, value=value)

    wb.save(file_path)
