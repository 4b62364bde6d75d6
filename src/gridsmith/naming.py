"""Shared naming and addressing convention of the emitted constraint model.

Every piece of emitted text (declarations, clues, static fragments and
procedural generators) addresses per-cell state the same way:

- a variable kind is declared as one 2D array named after its *family*, the
  token before the first ``-`` (``numbers-all`` -> ``numbers``);
- cells are referenced as ``<array>[row, col]`` with **1-based** coordinates;
- every emitted block is preceded by a ``%`` provenance comment.

Puzzle data stays 0-based; the shift to 1-based happens only here.
"""

from __future__ import annotations

import re
from typing import Iterable, Mapping, Sequence

from gridsmith.errors import AssemblyInvariantViolation

__all__ = [
    "FAMILY_SEPARATOR",
    "REGIONS_ARRAY",
    "RESERVED_NAMES",
    "NEUTRAL_CONSTRAINT",
    "family",
    "array_name",
    "to_emitted",
    "from_emitted",
    "cell_ref",
    "parse_cell_ref",
    "cell_list",
    "cell_sum",
    "numeral",
    "comment",
    "neutral",
    "declared_names",
    "check_document",
]

FAMILY_SEPARATOR = "-"
COMMENT_PREFIX = "%"
REGIONS_ARRAY = "regions"
NEUTRAL_CONSTRAINT = "constraint true;"

_MINIZINC_KEYWORDS = """
ann annotation any array bool case constraint default diff div else elseif endif
enum false float function if in include int intersect let list maybe mod not of
op opt output par predicate record set solve string subset superset symdiff test
then true tuple type union var where xor
""".split()

# names no variable kind may take: grid declarations, keywords, builtins in use
RESERVED_NAMES = frozenset(
    ["rows", "cols", "n_regions", REGIONS_ARRAY, *_MINIZINC_KEYWORDS]
    + ["abs", "all_different", "exists", "forall", "sum"]
)

_IDENTIFIER = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")
_CELL_REF = re.compile(r"\b([A-Za-z][A-Za-z0-9_]*)\[\s*(\d+)\s*,\s*(\d+)\s*\]")
_ARRAY_DECL = re.compile(r"\barray\[[^\]]*\]\s+of\s+[^:;]+:\s*([A-Za-z][A-Za-z0-9_]*)")
_ITEM_DECL = re.compile(
    r"^[ \t]*(?:array\[[^\]]*\][ \t]+of[ \t]+)?[\w. \t]+?:[ \t]*([A-Za-z]\w*)[ \t]*[=;]",
    re.MULTILINE,
)
_PREDICATE_DECL = re.compile(
    r"^[ \t]*(?:predicate|test|function[^:\n]+:)[ \t]*([A-Za-z]\w*)[ \t]*\(",
    re.MULTILINE,
)


def family(kind: str) -> str:
    """Return the family token of a variable kind name."""
    return kind.split(FAMILY_SEPARATOR, 1)[0]


def array_name(kind: str) -> str:
    """Name of the emitted array holding the per-cell state of `kind`."""
    name = family(kind)
    if not _IDENTIFIER.match(name):
        raise AssemblyInvariantViolation(
            f"Variable kind '{kind}' does not map to a valid array identifier"
        )
    if name in RESERVED_NAMES:
        raise AssemblyInvariantViolation(
            f"Variable kind '{kind}' maps to the reserved name '{name}'"
        )
    return name


def to_emitted(row: int, col: int) -> tuple[int, int]:
    return row + 1, col + 1


def from_emitted(row: int, col: int) -> tuple[int, int]:
    return row - 1, col - 1


def cell_ref(kind: str, row: int, col: int) -> str:
    """Reference to cell (row, col), given 0-based, e.g. ``numbers[1, 2]``."""
    r, c = to_emitted(row, col)
    return f"{array_name(kind)}[{r}, {c}]"


def parse_cell_ref(text: str) -> tuple[str, int, int]:
    """Inverse of `cell_ref`: return (array, row, col) with 0-based coordinates."""
    match = _CELL_REF.fullmatch(text.strip())
    if match is None:
        raise AssemblyInvariantViolation(f"Not a cell reference: '{text}'")
    name, r, c = match.group(1), int(match.group(2)), int(match.group(3))
    if r < 1 or c < 1:
        raise AssemblyInvariantViolation(f"Cell reference '{text}' is not 1-based")
    row, col = from_emitted(r, c)
    return name, row, col


def cell_list(kind: str, cells: Iterable[Sequence[int]]) -> str:
    return "[" + ", ".join(cell_ref(kind, r, c) for r, c in cells) + "]"


def cell_sum(kind: str, cells: Iterable[Sequence[int]]) -> str:
    return " + ".join(cell_ref(kind, r, c) for r, c in cells)


def numeral(kind: str, cells: Sequence[Sequence[int]]) -> str:
    """Multi-digit number read from `cells`, most significant digit first.

    Cell i of n contributes ``cell * 10^(n-1-i)``; one cell is the bare reference.
    """
    if not cells:
        raise ValueError("A numeral needs at least one cell")
    refs = [cell_ref(kind, r, c) for r, c in cells]
    if len(refs) == 1:
        return refs[0]
    n = len(refs)
    terms = [
        ref if n - 1 - i == 0 else f"{10 ** (n - 1 - i)} * {ref}"
        for i, ref in enumerate(refs)
    ]
    return "(" + " + ".join(terms) + ")"


def comment(text: str) -> str:
    return "\n".join(f"{COMMENT_PREFIX} {line}".rstrip() for line in text.splitlines())


def neutral(reason: str) -> str:
    """Trivially-true fragment with an explanatory comment."""
    return f"{comment(reason)}\n{NEUTRAL_CONSTRAINT}"


def _strip_comments(text: str) -> str:
    return "\n".join(line.split(COMMENT_PREFIX, 1)[0] for line in text.splitlines())


def declared_names(text: str) -> list[str]:
    """Names of the top-level items and predicates declared in `text`, in order."""
    code = _strip_comments(text)
    found = [(m.start(), m.group(1)) for m in _ITEM_DECL.finditer(code)]
    found += [(m.start(), m.group(1)) for m in _PREDICATE_DECL.finditer(code)]
    return [name for _, name in sorted(found)]


def check_document(text: str, shapes: Mapping[str, tuple[int, int]]) -> None:
    """Verify every literal ``name[r, c]`` in `text` honors the convention.

    `shapes` maps the grid-shaped arrays (variable kinds and regions) to
    (rows, cols). References to those arrays must lie in ``[1, rows] x [1, cols]``;
    references to any other name must target an array declared in the document.
    No name may be declared twice.
    """
    seen: set[str] = set()
    for name in declared_names(text):
        if name in seen:
            raise AssemblyInvariantViolation(f"Name '{name}' is declared twice")
        seen.add(name)

    code = _strip_comments(text)
    declared = set(_ARRAY_DECL.findall(code))
    for match in _CELL_REF.finditer(code):
        name, r, c = match.group(1), int(match.group(2)), int(match.group(3))
        if name in shapes:
            rows, cols = shapes[name]
            if not (1 <= r <= rows and 1 <= c <= cols):
                raise AssemblyInvariantViolation(
                    f"Reference '{match.group(0)}' outside the {rows}x{cols} grid"
                )
        elif name not in declared:
            raise AssemblyInvariantViolation(
                f"Reference '{match.group(0)}' targets undeclared array '{name}'"
            )
