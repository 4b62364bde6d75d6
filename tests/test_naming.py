"""Tests for the shared addressing convention of emitted models."""

import pytest

from gridsmith import naming
from gridsmith.errors import AssemblyInvariantViolation


def test_family_is_the_token_before_the_first_separator():
    assert naming.family("numbers-all") == "numbers"
    assert naming.family("numbers-all-extra") == "numbers"
    assert naming.family("shading") == "shading"


def test_array_name_rejects_non_identifiers():
    with pytest.raises(AssemblyInvariantViolation):
        naming.array_name("9lives")


def test_cell_ref_is_one_based():
    assert naming.cell_ref("numbers-all", 0, 0) == "numbers[1, 1]"
    assert naming.cell_ref("numbers-all", 2, 5) == "numbers[3, 6]"
    assert naming.cell_ref("shading", 1, 0) == "shading[2, 1]"


def test_every_cell_reference_maps_back_to_its_cell():
    refs = set()
    for r in range(3):
        for c in range(4):
            ref = naming.cell_ref("numbers-all", r, c)
            assert naming.parse_cell_ref(ref) == ("numbers", r, c)
            refs.add(ref)
    assert len(refs) == 12


@pytest.mark.parametrize("text", ["numbers[0, 1]", "numbers[1]", "nonsense", "[1, 1]"])
def test_parse_cell_ref_rejects_malformed_text(text):
    with pytest.raises(AssemblyInvariantViolation):
        naming.parse_cell_ref(text)


def test_cell_list_and_sum():
    cells = [(0, 0), (0, 1)]
    assert naming.cell_list("numbers-all", cells) == "[numbers[1, 1], numbers[1, 2]]"
    assert naming.cell_sum("numbers-all", cells) == "numbers[1, 1] + numbers[1, 2]"


def test_numeral_reads_most_significant_digit_first():
    assert naming.numeral("numbers-all", [(0, 0)]) == "numbers[1, 1]"
    assert (
        naming.numeral("numbers-all", [(0, 0), (0, 1)])
        == "(10 * numbers[1, 1] + numbers[1, 2])"
    )
    assert (
        naming.numeral("numbers-all", [(0, 0), (0, 1), (0, 2)])
        == "(100 * numbers[1, 1] + 10 * numbers[1, 2] + numbers[1, 3])"
    )


def test_numeral_needs_cells():
    with pytest.raises(ValueError):
        naming.numeral("numbers-all", [])


def test_comment_and_neutral():
    assert naming.comment("first\nsecond") == "% first\n% second"
    assert naming.neutral("nothing to do") == "% nothing to do\nconstraint true;"


def test_check_document_accepts_in_bounds_references():
    doc = (
        "array[1..rows, 1..cols] of var 1..4: numbers;\n"
        "constraint numbers[4, 4] = 1;\n"
        "% numbers[9, 9] only appears in a comment\n"
    )
    naming.check_document(doc, {"numbers": (4, 4)})


@pytest.mark.parametrize("ref", ["numbers[5, 1]", "numbers[1, 5]", "numbers[0, 1]"])
def test_check_document_rejects_out_of_bounds_references(ref):
    with pytest.raises(AssemblyInvariantViolation):
        naming.check_document(f"constraint {ref} = 1;", {"numbers": (4, 4)})


def test_check_document_requires_declared_helper_arrays():
    doc = "constraint helper[1, 1] = 2;"
    with pytest.raises(AssemblyInvariantViolation, match="undeclared array 'helper'"):
        naming.check_document(doc, {"numbers": (4, 4)})

    declared = "array[1..2, 1..2] of var int: helper;\n" + doc
    naming.check_document(declared, {"numbers": (4, 4)})


@pytest.mark.parametrize("kind", ["regions", "n_regions", "var", "solve-all", "forall"])
def test_array_name_rejects_reserved_names(kind):
    with pytest.raises(AssemblyInvariantViolation, match="reserved"):
        naming.array_name(kind)


def test_declared_names_in_order():
    doc = (
        "int: rows = 4;\n"
        "array[1..rows, 1..cols] of int: regions = [| 1, 2 | 3, 4 |];\n"
        "array[1..rows, 1..cols] of var 1..4: numbers;\n"
        "predicate kropki_ratio(var int: a, var int: b) = a = 2 * b \\/ b = 2 * a;\n"
        "% int: hidden = 1;\n"
        "var int: total = (numbers[1, 1]);\n"
        "constraint forall(r in 1..rows)(all_different([numbers[r, c] | c in 1..cols]));\n"
        "solve satisfy;\n"
    )
    assert naming.declared_names(doc) == [
        "rows",
        "regions",
        "numbers",
        "kropki_ratio",
        "total",
    ]


def test_check_document_rejects_duplicate_declarations():
    doc = (
        "array[1..rows, 1..cols] of int: regions = [| 1 |];\n"
        "array[1..rows, 1..cols] of var 1..4: regions;\n"
    )
    with pytest.raises(AssemblyInvariantViolation, match="declared twice"):
        naming.check_document(doc, {"regions": (1, 1)})
