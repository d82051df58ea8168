"""
End-to-end check over the bundled example survey.

Builds the tree from flat rows, normalizes the example export, tabulates
it and resolves column labels and multiple-choice selections through the
tree.
"""

from limetab.access import AccessFilter
from limetab.definitions import nest_definitions
from limetab.examples import build_example_export, build_example_rows
from limetab.normalizer import normalize_export
from limetab.tabulator import tabulate
from limetab.tree import build_question_set


def build_example():
    questions, answers = build_example_rows()
    qs = build_question_set(nest_definitions(questions, answers))
    records = normalize_export(build_example_export())
    return qs, records


def test_example_tree_structure():
    qs, _ = build_example()
    assert [q.title for q in qs] == ["Q1", "Q2", "Q3", "Q10"]
    assert [a.code for a in qs["Q2"].answers] == ["C", "B"]  # scale order
    assert qs["Q10"].subquestion("SQ10").text == "Tablet"


def test_example_export_records():
    _, records = build_example()
    assert len(records) == 3
    assert records[2]["Q3"] == "Line one\nline two"


def test_example_tabulation_with_labels():
    qs, records = build_example()
    result = tabulate(records, access=AccessFilter(blocked=["id"]), sort=True)
    assert list(result) == ["Q1", "Q2", "Q3", "Q10[SQ1]", "Q10[SQ2]", "Q10[SQ10]"]
    assert result["Q1"].vals["A1"].percent == 66.67
    assert result["Q3"].count == 2
    assert qs.label("Q10[SQ2]") == "Laptop"
    assert qs.find_answer("Q1", "A1").text == "Friend"


def test_example_multiple_choice():
    qs, records = build_example()
    q10 = qs["Q10"]
    assert q10.multiple_choice(records[0], code=True) == ["SQ1", "SQ10"]
    assert q10.multiple_choice(records[2], as_map=True) == {"SQ1": True, "SQ2": True, "SQ10": False}
    assert q10.multiple_choice(records[1], text=True) == ["Tablet"]


def test_alternate_delimiter():
    records = normalize_export(build_example_export(delimiter=";"))
    assert len(records) == 3
