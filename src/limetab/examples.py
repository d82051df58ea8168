"""
Example survey payloads for demos and tests.

Builds the flat definition rows and a matching response export for a small
four-question survey:

    Q1   list (radio)       answers A1, A2, A10
    Q2   dual scale ("1")   answers ordered by scale_id
    Q10  multiple choice    sub-questions SQ1, SQ2, SQ10
    Q3   free text

Rows are deliberately out of order so that the natural sort is visible.
"""
from typing import Any, Dict, List, Tuple

Row = Dict[str, Any]


def _strings(field: str, text: str) -> List[Dict[str, str]]:
    return [{"language": "en", field: text}]


def build_example_rows(survey_id: int = 123456) -> Tuple[List[Row], List[Row]]:
    """Return ``(question_rows, answer_rows)`` for the example survey."""
    questions: List[Row] = [
        {"qid": 13, "sid": survey_id, "parent_qid": 0, "title": "Q10", "type": "M",
         "strings": _strings("question", "Which devices do you own?")},
        {"qid": 11, "sid": survey_id, "parent_qid": 0, "title": "Q1", "type": "L",
         "strings": _strings("question", "How did you hear about us?")},
        {"qid": 14, "sid": survey_id, "parent_qid": 0, "title": "Q3", "type": "T",
         "strings": _strings("question", "Any other comments?")},
        {"qid": 12, "sid": survey_id, "parent_qid": 0, "title": "Q2", "type": "1",
         "strings": _strings("question", "Rate our service")},
    ]

    # Sub-questions of Q10.
    for qid, title, text in [
        (32, "SQ10", "Tablet"),
        (30, "SQ1", "Phone"),
        (31, "SQ2", "Laptop"),
    ]:
        questions.append({
            "qid": qid, "sid": survey_id, "parent_qid": 13, "title": title, "type": "T",
            "strings": _strings("question", text),
        })

    answers: List[Row] = [
        {"aid": 103, "qid": 11, "code": "A10", "scale_id": 0, "strings": _strings("answer", "Other")},
        {"aid": 101, "qid": 11, "code": "A1", "scale_id": 0, "strings": _strings("answer", "Friend")},
        {"aid": 102, "qid": 11, "code": "A2", "scale_id": 0, "strings": _strings("answer", "Advert")},
        {"aid": 202, "qid": 12, "code": "B", "scale_id": 1, "strings": _strings("answer", "Good")},
        {"aid": 201, "qid": 12, "code": "C", "scale_id": 0, "strings": _strings("answer", "Poor")},
    ]

    return questions, answers


def build_example_export(delimiter: str = ",") -> str:
    """Return a raw response export for the example survey."""
    header = ["id", "Q1", "Q2", "Q10[SQ1]", "Q10[SQ2]", "Q10[SQ10]", "Q3"]
    rows = [
        ["1", "A1", "B", "Y", "N", "Y", "Great, thanks"],
        ["2", "A2", "B", "N", "N", "Y", ""],
        ["3", "A1", "C", "Y", "Y", "N", "Line one\nline two"],
        ["", "", "", "", "", "", ""],
    ]

    def quote(cell: str) -> str:
        return '"' + cell.replace('"', '""') + '"'

    lines = [delimiter.join(quote(h) for h in header)]
    for row in rows:
        lines.append(delimiter.join(quote(c) if c else "" for c in row))
    return "\ufeff" + "\n".join(lines) + "\n"


__all__ = ["build_example_rows", "build_example_export"]
