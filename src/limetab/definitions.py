"""
Definition rows → nested, naturally ordered question definitions.

The definition fetcher hands over flat rows straight from survey storage:

    question rows:  {qid, title, type, parent_qid, ...}
    answer rows:    {aid, code, qid, scale_id, ...}

``nest_definitions`` pairs every question with its sub-questions (by
``parent_qid``) and answers (by ``qid``), producing the nested shape that
``limetab.tree`` builds from:

    {qid, title, type, ..., "subquestions": [...], "answers": [...]}

Every level is sorted with the natural comparator. Answers of scale-style
questions sort by ``scale_id``; all other answers sort by ``code``.

Source rows are never modified; every function returns fresh dicts.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from limetab.access import AccessFilter
from limetab.errors import MalformedInputError
from limetab.natural import natural_key

logger = logging.getLogger(__name__)

SUBQUESTIONS = "subquestions"
ANSWERS = "answers"

# Question type codes with special handling.
SCALE_TYPE = "1"
MULTIPLE_CHOICE_TYPE = "M"

_TOP_LEVEL_PARENTS = (None, 0, "0", "")


def _field(row: Mapping[str, Any], name: str) -> Any:
    value = row.get(name)
    return "" if value is None else value


def _mappings(items: Any, what: str) -> List[Mapping[str, Any]]:
    """Check that ``items`` is a list of mappings."""
    if isinstance(items, (str, bytes, Mapping)) or not isinstance(items, Iterable):
        raise MalformedInputError(f"Invalid {what}: expected a list")
    items = list(items)
    if not all(isinstance(item, Mapping) for item in items):
        raise MalformedInputError(f"Invalid {what}: expected a list of mappings")
    return items


def answer_sort_field(question_type: Any) -> str:
    """Name of the answer field that orders answers for a question type."""
    return "scale_id" if str(question_type) == SCALE_TYPE else "code"


def sort_answers(answers: Iterable[Mapping[str, Any]], question_type: Any) -> List[Dict[str, Any]]:
    sort_by = answer_sort_field(question_type)
    rows = (dict(a) for a in _mappings(answers, ANSWERS))
    return sorted(rows, key=lambda a: natural_key(_field(a, sort_by)))


def sort_definitions(definitions: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """
    Recursively sort nested question definitions.

    Sorting is stable and idempotent: sorting an already sorted list gives
    the same order back.

    Args:
        definitions: Nested question definitions

    Returns:
        New list of new dicts in natural ``title`` order

    Raises:
        MalformedInputError: If any level is not a list of mappings
    """
    result = []
    for definition in _mappings(definitions, "question definitions"):
        d = dict(definition)
        if d.get(SUBQUESTIONS):
            d[SUBQUESTIONS] = sort_definitions(_mappings(d[SUBQUESTIONS], SUBQUESTIONS))
        if d.get(ANSWERS):
            d[ANSWERS] = sort_answers(d[ANSWERS], d.get("type"))
        result.append(d)
    result.sort(key=lambda d: natural_key(_field(d, "title")))
    return result


def is_top_level(row: Mapping[str, Any]) -> bool:
    return row.get("parent_qid") in _TOP_LEVEL_PARENTS


def nest_definitions(
    question_rows: Iterable[Mapping[str, Any]],
    answer_rows: Optional[Iterable[Mapping[str, Any]]] = None,
    access: Optional[AccessFilter] = None,
) -> List[Dict[str, Any]]:
    """
    Attach sub-questions and answers to their owning questions.

    Args:
        question_rows: Flat question rows, top level and sub-questions mixed
        answer_rows: Flat answer rows (optional)
        access: Optional filter applied to top-level question titles

    Returns:
        Sorted nested definitions of the top-level questions
    """
    question_rows = _mappings(question_rows, "question rows")
    children: Dict[str, List[Mapping[str, Any]]] = defaultdict(list)
    answers: Dict[str, List[Mapping[str, Any]]] = defaultdict(list)

    top_level = []
    for row in question_rows:
        if is_top_level(row):
            top_level.append(row)
        else:
            children[str(row["parent_qid"])].append(row)

    for row in _mappings(answer_rows or [], "answer rows"):
        answers[str(row.get("qid"))].append(row)

    if access is not None:
        top_level = [q for q in top_level if access.is_allowed(str(_field(q, "title")))]

    def attach(row: Mapping[str, Any], path: Set[str]) -> Dict[str, Any]:
        d = dict(row)
        qid = str(row.get("qid"))
        lineage = path | {qid}
        subs = []
        for sub in children.get(qid, []):
            if str(sub.get("qid")) in lineage:
                logger.warning("Skipping question %s: it is its own ancestor", sub.get("qid"))
                continue
            subs.append(attach(sub, lineage))
        if subs:
            d[SUBQUESTIONS] = subs
        if answers.get(qid):
            d[ANSWERS] = [dict(a) for a in answers[qid]]
        return d

    nested = [attach(row, set()) for row in top_level]
    logger.debug(
        "Nested %d question rows and %d answer groups into %d top-level questions",
        len(question_rows), len(answers), len(nested),
    )
    return sort_definitions(nested)


__all__ = [
    "SCALE_TYPE",
    "MULTIPLE_CHOICE_TYPE",
    "answer_sort_field",
    "sort_answers",
    "sort_definitions",
    "is_top_level",
    "nest_definitions",
]
