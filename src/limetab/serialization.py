"""
Serialization helpers for question trees and tabulations.

Everything goes through a plain dict/list representation that keeps
sequence order and the original key spelling, then out to JSON or YAML.
YAML output is written with ``sort_keys=False`` so that column and
question order survive.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import yaml

from limetab.definitions import ANSWERS, SUBQUESTIONS
from limetab.tabulator import ColumnTally, Tabulation
from limetab.tree import Answer, Question, QuestionSet


def answer_to_dict(a: Answer) -> Dict[str, Any]:
    return dict(a.data)


def question_to_dict(q: Question) -> Dict[str, Any]:
    d = dict(q.data)
    if q.subquestions:
        d[SUBQUESTIONS] = [question_to_dict(s) for s in q.subquestions]
    if q.answers:
        d[ANSWERS] = [answer_to_dict(a) for a in q.answers]
    return d


def question_set_to_dict(qs: QuestionSet) -> List[Dict[str, Any]]:
    return [question_to_dict(q) for q in qs]


def question_set_from_dict(d: List[Dict[str, Any]]) -> QuestionSet:
    return QuestionSet(d)


def question_set_to_json(qs: QuestionSet, indent: Optional[int] = None) -> str:
    return json.dumps(question_set_to_dict(qs), indent=indent, ensure_ascii=False)


def question_set_from_json(s: str) -> QuestionSet:
    return question_set_from_dict(json.loads(s))


def question_set_to_yaml(qs: QuestionSet) -> str:
    return yaml.safe_dump(question_set_to_dict(qs), sort_keys=False, allow_unicode=True)


def question_set_from_yaml(s: str) -> QuestionSet:
    return question_set_from_dict(yaml.safe_load(s) or [])


def column_to_dict(c: ColumnTally) -> Dict[str, Any]:
    return {
        "count": c.count,
        "vals": {v: {"count": t.count, "percent": t.percent} for v, t in c.vals.items()},
    }


def tabulation_to_dict(t: Tabulation) -> Dict[str, Any]:
    return {name: column_to_dict(c) for name, c in t.items()}


def tabulation_to_json(t: Tabulation, indent: Optional[int] = None) -> str:
    return json.dumps(tabulation_to_dict(t), indent=indent, ensure_ascii=False)


def tabulation_to_yaml(t: Tabulation) -> str:
    return yaml.safe_dump(tabulation_to_dict(t), sort_keys=False, allow_unicode=True)
