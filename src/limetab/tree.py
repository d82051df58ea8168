"""
Survey Definition Tree

An ordered, dual-indexed, read-only view of a survey's questions:

    QuestionSet        root container of top-level questions
      └─ Question      a question or sub-question
           ├─ Question ...   sub-questions
           └─ Answer         answer codes

Every level keeps its children in presentation order and indexes them
twice: by identifier (``qid`` / ``aid``) and by human code (``title`` /
``code``). Lookups try the identifier first and return None when nothing
matches.

ARCHITECTURAL RULE:
    Nodes are built once, in one pass, and never change afterwards.
    Writing any attribute or item raises ReadOnlyError.
    The raw definition payload is never modified.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

from limetab.definitions import ANSWERS, MULTIPLE_CHOICE_TYPE, SUBQUESTIONS, sort_definitions
from limetab.errors import MalformedInputError, PreconditionError, ReadOnlyError

logger = logging.getLogger(__name__)

# Response value recorded for a ticked multiple-choice option.
SELECTED = "Y"

_COLUMN = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])*)$")
_BRACKET = re.compile(r"\[([^\[\]]*)\]")


def _key(value: Any) -> Optional[str]:
    return None if value is None else str(value)


class ReadOnly:
    """
    Base for every tree type: attributes may only be set during __init__.

    Subclasses call ``_freeze()`` once construction is complete.
    """

    _frozen = False

    def _freeze(self) -> None:
        object.__setattr__(self, "_frozen", True)

    def __setattr__(self, name: str, value: Any) -> None:
        if self._frozen:
            raise ReadOnlyError(name)
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        raise ReadOnlyError(name)

    def __setitem__(self, key: Any, value: Any) -> None:
        raise ReadOnlyError(str(key))

    def __delitem__(self, key: Any) -> None:
        raise ReadOnlyError(str(key))


class ChildIndex(ReadOnly):
    """
    Ordered children plus two lookup maps.

    Properties:
        items: Children in presentation order
        by_id: Identifier (as string) → child
        by_name: Title or code (as string) → child

    When two children share a key the later one wins the map entry; both
    stay in ``items``.
    """

    def __init__(self, items: Iterable[Any], id_field: str, name_field: str):
        self.items = tuple(items)
        by_id: Dict[str, Any] = {}
        by_name: Dict[str, Any] = {}
        for item in self.items:
            for field_name, index in ((id_field, by_id), (name_field, by_name)):
                k = _key(item[field_name])
                if k is None:
                    continue
                if k in index:
                    logger.warning("Duplicate %s %r among siblings", field_name, k)
                index[k] = item
        self.by_id = MappingProxyType(by_id)
        self.by_name = MappingProxyType(by_name)
        self._freeze()

    def lookup(self, key: Any) -> Any:
        k = _key(key)
        if k is None:
            return None
        found = self.by_id.get(k)
        if found is None:
            found = self.by_name.get(k)
        return found

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)


class DefinitionData(ReadOnly):
    """
    Read-only access to one raw definition row.

    ``node["field"]`` returns the raw value or None when the field is absent,
    so optional columns can be probed without try/except.
    """

    def __init__(self, root: "QuestionSet", data: Mapping[str, Any]):
        self.root = root
        self._data = MappingProxyType(
            {k: v for k, v in data.items() if k not in (SUBQUESTIONS, ANSWERS)}
        )

    @property
    def data(self) -> Mapping[str, Any]:
        """Raw fields of this row, without nested children."""
        return self._data

    def __getitem__(self, key: str) -> Any:
        return self._data.get(key)

    def __contains__(self, key: str) -> bool:
        return self._data.get(key) is not None

    def _string(self, field_name: str) -> Optional[str]:
        strings = self._data.get("strings")
        if isinstance(strings, Sequence) and strings and isinstance(strings[0], Mapping):
            value = strings[0].get(field_name)
            if value is not None:
                return value
        return None


class Answer(DefinitionData):
    """
    One answer code of a question.

    Properties:
        parent: The owning Question
        aid: Answer identifier
        code: Answer code, unique among the question's answers
        text: Localized label, falling back to ``code``
    """

    def __init__(self, parent: "Question", data: Mapping[str, Any]):
        super().__init__(parent.root, data)
        self.parent = parent
        self._freeze()

    @property
    def aid(self) -> Any:
        return self["aid"]

    @property
    def code(self) -> Any:
        return self["code"]

    @property
    def text(self) -> str:
        label = self._string("answer")
        return label if label is not None else str(self.code)

    def __repr__(self) -> str:
        return f"Answer(aid={self.aid!r}, code={self.code!r})"


@dataclass(frozen=True)
class ChoiceResult:
    """
    Outcome of a multiple-choice crosstab.

    Exactly one of ``value`` / ``error`` is meaningful: ``error`` is None
    on success and holds the precondition message on failure.
    """

    value: Union[Dict[str, bool], List[Any], None] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Question(DefinitionData):
    """
    A question or sub-question.

    The parent is either the root QuestionSet (top-level question) or
    another Question (sub-question). ``is_subquestion`` records which, and
    is fixed at construction.

    Properties:
        parent: QuestionSet or Question
        is_subquestion: True iff the parent is a Question
        qid: Identifier, unique within the tree
        title: Human code, unique among siblings
        type: Single-character question type code
        text: Localized label, falling back to ``title``
        subquestions: Child questions in natural title order
        answers: Answers in natural code (or scale) order
    """

    def __init__(self, parent: Union["QuestionSet", "Question"], data: Mapping[str, Any]):
        self.is_subquestion = isinstance(parent, Question)
        super().__init__(parent.root if self.is_subquestion else parent, data)
        self.parent = parent
        self._subquestions: ChildIndex = ChildIndex(
            (Question(self, d) for d in data.get(SUBQUESTIONS) or []), "qid", "title"
        )
        self._answers: ChildIndex = ChildIndex(
            (Answer(self, d) for d in data.get(ANSWERS) or []), "aid", "code"
        )
        self._freeze()

    @property
    def qid(self) -> Any:
        return self["qid"]

    @property
    def title(self) -> Any:
        return self["title"]

    @property
    def type(self) -> Any:
        return self["type"]

    @property
    def text(self) -> str:
        label = self._string("question")
        return label if label is not None else str(self.title)

    @property
    def subquestions(self) -> tuple:
        return self._subquestions.items

    @property
    def answers(self) -> tuple:
        return self._answers.items

    def subquestion(self, key: Any) -> Optional["Question"]:
        """Find a sub-question by qid, then by title."""
        return self._subquestions.lookup(key)

    def answer(self, key: Any) -> Optional[Answer]:
        """Find an answer by aid, then by code."""
        return self._answers.lookup(key)

    def get(self, key: Any) -> Union["Question", Answer, None]:
        """Find a sub-question, or failing that an answer, by id or code."""
        found = self.subquestion(key)
        if found is None:
            found = self.answer(key)
        return found

    def _multiple_choice_error(self) -> Optional[str]:
        # Checked most specific first: a missing sub-question list outranks
        # a wrong type, which outranks being a sub-question.
        if not self.subquestions:
            return "No sub-questions"
        if str(self.type) != MULTIPLE_CHOICE_TYPE:
            return f"Question 'type' was not '{MULTIPLE_CHOICE_TYPE}'"
        if self.is_subquestion:
            return "Cannot call 'multiple_choice()' on sub-question"
        return None

    def crosstab(
        self,
        record: Mapping[str, Any],
        as_map: bool = False,
        code: bool = False,
        text: bool = False,
    ) -> ChoiceResult:
        """
        Project one response record onto this multi-select question.

        Response columns are named ``<title>[<sub-question title>]``. Only
        sub-questions whose column is present in the record are reported.

        Args:
            record: One normalized response row
            as_map: Return {sub title: selected} instead of a list
            code: List selected sub-question titles
            text: List selected sub-question labels
                  (with ``code`` as well: {"code": ..., "text": ...} items;
                  with neither: the sub-question objects themselves)

        Returns:
            ChoiceResult carrying either the projection or an error message
        """
        error = self._multiple_choice_error()
        if error:
            return ChoiceResult(error=error)

        if as_map:
            choices: Dict[str, bool] = {}
            for subq, selected in self._selections(record):
                choices[str(subq.title)] = selected
            return ChoiceResult(value=choices)

        picked: List[Any] = []
        for subq, selected in self._selections(record):
            if not selected:
                continue
            if code and text:
                picked.append({"code": str(subq.title), "text": subq.text})
            elif code:
                picked.append(str(subq.title))
            elif text:
                picked.append(subq.text)
            else:
                picked.append(subq)
        return ChoiceResult(value=picked)

    def _selections(self, record: Mapping[str, Any]) -> Iterator[tuple]:
        for subq in self.subquestions:
            column = f"{self.title}[{subq.title}]"
            if record.get(column) is not None:
                yield subq, record[column] == SELECTED

    def multiple_choice(
        self,
        record: Mapping[str, Any],
        as_map: bool = False,
        code: bool = False,
        text: bool = False,
        fatal: bool = True,
    ) -> Union[Dict[str, bool], List[Any]]:
        """
        Crosstab with an error policy.

        With ``fatal`` (the default) an ineligible question raises
        PreconditionError; otherwise the problem is logged and an empty
        result of the requested shape is returned.
        """
        result = self.crosstab(record, as_map=as_map, code=code, text=text)
        if result.ok:
            return result.value
        if fatal:
            raise PreconditionError(result.error)
        logger.warning("multiple_choice() on question %s: %s", self.title, result.error)
        return {} if as_map else []

    def __repr__(self) -> str:
        return f"Question(qid={self.qid!r}, title={self.title!r}, type={self.type!r})"


class QuestionSet(ReadOnly):
    """
    Root container of a survey's top-level questions.

    Iterating yields questions in natural title order. ``qs[key]`` and
    ``qs.get(key)`` look a question up by qid, then by title, and return
    None when nothing matches.
    """

    def __init__(self, definitions: Iterable[Mapping[str, Any]]):
        if isinstance(definitions, (str, bytes, Mapping)):
            raise MalformedInputError("Invalid question definitions")
        definitions = list(definitions)
        if not all(isinstance(d, Mapping) for d in definitions):
            raise MalformedInputError("Invalid question definitions")
        self.root = self
        self._questions: ChildIndex = ChildIndex(
            (Question(self, d) for d in sort_definitions(definitions)), "qid", "title"
        )
        self._freeze()
        logger.debug("Built question set with %d top-level questions", len(self._questions))

    @property
    def questions(self) -> tuple:
        return self._questions.items

    @property
    def by_qid(self) -> Mapping[str, Question]:
        return self._questions.by_id

    @property
    def by_title(self) -> Mapping[str, Question]:
        return self._questions.by_name

    def get(self, key: Any) -> Optional[Question]:
        return self._questions.lookup(key)

    def __getitem__(self, key: Any) -> Optional[Question]:
        return self.get(key)

    def __contains__(self, key: Any) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)

    def find(self, path: Union[str, Sequence[str]]) -> Optional[Question]:
        """
        Walk a title path down through sub-questions.

        Args:
            path: "Q1" or ["Q1", "SQ001", ...]

        Returns:
            The question at the end of the path, or None
        """
        if isinstance(path, str):
            path = [path]
        if not path:
            return None
        node = self._questions.by_name.get(str(path[0]))
        for title in path[1:]:
            if node is None:
                return None
            node = node._subquestions.by_name.get(str(title))
        return node

    def find_answer(self, question: Union[str, Sequence[str], Question], code: Any) -> Optional[Answer]:
        """Resolve an answer by question (title, path or node) and answer code."""
        if not isinstance(question, Question):
            question = self.find(question)
        if question is None:
            return None
        return question._answers.by_name.get(str(code))

    def resolve_column(self, column: str) -> Union[Question, Answer, None]:
        """
        Map an export column name to the tree node it describes.

        ``Q1`` resolves to question Q1, ``Q1[SQ2]`` to sub-question SQ2 of
        Q1 (or answer SQ2 when there is no such sub-question).
        """
        match = _COLUMN.match(column)
        if not match:
            return None
        node: Union[Question, Answer, None] = self._questions.by_name.get(match.group(1))
        for part in _BRACKET.findall(match.group(2)):
            if not isinstance(node, Question):
                return None
            node = node._subquestions.by_name.get(part) or node._answers.by_name.get(part)
        return node

    def label(self, column: str) -> Optional[str]:
        """Human-readable label for an export column, or None."""
        node = self.resolve_column(column)
        return None if node is None else node.text

    def __repr__(self) -> str:
        return f"QuestionSet({len(self)} questions)"


def build_question_set(definitions: Iterable[Mapping[str, Any]]) -> QuestionSet:
    """
    Build a QuestionSet from nested question definitions.

    Args:
        definitions: Top-level question dicts, each optionally carrying
                     "subquestions" and "answers" lists

    Returns:
        Immutable, naturally ordered QuestionSet

    Raises:
        MalformedInputError: If ``definitions`` is not a list of mappings
    """
    return QuestionSet(definitions)


__all__ = [
    "SELECTED",
    "ReadOnly",
    "ChildIndex",
    "DefinitionData",
    "Answer",
    "Question",
    "QuestionSet",
    "ChoiceResult",
    "build_question_set",
]
