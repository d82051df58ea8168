"""
limetab — survey definition trees and response frequency tables.

This package turns LimeSurvey-style data into two read-only projections:

    - QuestionSet: the survey's questions, sub-questions and answers as an
      ordered, dual-indexed tree (``limetab.tree``)
    - Tabulation: per-column value counts and percentages computed from a
      delimited response export (``limetab.normalizer``,
      ``limetab.tabulator``), filtered through allow/block rules
      (``limetab.access``)

ARCHITECTURAL GUARANTEE:
------------------------
This package performs no network or database I/O. Fetching definitions and
exports, sessions and caching all belong to the caller. Every function here
is a pure transformation over data that has already been fetched.
"""

__version__ = "0.1.0"

from limetab.access import AccessFilter
from limetab.errors import (
    ConfigurationError,
    LimetabError,
    MalformedInputError,
    PreconditionError,
    ReadOnlyError,
)
from limetab.normalizer import normalize_export
from limetab.tabulator import tabulate, tabulate_responses
from limetab.tree import Answer, Question, QuestionSet, build_question_set

__all__ = [
    "AccessFilter",
    "Answer",
    "Question",
    "QuestionSet",
    "build_question_set",
    "normalize_export",
    "tabulate",
    "tabulate_responses",
    "LimetabError",
    "ConfigurationError",
    "MalformedInputError",
    "PreconditionError",
    "ReadOnlyError",
]
