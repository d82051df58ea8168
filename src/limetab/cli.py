"""
Command-line entry point.

    limetab tree definitions.yaml [--answers answers.yaml] [--format yaml]
    limetab tabulate export.csv [--allow Q1 Q2] [--block-pattern '^Q9'] [--sort]

Definition files may be JSON or YAML: either a list of question rows or a
mapping with "questions" and "answers" lists. Flat rows (with
``parent_qid``) are nested before the tree is built.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, List, Optional, Sequence

import yaml

from limetab import __version__
from limetab.access import AccessFilter
from limetab.config import default_options, load_options
from limetab.definitions import is_top_level, nest_definitions
from limetab.errors import LimetabError, MalformedInputError
from limetab.normalizer import load_export
from limetab.serialization import (
    question_set_to_json,
    question_set_to_yaml,
    tabulation_to_json,
    tabulation_to_yaml,
)
from limetab.tabulator import tabulate
from limetab.tree import build_question_set

logger = logging.getLogger("limetab")

LOG_LEVEL_ENV_VAR = "LIMETAB_LOG_LEVEL"


def _read_structured(path: str) -> Any:
    try:
        return yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise MalformedInputError(f"Could not read {path}: {e}") from e


def _rows(data: Any, key: str) -> List[Any]:
    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get(key) or []
    if not isinstance(data, list):
        raise MalformedInputError(f"Expected a list of {key}")
    return data


def run_tree(args: argparse.Namespace) -> str:
    data = _read_structured(args.definitions)
    questions = _rows(data, "questions")
    answers = _rows(data, "answers") if isinstance(data, dict) else []
    if args.answers:
        answers = answers + _rows(_read_structured(args.answers), "answers")

    access = None
    if args.allow or args.block:
        access = AccessFilter(allowed=args.allow, blocked=args.block)

    is_flat = answers or any(isinstance(q, dict) and not is_top_level(q) for q in questions)
    if is_flat or access is not None:
        questions = nest_definitions(questions, answers, access=access)

    qs = build_question_set(questions)
    if args.format == "yaml":
        return question_set_to_yaml(qs)
    return question_set_to_json(qs, indent=2)


def run_tabulate(args: argparse.Namespace) -> str:
    options = load_options(args.config) if args.config else default_options()
    options = options.merged(
        allowed=args.allow or args.allow_pattern,
        allowed_is_pattern=True if args.allow_pattern else (False if args.allow else None),
        blocked=args.block or args.block_pattern,
        blocked_is_pattern=True if args.block_pattern else (False if args.block else None),
        ignore_blanks=False if args.keep_blanks else None,
        sort=True if args.sort else None,
    )

    records = load_export(args.export, delimiter=args.delimiter)
    result = tabulate(
        records,
        access=options.access_filter(),
        ignore_blanks=options.ignore_blanks,
        sort=options.sort,
    )
    if args.format == "yaml":
        return tabulation_to_yaml(result)
    return tabulation_to_json(result, indent=2)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="limetab")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        default=os.getenv(LOG_LEVEL_ENV_VAR, "WARNING"),
        help="Logging level (default: WARNING, or $LIMETAB_LOG_LEVEL).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    tree = sub.add_parser("tree", help="Print the sorted question tree.")
    tree.add_argument("definitions", help="JSON/YAML question definitions.")
    tree.add_argument("--answers", help="JSON/YAML answer rows.")
    tree.add_argument("--allow", nargs="+", help="Top-level question titles to keep.")
    tree.add_argument("--block", nargs="+", help="Top-level question titles to drop.")
    tree.add_argument("--format", choices=("json", "yaml"), default="json")
    tree.set_defaults(func=run_tree)

    tab = sub.add_parser("tabulate", help="Print value counts per export column.")
    tab.add_argument("export", help="Delimited response export.")
    tab.add_argument("--delimiter", help="Field delimiter (auto-detected by default).")
    tab.add_argument("--config", help="YAML options file (default: $LIMETAB_CONFIG).")
    allow = tab.add_mutually_exclusive_group()
    allow.add_argument("--allow", nargs="+", help="Column names to include.")
    allow.add_argument("--allow-pattern", help="Regular expression for columns to include.")
    block = tab.add_mutually_exclusive_group()
    block.add_argument("--block", nargs="+", help="Column names to exclude.")
    block.add_argument("--block-pattern", help="Regular expression for columns to exclude.")
    tab.add_argument("--keep-blanks", action="store_true", help="Count blank values too.")
    tab.add_argument("--sort", action="store_true", help="Sort columns naturally.")
    tab.add_argument("--format", choices=("json", "yaml"), default="json")
    tab.set_defaults(func=run_tabulate)

    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        output = args.func(args)
    except (LimetabError, FileNotFoundError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"limetab: error: {e}", file=sys.stderr)
        return 2
    sys.stdout.write(output)
    if not output.endswith("\n"):
        sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
