"""
Access Filter — allow/block rules for question and column names.

A filter holds up to two rule sets:

    allowed:  if present, a name must satisfy it to pass
    blocked:  if present, a name that satisfies it is rejected

Each rule set is either a list of literal names (exact membership) or one
or more regular-expression patterns (any match is enough). The blocked
set always has the final word: a name in both sets is rejected.

Option shape (as accepted by ``AccessFilter.from_options``):

    {
        "allowed": "^Q\\d+$" | ["Q1", "Q2"],
        "allowedIsPattern": bool,
        "blocked": ... ,
        "blockedIsPattern": bool,
    }

A string value defaults to pattern mode and a list value to literal mode;
the ``*IsPattern`` flag overrides either default. The legacy keys
``whitelist`` and ``blacklist`` are still honoured with a DeprecationWarning.
"""

from __future__ import annotations

import re
import warnings
from functools import lru_cache
from typing import Any, Iterable, Mapping, Optional, Tuple, Union

from limetab.errors import ConfigurationError

ALLOW = "allowed"
BLOCK = "blocked"
LEGACY_ALIASES = {"whitelist": ALLOW, "blacklist": BLOCK}

# PCRE-style delimiters accepted around a pattern, e.g. "/^Q\d+$/i".
_DELIMITERS = "/#~%@!+`;,"
_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE}

RuleValue = Union[str, Iterable[str]]


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern:
    """
    Compile an access pattern.

    Both plain Python patterns ("^Q\\d+$") and delimited PCRE-style
    patterns ("/^q\\d+$/i") are accepted.

    Raises:
        ConfigurationError: If the pattern cannot be compiled
    """
    body, flags = pattern, 0
    if len(pattern) >= 2 and pattern[0] in _DELIMITERS:
        end = pattern.rfind(pattern[0])
        modifiers = pattern[end + 1:]
        if end > 0 and all(m in _FLAGS or m == "u" for m in modifiers):
            body = pattern[1:end]
            for m in modifiers:
                flags |= _FLAGS.get(m, 0)
    try:
        return re.compile(body, flags)
    except re.error as e:
        raise ConfigurationError(f"Invalid access pattern {pattern!r}: {e}") from e


def _normalize_rule(value: Any, is_pattern: Optional[bool], prop: str) -> Tuple[Optional[Tuple[str, ...]], bool]:
    """Turn an option value into a tuple of rules plus its pattern flag."""
    if value is None:
        return None, False
    if isinstance(value, str):
        return (value,), True if is_pattern is None else is_pattern
    if isinstance(value, (list, tuple, set, frozenset)):
        if not all(isinstance(v, str) for v in value):
            raise ConfigurationError(f"'{prop}' entries must all be strings")
        return tuple(value), False if is_pattern is None else is_pattern
    raise ConfigurationError(
        f"'{prop}' must be a string or a list of strings, got {type(value).__name__}"
    )


class AccessFilter:
    """
    Pure allow/block predicate over names.

    Instances are immutable once built and safe to share between threads.
    """

    def __init__(
        self,
        allowed: Optional[RuleValue] = None,
        blocked: Optional[RuleValue] = None,
        allowed_is_pattern: Optional[bool] = None,
        blocked_is_pattern: Optional[bool] = None,
    ):
        self.allowed, self.allowed_is_pattern = _normalize_rule(allowed, allowed_is_pattern, ALLOW)
        self.blocked, self.blocked_is_pattern = _normalize_rule(blocked, blocked_is_pattern, BLOCK)

    @classmethod
    def from_options(cls, opts: Optional[Mapping[str, Any]]) -> "AccessFilter":
        """
        Build a filter from an option mapping.

        Unrelated keys are ignored, so the same mapping can carry
        tabulation options as well.
        """
        opts = dict(opts or {})
        for legacy, current in LEGACY_ALIASES.items():
            if legacy in opts:
                warnings.warn(
                    f"The use of the '{legacy}' option is deprecated; use '{current}' instead.",
                    DeprecationWarning,
                    stacklevel=2,
                )
                opts.setdefault(current, opts[legacy])

        return cls(
            allowed=opts.get(ALLOW),
            blocked=opts.get(BLOCK),
            allowed_is_pattern=_flag(opts, ALLOW),
            blocked_is_pattern=_flag(opts, BLOCK),
        )

    @property
    def is_unrestricted(self) -> bool:
        return self.allowed is None and self.blocked is None

    def _in_list(self, name: str, rules: Optional[Tuple[str, ...]], is_pattern: bool, default: bool) -> bool:
        if rules is None:
            return default
        if is_pattern:
            return any(compile_pattern(p).search(name) for p in rules)
        return name in rules

    def is_allowed(self, name: str) -> bool:
        """Return True if ``name`` passes the allow rules and is not blocked."""
        if not self._in_list(name, self.allowed, self.allowed_is_pattern, True):
            return False
        if self._in_list(name, self.blocked, self.blocked_is_pattern, False):
            return False
        return True

    __call__ = is_allowed

    def __repr__(self) -> str:
        return (
            f"AccessFilter(allowed={self.allowed!r}, blocked={self.blocked!r}, "
            f"allowed_is_pattern={self.allowed_is_pattern}, "
            f"blocked_is_pattern={self.blocked_is_pattern})"
        )


def _flag(opts: Mapping[str, Any], prop: str) -> Optional[bool]:
    """Read the ``<prop>IsPattern`` flag in camelCase or snake_case."""
    for key in (f"{prop}IsPattern", f"{prop}_is_pattern"):
        value = opts.get(key)
        if value is None:
            continue
        if not isinstance(value, bool):
            raise ConfigurationError(f"'{key}' must be a boolean")
        return value
    return None


__all__ = ["AccessFilter", "compile_pattern", "ALLOW", "BLOCK"]
