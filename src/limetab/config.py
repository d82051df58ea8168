"""
Tabulation options and configuration files.

Options can come from a dict (the shape callers have always passed) or from
a YAML file:

    # limetab.yaml
    allowed: "/^Q\\d+$/"
    blocked: [Q99]
    ignore_blanks: true
    sort: true

Keys are accepted in snake_case and in the camelCase spelling of the
original option names (``allowedIsPattern``). ``whitelist`` / ``blacklist``
still work but are deprecated.
"""

from __future__ import annotations

import os
import warnings
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from limetab.access import AccessFilter, LEGACY_ALIASES
from limetab.errors import ConfigurationError

# Environment variable naming a default options file for the CLI.
CONFIG_ENV_VAR = "LIMETAB_CONFIG"

_ALIASES = {
    "allowedIsPattern": "allowed_is_pattern",
    "blockedIsPattern": "blocked_is_pattern",
    "ignoreBlanks": "ignore_blanks",
}


@dataclass(frozen=True)
class TabulationOptions:
    """
    Validated options for ``limetab.tabulator.tabulate``.

    Properties:
        allowed: Allowed names, or a pattern (string)
        allowed_is_pattern: Force pattern/literal mode for ``allowed``
        blocked: Blocked names, or a pattern (string)
        blocked_is_pattern: Force pattern/literal mode for ``blocked``
        ignore_blanks: Skip blank values (default True)
        sort: Order result columns naturally (default False)
    """

    allowed: Union[str, List[str], None] = None
    allowed_is_pattern: Optional[bool] = None
    blocked: Union[str, List[str], None] = None
    blocked_is_pattern: Optional[bool] = None
    ignore_blanks: bool = True
    sort: bool = False

    def access_filter(self) -> AccessFilter:
        return AccessFilter(
            allowed=self.allowed,
            blocked=self.blocked,
            allowed_is_pattern=self.allowed_is_pattern,
            blocked_is_pattern=self.blocked_is_pattern,
        )

    def merged(self, **overrides: Any) -> "TabulationOptions":
        """Copy with the non-None overrides applied."""
        current = {f.name: getattr(self, f.name) for f in fields(self)}
        current.update({k: v for k, v in overrides.items() if v is not None})
        return options_from_dict(current)


def _check_rule(name: str, value: Any) -> None:
    if value is None or isinstance(value, str):
        return
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return
    raise ConfigurationError(f"'{name}' must be a string or a list of strings")


def options_from_dict(d: Optional[Mapping[str, Any]]) -> TabulationOptions:
    """
    Validate an option mapping.

    Raises:
        ConfigurationError: On unknown keys or wrongly typed values
    """
    if d is None:
        return TabulationOptions()
    if not isinstance(d, Mapping):
        raise ConfigurationError(f"Options must be a mapping, got {type(d).__name__}")

    known = {f.name for f in fields(TabulationOptions)}
    values: Dict[str, Any] = {}
    for key, value in d.items():
        if key in LEGACY_ALIASES:
            warnings.warn(
                f"The use of the '{key}' option is deprecated; use '{LEGACY_ALIASES[key]}' instead.",
                DeprecationWarning,
                stacklevel=2,
            )
            values.setdefault(LEGACY_ALIASES[key], value)
            continue
        name = _ALIASES.get(key, key)
        if name not in known:
            raise ConfigurationError(f"Unknown option '{key}'")
        values[name] = value

    for name in ("allowed", "blocked"):
        _check_rule(name, values.get(name))
        if isinstance(values.get(name), tuple):
            values[name] = list(values[name])
    for name in ("allowed_is_pattern", "blocked_is_pattern"):
        if values.get(name) is not None and not isinstance(values[name], bool):
            raise ConfigurationError(f"'{name}' must be a boolean")
    for name in ("ignore_blanks", "sort"):
        if name in values and not isinstance(values[name], bool):
            raise ConfigurationError(f"'{name}' must be a boolean")

    return TabulationOptions(**values)


def load_options(path: Union[str, Path]) -> TabulationOptions:
    """
    Read options from a YAML file.

    An empty file gives the defaults.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigurationError: If the YAML is invalid or the options are
    """
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    return options_from_dict(data)


def default_options() -> TabulationOptions:
    """Options from the file named by LIMETAB_CONFIG, or the defaults."""
    path = os.getenv(CONFIG_ENV_VAR, "").strip()
    if not path:
        return TabulationOptions()
    return load_options(path)


__all__ = [
    "CONFIG_ENV_VAR",
    "TabulationOptions",
    "options_from_dict",
    "load_options",
    "default_options",
]
