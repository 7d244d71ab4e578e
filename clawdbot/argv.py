"""Token-level helpers over the raw process argument vector.

All functions are pure. The vector is never mutated, index 0 and 1 hold the
runtime and program names, and everything after a ``--`` terminator is inert
data that is never interpreted as a flag or a command path segment.
"""

from __future__ import annotations

import enum
import re
from pathlib import PurePath
from typing import TYPE_CHECKING, Final, Literal

from clawdbot.constants import DEFAULT_RUNTIME, HELP_FLAGS, TERMINATOR, VERSION_FLAGS

if TYPE_CHECKING:
    from collections.abc import Sequence


class _Missing(enum.Enum):
    MISSING = "MISSING"

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing.MISSING
"""Returned by `get_flag_value` when the flag does not appear at all."""

FlagValue = str | None | Literal[_Missing.MISSING]

# Commands that never need persisted state migrated before they run.
READ_ONLY_COMMANDS: Final = frozenset({"health", "status", "sessions"})
READ_ONLY_SUBCOMMANDS: Final = frozenset({("memory", "status"), ("memory", "search")})

_INTERPRETER_RE = re.compile(r"^(python|pypy)(\d+(\.\d+)*)?(w)?(\.exe)?$", re.IGNORECASE)


def has_help_or_version(argv: Sequence[str]) -> bool:
    """Return True if a help or version flag appears before any terminator."""
    for token in argv[2:]:
        if token == TERMINATOR:
            return False
        if token in HELP_FLAGS or token in VERSION_FLAGS:
            return True
    return False


def get_command_path(argv: Sequence[str], offset: int = 2) -> list[str]:
    """Return the run of non-flag tokens starting at ``offset``.

    Stops at the first flag-shaped token or at the terminator.
    """
    path: list[str] = []
    for token in argv[offset:]:
        if token == TERMINATOR or token.startswith("-"):
            break
        path.append(token)
    return path


def get_primary_command(argv: Sequence[str]) -> str | None:
    """Return the first command path segment, or None."""
    path = get_command_path(argv, 2)
    return path[0] if path else None


def has_flag(argv: Sequence[str], name: str) -> bool:
    """Return True if ``name`` appears verbatim before any terminator."""
    for token in argv[2:]:
        if token == TERMINATOR:
            return False
        if token == name:
            return True
    return False


def get_flag_value(argv: Sequence[str], name: str) -> FlagValue:
    """Extract the value of a value flag.

    Supports ``--name value`` and ``--name=value``. Returns None when the
    flag is present without a usable value (end of argv, or the next token
    looks like another flag) and `MISSING` when the flag does not occur
    before the terminator.
    """
    prefix = f"{name}="
    tokens = argv[2:]
    for index, token in enumerate(tokens):
        if token == TERMINATOR:
            break
        if token == name:
            if index + 1 >= len(tokens):
                return None
            value = tokens[index + 1]
            if value.startswith("-"):
                return None
            return value
        if token.startswith(prefix):
            return token[len(prefix) :]
    return MISSING


def is_read_only_command(argv: Sequence[str]) -> bool:
    """Return True if the invoked command can run without migrating state."""
    path = get_command_path(argv, 2)
    if not path:
        return False
    primary = path[0]
    secondary = path[1] if len(path) > 1 else None
    if primary in READ_ONLY_COMMANDS:
        return True
    return (primary, secondary) in READ_ONLY_SUBCOMMANDS


def parse_positive_int(value: str | None | Literal[_Missing.MISSING]) -> int | None:
    """Parse a strictly positive integer, returning None for anything else."""
    if value is None or value is MISSING:
        return None
    text = value.strip()
    if not (text.isascii() and text.isdigit()):
        return None
    parsed = int(text)
    return parsed if parsed > 0 else None


def _is_interpreter(executable: str) -> bool:
    return bool(_INTERPRETER_RE.match(PurePath(executable).name))


def build_parse_argv(
    program_name: str,
    *,
    raw_args: Sequence[str] | None = None,
    fallback_argv: Sequence[str] | None = None,
) -> list[str]:
    """Rebuild a ``[runtime, program, *rest]`` vector for the full parser.

    ``raw_args`` that start with a Python interpreter are script-runner
    invocations and are returned unchanged. Other ``raw_args`` come from a
    direct binary (console script) and get a synthetic runtime element.
    Without ``raw_args`` the ``fallback_argv`` tokens are wrapped with both
    synthetic elements.
    """
    if raw_args:
        if _is_interpreter(raw_args[0]):
            return list(raw_args)
        return [DEFAULT_RUNTIME, program_name, *raw_args[1:]]
    return [DEFAULT_RUNTIME, program_name, *(fallback_argv or [])]
