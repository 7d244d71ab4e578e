"""Console, logging, and small helpers shared across clawdbot."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

console = Console()
err_console = Console(stderr=True)

_TRUTHY_VALUES = frozenset({"1", "true", "yes", "on", "y"})


def setup_logging(log_level: str = "warning", *, verbose: bool = False) -> None:
    """Configure the root logger to write through Rich on stderr.

    Args:
        log_level: Logging level used when not in verbose mode.
        verbose: Force DEBUG output (``--verbose``/``--debug``).

    """
    level = logging.DEBUG if verbose else getattr(logging, log_level.upper(), logging.WARNING)

    handler = RichHandler(
        console=err_console,
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
        markup=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def is_truthy_env_value(value: str | None) -> bool:
    """Return True for the usual spellings of an enabled environment toggle."""
    if value is None:
        return False
    return value.strip().lower() in _TRUTHY_VALUES


def format_error_message(err: BaseException | object) -> str:
    """Render an exception (or anything raised) as a single human-readable line."""
    if isinstance(err, BaseException):
        message = str(err).strip()
        return message or type(err).__name__
    return str(err)
