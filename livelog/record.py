"""record.py - Levels and text rendering for livelog records.

A livelog record is a single text line of the form::

    <package> - <LEVEL>: <message>

The level token may be wrapped in an ANSI colour sequence. Nothing else on the
line is coloured, so trace consumers can still grep for ``svc - WARN``-style
prefixes after stripping escape codes.

Rendering is split in two so that callers can decide whether a DEBUG record
passes the filter (which needs the message) before paying for the full line.
"""

from enum import IntEnum
from typing import Sequence


class Level(IntEnum):
    """Record severity.

    The numeric values line up with the stdlib ``logging`` constants so a
    ``Level`` can be handed straight to ``logging.Logger.log``. PANIC has no
    stdlib counterpart and sits above CRITICAL.
    """

    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40
    FATAL = 50
    PANIC = 60

    @classmethod
    def parse(cls, name: str) -> "Level":
        """Return the level called ``name`` (case-insensitive).

        ``WARNING`` and ``CRITICAL`` are accepted as the stdlib spellings of
        WARN and FATAL.

        Raises:
            ValueError: If ``name`` is not a known level.
        """
        key = name.strip().upper()
        key = _ALIASES.get(key, key)
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"unknown level: {name}") from None


_ALIASES = {"WARNING": "WARN", "CRITICAL": "FATAL"}

COLOURS = {
    Level.DEBUG: "blue",
    Level.INFO: "green",
    Level.WARN: "yellow",
    Level.ERROR: "red",
    Level.FATAL: "cyan",
    Level.PANIC: "magenta",
}

_ANSI = {
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "magenta": "\033[35m",
    "cyan": "\033[36m",
}
_RESET = "\033[0m"


def level_token(level: Level, colour: bool = False) -> str:
    """Return the level name, wrapped in its ANSI colour when ``colour`` is set."""
    if not colour:
        return level.name
    return f"{_ANSI[COLOURS[level]]}{level.name}{_RESET}"


def render_message(template: str, args: Sequence, formatted: bool) -> str:
    """Build the message part of a record.

    Args:
        template: The format string for formatted calls; ignored otherwise.
        args: Positional values supplied by the caller.
        formatted: True for the ``*f`` variants, which apply ``%``
            substitution; False for the plain variants, which join every
            argument with a single space.

    Returns:
        The rendered message. A template whose placeholders do not match
        ``args`` is not an error: the arguments are appended instead, so a
        logging call never raises because of a bad format string.
    """
    if not formatted:
        return " ".join(str(a) for a in args)
    if not args:
        return template
    try:
        return template % tuple(args)
    except (TypeError, ValueError):
        return " ".join([template, *(str(a) for a in args)])


def render_line(package: str, level: Level, message: str, colour: bool = False) -> str:
    """Return ``"<package> - <LEVEL>: <message>"``, or ``"<package> - <LEVEL>"`` for an empty message."""
    token = level_token(level, colour)
    if message:
        return f"{package} - {token}: {message}"
    return f"{package} - {token}"
