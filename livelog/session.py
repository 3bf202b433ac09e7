"""session.py - The line protocol spoken on a livelog control connection.

A client sends one command per line; every command gets exactly one reply
block, the last line of which starts with ``OK`` or ``ERROR``. After
``trace <LEVEL>`` the same connection also receives live records, interleaved
with replies at line boundaries.

Commands (keywords are case-insensitive)::

    debug on | debug off          toggle DEBUG output
    debug regex <pattern>         only emit DEBUG records matching <pattern>
    debug regex                   drop the pattern
    trace <LEVEL>                 stream records at or above LEVEL here
    untrace                       stop streaming
    history [n]                   replay the last n traced lines
    status                        one-line summary of the filter and registry
    quit                          close the connection
"""

import logging
import re
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from .connection import Connection
from .errors import CommandError
from .record import Level

if TYPE_CHECKING:  # pragma: no cover
    from .endpoint import Endpoint
    from .logger import Logger

_log = logging.getLogger(__name__)

GREETING = (
    "livelog {package}: commands are debug on|off, debug regex [pattern], "
    "trace <level>, untrace, history [n], status, quit"
)

_REGEX_ARG = re.compile(r"^\s*debug\s+regex(?:\s+(?P<pattern>.*?))?\s*$", re.IGNORECASE)


def unquote(text: str) -> str:
    """Undo the double-quoting the client applies to arguments containing whitespace."""
    if len(text) >= 2 and text[0] == text[-1] == '"':
        return re.sub(r'\\(["\\])', r"\1", text[1:-1])
    return text


class SessionHandler:
    """Serves one control connection until the client quits or disconnects.

    The handler runs on its own thread. It mutates the logger's filter and
    trace registry (both guarded by the logger's RWLock) and writes replies
    through ``Connection.write``, so a client that stops reading is simply
    disconnected.
    """

    def __init__(
        self,
        logger: "Logger",
        connection: Connection,
        endpoint: Optional["Endpoint"] = None,
    ) -> None:
        self._logger = logger
        self._conn = connection
        self._endpoint = endpoint
        self._commands: Dict[str, Callable[[str, List[str]], str]] = {
            "debug": self._debug,
            "trace": self._trace,
            "untrace": self._untrace,
            "history": self._history,
            "status": self._status,
        }

    def run(self) -> None:
        """Greet the client, then read and execute commands until the connection ends."""
        try:
            if not self.reply(GREETING.format(package=self._logger.package_name)):
                return
            for line in self._conn.lines():
                if not self.handle_line(line):
                    break
        finally:
            self._logger.registry.remove(self._conn)
            self._conn.close()
            if self._endpoint is not None:
                self._endpoint.forget(self._conn)
            _log.debug("control session closed")

    def handle_line(self, line: str) -> bool:
        """Execute one command line.

        Returns:
            False when the session should end: after ``quit``, or when the
            reply could not be delivered.
        """
        words = line.split()
        if not words:
            return True
        keyword = words[0].lower()
        if keyword == "quit":
            return False

        command = self._commands.get(keyword)
        try:
            if command is None:
                raise CommandError(f"unknown command: {line.strip()}")
            reply = command(line, words[1:])
        except CommandError as exc:
            reply = f"ERROR {exc}"
        return self.reply(reply)

    def reply(self, text: str) -> bool:
        if not text.endswith("\n"):
            text += "\n"
        return self._conn.reply(text)

    # ---------------------------------------------------------------------- #
    # Commands
    # ---------------------------------------------------------------------- #

    def _debug(self, line: str, args: List[str]) -> str:
        if not args:
            raise CommandError("usage: debug on|off|regex [pattern]")
        action = args[0].lower()
        debug_filter = self._logger.filter
        if action == "on":
            debug_filter.set_enabled(True)
            return "OK debug on"
        if action == "off":
            debug_filter.set_enabled(False)
            return "OK debug off"
        if action == "regex":
            match = _REGEX_ARG.match(line)
            pattern = unquote(match.group("pattern") or "") if match else ""
            debug_filter.set_pattern(pattern or None)
            if pattern:
                return f"OK debug regex {pattern}"
            return "OK debug regex cleared"
        raise CommandError(f"unknown debug option: {args[0]}")

    def _trace(self, line: str, args: List[str]) -> str:
        if len(args) != 1:
            raise CommandError("usage: trace <level>")
        try:
            level = Level.parse(args[0])
        except ValueError as exc:
            raise CommandError(str(exc)) from exc
        self._logger.registry.add(self._conn, level)
        return f"OK trace {level.name}"

    def _untrace(self, line: str, args: List[str]) -> str:
        self._logger.registry.remove(self._conn)
        return "OK untrace"

    def _history(self, line: str, args: List[str]) -> str:
        count = None
        if args:
            try:
                count = int(args[0])
            except ValueError:
                raise CommandError(f"invalid count: {args[0]}") from None
        entries = self._logger.history.recent(count)
        return "".join(e.line for e in entries) + f"OK history {len(entries)}"

    def _status(self, line: str, args: List[str]) -> str:
        debug_filter = self._logger.filter
        registry = self._logger.registry
        session = registry.get(self._conn)
        connections = len(self._endpoint) if self._endpoint is not None else 1
        return (
            f"status package={self._logger.package_name}"
            f" debug={'on' if debug_filter.enabled else 'off'}"
            f" regex={debug_filter.pattern or '-'}"
            f" traces={len(registry)}"
            f" connections={connections}"
            f" trace={session.min_level.name if session else 'off'}"
        )
