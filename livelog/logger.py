"""logger.py - The livelog facade and its process-wide singleton.

Application code logs through a Logger::

    from livelog import log

    logger = log("svc")                    # first call creates and starts it
    logger.infof("hello %s", "world")      # stderr: ... svc - INFO: hello world
    logger.debug("cache miss", key)        # dropped unless a client ran `debug on`

Every call produces at most one record. The record is rendered to a
``"<pkg> - <LEVEL>: <msg>"`` line and logged through a private stdlib
``logging.Logger`` whose handlers write it to stderr first and then to every
live trace session (see ``handler.py``).

``fatal*`` and ``panic*`` close the endpoint after the record is written, so
the socket file is gone before the process exits or the PanicError unwinds.
"""

import logging
import os
import sys
import threading
import traceback
from typing import Callable, Optional, Sequence

from .buffer import RingBuffer
from .config import Config, colour_enabled, socket_dir, socket_path
from .endpoint import Endpoint
from .errors import PanicError
from .filter import DebugFilter
from .handler import TraceHandler, make_sink_handler
from .record import Level, render_line, render_message
from .registry import TraceRegistry
from .rwlock import RWLock


def _exit_process(code: int) -> None:
    """Flush the standard streams and terminate immediately, from any thread."""
    for stream in (sys.stdout, sys.stderr):
        try:
            stream.flush()
        except (OSError, ValueError):
            pass
    os._exit(code)


class Logger:
    """Structured-text logger with a live control and trace socket.

    Attributes:
        package_name (str): Labels every record and names the socket file.
        colour (bool): Whether the level token is wrapped in ANSI colour.
        filter (DebugFilter): Debug flag and pattern, changed by clients.
        registry (TraceRegistry): Connections currently streaming records.
        history (RingBuffer): Recently traced lines for the ``history`` command.
        endpoint (Endpoint): The control socket.
    """

    def __init__(
        self,
        package_name: str,
        config: Optional[Config] = None,
        colour: Optional[bool] = None,
        sink_stream=None,
        terminate: Optional[Callable[[int], None]] = None,
        history_size: int = 200,
    ) -> None:
        """Build a logger. Nothing is bound until ``start()`` is called.

        Args:
            package_name: Short identifier for records and the socket file.
            config: Settings source, consulted here and never again. Defaults
                to ``Config.from_environ()``.
            colour: Force colour on or off; ``None`` defers to ``config``.
            sink_stream: Default sink stream. Defaults to ``sys.stderr``.
            terminate: Called with the exit code by ``fatal*``. Defaults to a
                function that flushes stdio and calls ``os._exit``.
            history_size: Number of traced lines kept for ``history``.
        """
        if config is None:
            config = Config.from_environ()
        self.package_name = package_name
        self.colour = colour_enabled(config) if colour is None else colour

        lock = RWLock()
        self.filter = DebugFilter(lock)
        self.registry = TraceRegistry(lock)
        self.history = RingBuffer(capacity=history_size)
        self.endpoint = Endpoint(self, socket_path(socket_dir(config), package_name))
        self._terminate = terminate or _exit_process

        # Not logging.getLogger(): that would share one logger, handlers included,
        # between every Logger built for the same package name.
        self._log = logging.Logger(f"livelog.{package_name}", logging.DEBUG)
        self._log.propagate = False
        self._log.addHandler(make_sink_handler(sink_stream))
        self._log.addHandler(TraceHandler(self.registry, self.history))

    def start(self) -> threading.Thread:
        """Install the shutdown signal handlers and start the endpoint thread."""
        self.endpoint.install_signal_handlers()
        return self.endpoint.start()

    def shutdown(self) -> bool:
        """Close the endpoint. Safe to call any number of times."""
        return self.endpoint.close()

    # ---------------------------------------------------------------------- #
    # Facade
    # ---------------------------------------------------------------------- #

    def debug(self, *args) -> None:
        self._output(Level.DEBUG, "", args, formatted=False)

    def debugf(self, msg: str, *args) -> None:
        self._output(Level.DEBUG, msg, args, formatted=True)

    def info(self, *args) -> None:
        self._output(Level.INFO, "", args, formatted=False)

    def infof(self, msg: str, *args) -> None:
        self._output(Level.INFO, msg, args, formatted=True)

    def warn(self, *args) -> None:
        self._output(Level.WARN, "", args, formatted=False)

    def warnf(self, msg: str, *args) -> None:
        self._output(Level.WARN, msg, args, formatted=True)

    def error(self, *args) -> None:
        self._output(Level.ERROR, "", args, formatted=False)

    def errorf(self, msg: str, *args) -> None:
        self._output(Level.ERROR, msg, args, formatted=True)

    def error_with_stack(self, msg: str, *args) -> None:
        """Log at ERROR with the caller's stack appended on the following lines."""
        stack = "".join(traceback.format_stack()[:-1]).rstrip("\n")
        self._output(Level.ERROR, msg + "\n%s", (*args, stack), formatted=True)

    def fatal(self, *args) -> None:
        self._die(Level.FATAL, render_message("", args, formatted=False))

    def fatalf(self, msg: str, *args) -> None:
        self._die(Level.FATAL, render_message(msg, args, formatted=True))

    def panic(self, *args) -> None:
        self._die(Level.PANIC, render_message("", args, formatted=False))

    def panicf(self, msg: str, *args) -> None:
        self._die(Level.PANIC, render_message(msg, args, formatted=True))

    # ---------------------------------------------------------------------- #
    # Private helpers
    # ---------------------------------------------------------------------- #

    def _output(self, level: Level, template: str, args: Sequence, formatted: bool) -> None:
        if level is Level.DEBUG:
            # Checked before rendering so disabled debug calls cost one lock.
            if not self.filter.enabled:
                return
            message = render_message(template, args, formatted)
            if not self.filter.allows(message):
                return
        else:
            message = render_message(template, args, formatted)
        self._emit(level, message)

    def _emit(self, level: Level, message: str) -> None:
        line = render_line(self.package_name, level, message, self.colour)
        self._log.log(int(level), "%s", line)

    def _die(self, level: Level, message: str) -> None:
        self._emit(level, message)
        self.shutdown()
        if level is Level.FATAL:
            self._terminate(1)
        else:
            raise PanicError(message or "panic")


# --------------------------------------------------------------------------- #
# Process-wide singleton
# --------------------------------------------------------------------------- #

_logger: Optional[Logger] = None
_logger_lock = threading.Lock()


def log(package_name: str) -> Logger:
    """Return the process logger, creating and starting it on the first call.

    Later calls return the same instance and ignore ``package_name``.
    """
    global _logger
    if _logger is not None:
        return _logger
    with _logger_lock:
        if _logger is None:
            logger = Logger(package_name)
            logger.start()
            _logger = logger
    return _logger


def get_logger() -> Optional[Logger]:
    """Return the process logger, or None if ``log()`` has not been called yet."""
    return _logger
