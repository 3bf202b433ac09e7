"""handler.py - stdlib logging handlers behind the livelog facade.

Each livelog Logger owns a plain ``logging.Logger`` with two handlers,
attached in this order:

    1. The default sink: a ``logging.StreamHandler`` on stderr that prefixes
       each line with its own local timestamp.
    2. TraceHandler: prefixes the line with a UTC, millisecond-precision
       timestamp and fans it out to every trace session whose minimum level
       the record meets.

Because ``logging.Logger.callHandlers`` walks handlers in order, every record
reaches the default sink before any trace session sees it. Each handler wraps
``emit`` in its own lock, so records from concurrent callers are written to a
session one whole line at a time and in the order they were emitted.

Typical usage::

    registry = TraceRegistry(RWLock())
    log = logging.getLogger("livelog.svc")
    log.addHandler(make_sink_handler())
    log.addHandler(TraceHandler(registry))
    log.log(logging.WARNING, "%s", "svc - WARN: disk nearly full")
"""

import logging
import sys
import time
from typing import Optional

from .buffer import RingBuffer
from .registry import TraceRegistry

SINK_FORMAT = "%(asctime)s %(message)s"
SINK_DATEFMT = "%Y/%m/%d %H:%M:%S"


class TraceFormatter(logging.Formatter):
    """Formats records as ``"YYYY-MM-DD HH:MM:SS.mmm <message>"`` in UTC."""

    converter = time.gmtime
    default_time_format = "%Y-%m-%d %H:%M:%S"
    default_msec_format = "%s.%03d"

    def __init__(self) -> None:
        super().__init__(fmt="%(asctime)s %(message)s")


def make_sink_handler(stream=None) -> logging.Handler:
    """Return the default sink: one locally timestamped line per record on ``stream`` (stderr)."""
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(SINK_FORMAT, datefmt=SINK_DATEFMT))
    return handler


class TraceHandler(logging.Handler):
    """A logging.Handler that streams records to live trace sessions.

    The handler never blocks on a consumer: delivery goes through
    ``TraceRegistry.broadcast``, whose writes only queue into each
    connection's bounded send buffer and drop any session that cannot keep up.

    Attributes:
        _registry (TraceRegistry): The sessions to deliver to.
        _history (Optional[RingBuffer]): When set, every formatted line is also
            kept there for the ``history`` command, whether or not any session
            is connected.
    """

    def __init__(
        self,
        registry: TraceRegistry,
        history: Optional[RingBuffer] = None,
    ) -> None:
        super().__init__()
        self._registry = registry
        self._history = history
        self.setFormatter(TraceFormatter())

    def emit(self, record: logging.LogRecord) -> None:
        """Format ``record`` and send it to every interested session.

        Args:
            record: The LogRecord produced by the livelog facade. Its message
                is the fully rendered ``"<pkg> - <LEVEL>: <msg>"`` line.
        """
        try:
            line = self.format(record)
            if not line.endswith("\n"):
                line += "\n"
            if self._history is not None:
                self._history.push(record.created, line, record.levelno)
            self._registry.broadcast(line, record.levelno)
        except Exception:
            # A failing trace consumer must never take the application down.
            self.handleError(record)
