"""livelog/__init__.py - Public API for the livelog package.

livelog is an in-process text logger whose behaviour can be changed while the
process runs. Every logger listens on a Unix socket,
``<socketDir>/<PACKAGE>.sock``, through which the ``livelog`` command-line
client (or plain ``nc -U``) can switch DEBUG output on and off, restrict it
with a regular expression, and stream live records at a chosen level.

Quick start:
    from livelog import log

    logger = log("svc")                     # creates /tmp/gocore/SVC.sock
    logger.infof("listening on %d", 8080)   # stderr: ... svc - INFO: listening on 8080
    logger.debugf("payload %r", payload)    # silent until `livelog debug on`

From a shell:
    $ livelog status
    $ livelog debug on
    $ livelog debug regex '^payload'
    $ livelog --keepAlive trace WARN

Exported names:
    log:         Process-wide accessor; creates and starts the logger once.
    get_logger:  Returns the process logger, or None before the first ``log()``.
    Logger:      The facade class, for callers that pass a logger explicitly.
    Level:       DEBUG, INFO, WARN, ERROR, FATAL, PANIC.
    Config:      Key/value settings (``socketDIR``, ``colour``).
    PanicError:  Raised by ``Logger.panic`` / ``Logger.panicf``.
"""

from .config import Config
from .errors import CommandError, DiscoveryError, LivelogError, PanicError
from .logger import Logger, get_logger, log
from .record import Level

__all__ = [
    "log",
    "get_logger",
    "Logger",
    "Level",
    "Config",
    "LivelogError",
    "PanicError",
    "CommandError",
    "DiscoveryError",
]
__version__ = "0.1.0"
