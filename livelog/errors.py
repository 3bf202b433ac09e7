"""errors.py - Exception types raised by livelog."""


class LivelogError(Exception):
    """Base class for every error livelog raises on purpose."""


class PanicError(LivelogError, RuntimeError):
    """Raised by ``Logger.panic`` / ``Logger.panicf`` after the endpoint is closed.

    It is an ordinary exception: it unwinds the calling thread and, if nothing
    catches it, terminates the program with a traceback.
    """


class CommandError(LivelogError):
    """A control command could not be applied.

    The message is sent back to the client as an ``ERROR`` reply; the shared
    filter and registry are left untouched.
    """


class DiscoveryError(LivelogError):
    """The client could not decide which socket to connect to."""
