"""endpoint.py - The Unix socket a livelog process listens on.

One Endpoint exists per logger. It binds ``<socketDir>/<PACKAGE>.sock``,
accepts control connections on a background thread and hands each one to a
SessionHandler running on its own thread.

Closing is idempotent and may be triggered concurrently by a termination
signal, ``Logger.fatal`` or ``Logger.panic``. It stops the accept loop, closes
every connection (which ends any ``--keepAlive`` client) and unlinks the
socket file exactly once.

A signal handler runs on the main thread between two bytecodes, possibly while
that thread holds the filter/registry lock or a connection lock. The signal
path therefore takes no lock at all: it claims the shutdown, closes the
listener and unlinks the path, then leaves connection and registry teardown to
a daemon thread it does not wait for.
"""

import itertools
import os
import selectors
import signal
import socket
import threading
from typing import TYPE_CHECKING, Dict, Optional, Set

from .config import ensure_socket_dir
from .connection import Connection
from .session import SessionHandler

if TYPE_CHECKING:  # pragma: no cover
    from .logger import Logger

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class Endpoint:
    """Listener socket, accept loop and shutdown for one logger.

    Attributes:
        path (str): Filesystem path of the socket.
        ready (threading.Event): Set once the socket is bound and listening.
        _listener (Optional[socket.socket]): The bound listening socket, read
            by the accept loop.
        _owned (Dict[str, socket.socket]): Holds the listener under
            ``"listener"`` until someone closes it. ``dict.pop`` is atomic, so
            exactly one caller gets to close the listener and unlink the path.
        _connections (Set[Connection]): Every open control connection,
            tracing or not, so shutdown can close them all.
        _close_tickets (itertools.count): The first ``next()`` returns 0 and
            claims the shutdown, without taking a lock.
        _closed (bool): Set by whichever caller claimed the shutdown.
        _poll_interval (float): Seconds the accept loop waits between checks
            of ``_closed``.
    """

    def __init__(self, logger: "Logger", path: str, poll_interval: float = 0.2) -> None:
        self._logger = logger
        self.path = path
        self.ready = threading.Event()
        self._listener: Optional[socket.socket] = None
        self._owned: Dict[str, socket.socket] = {}
        self._connections: Set[Connection] = set()
        self._conn_lock = threading.Lock()
        self._close_tickets = itertools.count()
        self._closed = False
        self._poll_interval = poll_interval
        self._previous_handlers: Dict[int, object] = {}

    @property
    def closed(self) -> bool:
        return self._closed

    # ---------------------------------------------------------------------- #
    # Startup
    # ---------------------------------------------------------------------- #

    def bind(self) -> bool:
        """Create the socket directory, remove any stale socket file, bind and listen.

        Returns:
            False if the endpoint was closed before binding finished; the new
            socket has then been discarded again.

        Raises:
            OSError: If the socket cannot be bound.
        """
        ensure_socket_dir(os.path.dirname(self.path) or ".")
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.bind(self.path)
            sock.listen()
        except OSError:
            sock.close()
            raise

        self._listener = sock
        self._owned["listener"] = sock
        # A close() that ran before the store above found nothing to release.
        if self._closed:
            self._release_listener()
            return False
        self.ready.set()
        return True

    def install_signal_handlers(self) -> bool:
        """Close the endpoint on SIGINT/SIGTERM before the previous handler runs.

        Python only allows this from the main thread; elsewhere the call is a
        no-op that returns False.
        """
        if threading.current_thread() is not threading.main_thread():
            self._logger.warnf(
                "Signal handlers not installed (logger started off the main thread): "
                "%s is not removed on SIGINT/SIGTERM",
                self.path,
            )
            return False
        for signum in SHUTDOWN_SIGNALS:
            self._previous_handlers[signum] = signal.signal(signum, self._on_signal)
        return True

    def run(self) -> None:
        """Thread target used by the logger singleton: bind, announce, serve."""
        try:
            bound = self.bind()
        except OSError as exc:
            self._logger.fatalf("LOGGER: listen error: %s", exc)
            return
        if not bound:
            return
        self._logger.infof("Socket created. Connect with 'nc -U %s'", self.path)
        self.serve_forever()

    def start(self) -> threading.Thread:
        """Run ``run()`` on a daemon thread and return it."""
        thread = threading.Thread(target=self.run, name="livelog-endpoint", daemon=True)
        thread.start()
        return thread

    # ---------------------------------------------------------------------- #
    # Accept loop
    # ---------------------------------------------------------------------- #

    def serve_forever(self) -> None:
        """Accept connections until the endpoint is closed or accept fails."""
        listener = self._listener
        if listener is None:
            return
        with selectors.DefaultSelector() as selector:
            try:
                selector.register(listener, selectors.EVENT_READ)
            except (OSError, ValueError):
                return  # closed before the loop started
            while not self._closed:
                try:
                    ready = selector.select(self._poll_interval)
                except (OSError, ValueError):
                    ready = []
                if self._closed:
                    return
                if not ready:
                    continue
                try:
                    sock, _ = listener.accept()
                except OSError as exc:
                    if self._closed:
                        return
                    self._logger.warnf("Accept error: %s", exc)
                    return
                self._spawn(sock)

    def _spawn(self, sock: socket.socket) -> None:
        conn = Connection(sock)
        with self._conn_lock:
            if self._closed:
                conn.close()
                return
            self._connections.add(conn)
        handler = SessionHandler(self._logger, conn, endpoint=self)
        threading.Thread(target=handler.run, name="livelog-session", daemon=True).start()

    def forget(self, conn: Connection) -> None:
        """Drop ``conn`` from the set of open connections (called when its session ends)."""
        with self._conn_lock:
            self._connections.discard(conn)

    def __len__(self) -> int:
        with self._conn_lock:
            return len(self._connections)

    # ---------------------------------------------------------------------- #
    # Shutdown
    # ---------------------------------------------------------------------- #

    def close(self) -> bool:
        """Stop accepting, unlink the socket file and close every connection.

        Returns:
            True for the call that performed the shutdown, False for every
            later (or concurrent) call.
        """
        if not self._claim_close():
            return False
        self._release_listener()
        self._close_connections()
        return True

    def _claim_close(self) -> bool:
        if next(self._close_tickets):
            return False
        self._closed = True
        return True

    def _release_listener(self) -> bool:
        listener = self._owned.pop("listener", None)
        if listener is None:
            return False
        listener.close()
        self._unlink()
        return True

    def _close_connections(self) -> None:
        with self._conn_lock:
            connections = list(self._connections)
            self._connections.clear()
        for conn in connections:
            conn.close()
        self._logger.registry.close_all()

    def _unlink(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass

    def _on_signal(self, signum, frame) -> None:
        # No locks here: the interrupted frame may be holding any of them.
        if self._claim_close():
            threading.Thread(
                target=self._close_connections, name="livelog-shutdown", daemon=True
            ).start()
        self._release_listener()
        previous = self._previous_handlers.get(signum, signal.SIG_DFL)
        if callable(previous):
            previous(signum, frame)
        elif previous != signal.SIG_IGN:
            # Default disposition: reinstall it and let the signal kill us.
            signal.signal(signum, signal.SIG_DFL)
            os.kill(os.getpid(), signum)
