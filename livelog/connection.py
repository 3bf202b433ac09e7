"""connection.py - One accepted control connection.

Connection wraps an accepted Unix socket with the write policy every livelog
writer follows. Writers never touch the socket themselves: they append whole
lines to a per-connection send buffer, and a dedicated writer thread drains
that buffer with blocking sends. A log call therefore only ever waits for an
in-memory append, so a stalled ``livelog --keepAlive`` client can never stall
the application that is logging.

A trace consumer that falls behind by more than ``max_pending`` bytes is
disconnected. Command replies are exempt from that limit: they are produced
only in answer to the client's own request, and a ``history`` reply may be far
larger than the kernel's socket buffer.
"""

import socket
import threading
from collections import deque
from typing import Iterator

DEFAULT_MAX_PENDING = 1024 * 1024


class Connection:
    """A connected client socket with a bounded, thread-drained send buffer.

    Attributes:
        _sock (socket.socket): The accepted stream socket, in blocking mode.
            The session thread reads from it; only the writer thread sends.
        _pending (deque[bytes]): Encoded lines waiting to be sent, in order.
        _pending_bytes (int): Total size of ``_pending``.
        _max_pending (int): Backlog size at which ``write`` gives up on the peer.
        _cond (threading.Condition): Guards the buffer and ``_closed``. Held
            only for appends and pops, never across a send.
        _closed (bool): Set once by ``close()`` or a failed send. Queued data
            is still drained by ``close()``; nothing new is accepted.
    """

    def __init__(self, sock: socket.socket, max_pending: int = DEFAULT_MAX_PENDING) -> None:
        self._sock = sock
        self._pending: deque = deque()
        self._pending_bytes = 0
        self._max_pending = max_pending
        self._cond = threading.Condition(threading.Lock())
        self._closed = False
        self._sock_lock = threading.Lock()
        self._sock_closed = False
        self._writer = threading.Thread(target=self._drain, name="livelog-writer", daemon=True)
        self._writer.start()

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, text: str) -> bool:
        """Queue ``text`` for sending without waiting on the peer.

        Returns:
            True if the text was queued. False if the connection was already
            closed, or if queueing it would exceed ``max_pending``; in that
            case the connection is closed before returning.
        """
        return self._enqueue(text, bounded=True)

    def reply(self, text: str) -> bool:
        """Queue a command reply. Like ``write`` but not subject to ``max_pending``."""
        return self._enqueue(text, bounded=False)

    def _enqueue(self, text: str, bounded: bool) -> bool:
        data = text.encode("utf-8", "replace")
        with self._cond:
            if self._closed:
                return False
            if not bounded or self._pending_bytes + len(data) <= self._max_pending:
                self._pending.append(data)
                self._pending_bytes += len(data)
                self._cond.notify()
                return True
        self.close(drain_timeout=0)
        return False

    def _drain(self) -> None:
        while True:
            with self._cond:
                while not self._pending and not self._closed:
                    self._cond.wait()
                if not self._pending:
                    return
                data = self._pending.popleft()
                self._pending_bytes -= len(data)
            try:
                self._sock.sendall(data)
            except OSError:
                with self._cond:
                    self._closed = True
                    self._pending.clear()
                    self._pending_bytes = 0
                self._close_socket()
                return

    def lines(self) -> Iterator[str]:
        """Yield decoded lines sent by the peer, without the line terminator.

        Iteration stops at end of stream, or when the connection is closed
        from another thread.
        """
        rfile = self._sock.makefile("rb")
        try:
            while not self._closed:
                try:
                    raw = rfile.readline()
                except (OSError, ValueError):
                    return
                if not raw:
                    return
                yield raw.decode("utf-8", "replace").rstrip("\r\n")
        finally:
            rfile.close()

    def close(self, drain_timeout: float = 1.0) -> None:
        """Stop accepting writes, give queued data ``drain_timeout`` seconds to go out, then close.

        Safe to call repeatedly and from any thread, including the writer.
        """
        with self._cond:
            already = self._closed
            self._closed = True
            self._cond.notify_all()
        if already and self._sock_closed:
            return
        if drain_timeout > 0 and threading.current_thread() is not self._writer:
            self._writer.join(drain_timeout)
        self._close_socket()

    def _close_socket(self) -> None:
        with self._sock_lock:
            if self._sock_closed:
                return
            self._sock_closed = True
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # peer already gone
        self._sock.close()
