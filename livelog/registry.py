"""registry.py - The set of connections currently receiving live records.

A connection becomes a trace session with ``trace <LEVEL>`` and stops being
one with ``untrace``, on disconnect, on a failed write, or at shutdown.
"""

from typing import Dict, List, Optional

from .connection import Connection
from .record import Level
from .rwlock import RWLock


class TraceSession:
    """A connection plus the minimum level it wants to receive."""

    __slots__ = ("connection", "min_level")

    def __init__(self, connection: Connection, min_level: Level) -> None:
        self.connection = connection
        self.min_level = min_level

    def accepts(self, level: int) -> bool:
        return self.min_level <= level

    def __repr__(self) -> str:  # pragma: no cover
        return f"TraceSession({self.min_level.name})"


class TraceRegistry:
    """Mapping from connection to TraceSession, guarded by the logger's RWLock.

    The fan-out path never writes while holding the lock: ``broadcast`` takes
    a snapshot under the read side and sends outside it.

    Example:
        >>> registry = TraceRegistry(RWLock())
        >>> registry.add(conn, Level.INFO)
        >>> registry.broadcast("2024-01-01 00:00:00.000 svc - WARN: x\\n", Level.WARN)
        1
    """

    def __init__(self, lock: RWLock) -> None:
        self._lock = lock
        self._sessions: Dict[Connection, TraceSession] = {}

    def add(self, connection: Connection, min_level: Level) -> TraceSession:
        """Register ``connection`` (or change its level if already registered)."""
        session = TraceSession(connection, min_level)
        with self._lock.write():
            self._sessions[connection] = session
        return session

    def remove(self, connection: Connection) -> bool:
        """Unregister ``connection``. Returns False if it was not registered."""
        with self._lock.write():
            return self._sessions.pop(connection, None) is not None

    def get(self, connection: Connection) -> Optional[TraceSession]:
        with self._lock.read():
            return self._sessions.get(connection)

    def snapshot(self, level: Optional[int] = None) -> List[TraceSession]:
        """Return the current sessions, restricted to those accepting ``level`` if given."""
        with self._lock.read():
            sessions = list(self._sessions.values())
        if level is None:
            return sessions
        return [s for s in sessions if s.accepts(level)]

    def broadcast(self, line: str, level: int) -> int:
        """Send ``line`` to every session accepting ``level``.

        Sessions whose write fails are removed; their connection has already
        been closed by ``Connection.write``.

        Returns:
            The number of sessions the line was delivered to.
        """
        delivered = 0
        for session in self.snapshot(level):
            if session.connection.write(line):
                delivered += 1
            else:
                self.remove(session.connection)
        return delivered

    def close_all(self) -> None:
        """Close every session's connection and empty the registry."""
        with self._lock.write():
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.connection.close()

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._sessions)
