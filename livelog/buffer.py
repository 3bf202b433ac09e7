"""buffer.py - In-memory history of recently traced lines.

RingBuffer keeps the last few rendered trace lines so that a client which
connects after something interesting happened can ask for them with the
``history`` command. Nothing is persisted: the buffer lives and dies with the
process.

Design decisions:
    - ``collections.deque(maxlen=N)`` gives O(1) append with automatic eviction
      of the oldest entry when capacity is exceeded.
    - Pushes come from ``TraceHandler.emit``, which the ``logging`` machinery
      already serialises with the handler lock. Reads come from session
      threads; ``list(deque)`` is atomic under CPython's GIL, so readers see
      a consistent copy without extra locking.
"""

from collections import deque
from typing import List, Optional


class HistoryEntry:
    """One buffered trace line.

    Attributes:
        created (float): Wall-clock time of the record (``LogRecord.created``).
        line (str): The timestamped trace line, including its trailing newline.
        level (int): Numeric level of the record, kept so ``history`` output
            could be filtered without re-parsing the line.
    """

    __slots__ = ("created", "line", "level")

    def __init__(self, created: float, line: str, level: int = 0) -> None:
        self.created = created
        self.line = line
        self.level = level

    def __repr__(self) -> str:  # pragma: no cover
        return f"HistoryEntry({self.created:.3f}, {self.line!r})"


class RingBuffer:
    """Fixed-capacity circular buffer of HistoryEntry objects.

    Example:
        >>> buf = RingBuffer(capacity=2)
        >>> buf.push(0.0, "a\\n")
        >>> buf.push(1.0, "b\\n")
        >>> buf.push(2.0, "c\\n")
        >>> [e.line for e in buf.recent()]
        ['b\\n', 'c\\n']
    """

    def __init__(self, capacity: int = 200) -> None:
        """Initialise the buffer.

        Args:
            capacity: Maximum number of entries retained. Defaults to 200.

        Raises:
            ValueError: If ``capacity`` is not positive.
        """
        if capacity <= 0:
            raise ValueError(f"capacity must be > 0, got {capacity}")
        self._buffer: deque[HistoryEntry] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._buffer.maxlen

    def push(self, created: float, line: str, level: int = 0) -> None:
        """Append a line, evicting the oldest one if the buffer is full."""
        self._buffer.append(HistoryEntry(created, line, level))

    def recent(self, count: Optional[int] = None) -> List[HistoryEntry]:
        """Return up to ``count`` of the newest entries, oldest first.

        Args:
            count: How many entries to return. ``None`` returns everything
                currently buffered; zero or a negative number returns ``[]``.
        """
        entries = list(self._buffer)
        if count is None:
            return entries
        if count <= 0:
            return []
        return entries[-count:]

    def clear(self) -> None:
        """Remove all entries."""
        self._buffer.clear()

    def __len__(self) -> int:
        return len(self._buffer)
