"""filter.py - Runtime switches deciding which DEBUG records are emitted.

Only DEBUG records consult the filter. Every other level bypasses it.
"""

import re
from typing import Optional

from .errors import CommandError
from .rwlock import RWLock


class DebugFilter:
    """Debug-enabled flag plus an optional message pattern.

    The filter shares its lock with the trace registry so that a ``status``
    reply sees both in a consistent state. Mutations come from control
    sessions; reads happen on every DEBUG call.

    Attributes:
        _enabled (bool): Whether DEBUG records are emitted at all.
        _regex (Optional[re.Pattern]): When set, a DEBUG record is emitted only
            if the pattern is found (``re.search``) in its formatted message.
    """

    def __init__(self, lock: RWLock, enabled: bool = False) -> None:
        self._lock = lock
        self._enabled = enabled
        self._regex: Optional[re.Pattern] = None

    @property
    def enabled(self) -> bool:
        with self._lock.read():
            return self._enabled

    @property
    def pattern(self) -> Optional[str]:
        with self._lock.read():
            return self._regex.pattern if self._regex is not None else None

    def set_enabled(self, enabled: bool) -> None:
        with self._lock.write():
            self._enabled = enabled

    def set_pattern(self, pattern: Optional[str]) -> None:
        """Install ``pattern`` as the DEBUG match pattern, or clear it when empty.

        Raises:
            CommandError: If ``pattern`` does not compile. The previous pattern
                stays in place.
        """
        regex = None
        if pattern:
            try:
                regex = re.compile(pattern)
            except re.error as exc:
                raise CommandError(f"invalid regex: {exc}") from exc
        with self._lock.write():
            self._regex = regex

    def allows(self, message: str) -> bool:
        """Return True if a DEBUG record with ``message`` should be emitted."""
        with self._lock.read():
            if not self._enabled:
                return False
            return self._regex is None or self._regex.search(message) is not None
