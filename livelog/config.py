"""config.py - Key/value settings consulted once when a logger starts.

Keys understood by livelog:

    socketDIR   Directory holding the ``<PACKAGE>.sock`` files.
                Defaults to ``/tmp/gocore``.
    colour      ``off``/``false``/``0``/``no`` disables ANSI colour on the
                level token. Colour is on by default.

``Config.from_environ()`` reads the same keys from ``LIVELOG_<KEY>``
environment variables, e.g. ``LIVELOG_SOCKETDIR=/run/myapp``.
"""

import logging
import os
from typing import Mapping, Optional

DEFAULT_SOCKET_DIR = "/tmp/gocore"
ENV_PREFIX = "LIVELOG_"

_log = logging.getLogger(__name__)


class Config:
    """Read-only, case-insensitive view over a mapping of settings."""

    def __init__(self, values: Optional[Mapping[str, str]] = None) -> None:
        self._values = {k.upper(): v for k, v in (values or {}).items()}

    @classmethod
    def from_environ(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        prefix: str = ENV_PREFIX,
    ) -> "Config":
        env = os.environ if environ is None else environ
        return cls({k[len(prefix):]: v for k, v in env.items() if k.startswith(prefix)})

    def get(self, key: str, default: str = "") -> str:
        return self._values.get(key.upper(), default)


def socket_dir(config: Config) -> str:
    return config.get("socketDIR") or DEFAULT_SOCKET_DIR


def colour_enabled(config: Config) -> bool:
    return config.get("colour", "on").strip().lower() not in ("off", "false", "0", "no")


def socket_path(directory: str, package_name: str) -> str:
    """Return ``<directory>/<PACKAGE>.sock``."""
    return os.path.join(directory, f"{package_name.upper()}.sock")


def ensure_socket_dir(directory: str) -> bool:
    """Create ``directory`` (mode 0o777, subject to the umask) if missing.

    Failure is logged rather than raised: binding will fail afterwards and
    report the real problem.
    """
    try:
        os.makedirs(directory, mode=0o777, exist_ok=True)
    except OSError as exc:
        _log.error("Unable to make socket directory %s: %s", directory, exc)
        return False
    return True
