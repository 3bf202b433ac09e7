"""conftest.py - Shared fixtures for the livelog test-suite."""

import io
import shutil
import socket
import tempfile
import time

import pytest

from livelog.config import Config
from livelog.logger import Logger


def wait_for(predicate, timeout: float = 5.0) -> bool:
    """Poll ``predicate`` until it is truthy or ``timeout`` seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return bool(predicate())


class Client:
    """Line-oriented test client for a livelog socket."""

    def __init__(self, path: str, timeout: float = 5.0) -> None:
        self.sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self.sock.settimeout(timeout)
        self.sock.connect(path)
        self.rfile = self.sock.makefile("r", encoding="utf-8")

    def send(self, line: str) -> None:
        self.sock.sendall(line.encode("utf-8") + b"\n")

    def readline(self) -> str:
        return self.rfile.readline()

    def command(self, line: str) -> str:
        self.send(line)
        return self.readline().rstrip("\n")

    def read_to_eof(self) -> str:
        return self.rfile.read()

    def close(self) -> None:
        self.rfile.close()
        self.sock.close()


@pytest.fixture
def sock_dir():
    """A short temporary directory (Unix socket paths are length-limited)."""
    path = tempfile.mkdtemp(prefix="ll", dir="/tmp")
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def make_logger(sock_dir):
    """Factory for uncoloured Loggers writing their default sink to a StringIO.

    Each logger gets ``.sink`` (the StringIO) and ``.exit_codes`` (the codes
    passed to its injected terminate function). All are shut down afterwards.
    """
    created = []

    def factory(package_name: str = "svc", **kwargs) -> Logger:
        sink = io.StringIO()
        exit_codes = []
        kwargs.setdefault("config", Config({"socketDIR": sock_dir}))
        kwargs.setdefault("colour", False)
        logger = Logger(
            package_name,
            sink_stream=sink,
            terminate=exit_codes.append,
            **kwargs,
        )
        logger.sink = sink
        logger.exit_codes = exit_codes
        created.append(logger)
        return logger

    yield factory
    for logger in created:
        logger.shutdown()


@pytest.fixture
def running_logger(make_logger):
    """A started logger (endpoint thread running, no signal handlers)."""
    logger = make_logger()
    logger.endpoint.start()
    assert wait_for(lambda: "Socket created" in logger.sink.getvalue())
    return logger


@pytest.fixture
def client_factory():
    clients = []

    def factory(path: str) -> Client:
        client = Client(path)
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()
