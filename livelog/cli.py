"""cli.py - ``livelog``: send one command to a running process and print the reply.

Usage::

    livelog status
    livelog --packageName SVC debug on
    livelog --keepAlive trace INFO          # stream until Ctrl-D / Ctrl-C

Without ``--packageName`` the client connects to the only ``*.sock`` file in
``--socketDir``; it refuses to guess when there are several.
"""

import argparse
import glob
import os
import socket
import sys
import threading
from typing import BinaryIO, List, Optional

from .config import DEFAULT_SOCKET_DIR
from .errors import DiscoveryError

CHUNK_SIZE = 4096


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="livelog",
        description="Control and trace a running livelog process.",
    )
    parser.add_argument(
        "--socketDir",
        default=DEFAULT_SOCKET_DIR,
        help="the folder where livelog looks for unix domain sockets",
    )
    parser.add_argument(
        "--packageName",
        default="",
        help="the name of the unix domain socket; required if more than one process is running",
    )
    parser.add_argument(
        "--keepAlive",
        action="store_true",
        help="keep the socket open and forward stdin (useful for trace)",
    )
    parser.add_argument("command", nargs="*", help="the command to send, e.g. 'trace INFO'")
    return parser


def quote_arg(arg: str) -> str:
    """Double-quote ``arg`` if it contains whitespace, escaping quotes and backslashes."""
    if not any(c.isspace() for c in arg):
        return arg
    escaped = arg.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def join_command(args: List[str]) -> str:
    return " ".join(quote_arg(a) for a in args)


def discover(socket_dir: str, package_name: str = "") -> str:
    """Return the socket path to connect to.

    Raises:
        DiscoveryError: If no package is given and there is not exactly one
            ``*.sock`` file in ``socket_dir``.
    """
    if package_name:
        path = os.path.join(socket_dir, f"{package_name}.sock")
        upper = os.path.join(socket_dir, f"{package_name.upper()}.sock")
        if not os.path.exists(path) and os.path.exists(upper):
            return upper
        return path

    files = sorted(glob.glob(os.path.join(socket_dir, "*.sock")))
    if len(files) == 1:
        return files[0]
    if not files:
        raise DiscoveryError("No livelog processes are running.")
    raise DiscoveryError(f"There are {len(files)} sockets and no packageName specified.")


def _copy_input(sock: socket.socket, command: str, keep_alive: bool, stdin: BinaryIO) -> None:
    try:
        sock.sendall(command.encode("utf-8") + b"\n")
        if keep_alive:
            while True:
                data = stdin.readline()
                if not data:
                    break
                sock.sendall(data)
        else:
            sock.sendall(b"quit\n")
    except OSError:
        pass  # server went away; the reader sees EOF
    finally:
        try:
            sock.shutdown(socket.SHUT_WR)
        except OSError:
            pass


def _copy_output(sock: socket.socket, stdout: BinaryIO) -> None:
    try:
        while True:
            data = sock.recv(CHUNK_SIZE)
            if not data:
                break
            stdout.write(data)
            stdout.flush()
    except OSError:
        pass
    finally:
        try:
            sock.shutdown(socket.SHUT_RD)
        except OSError:
            pass


def run(
    path: str,
    command: str,
    keep_alive: bool = False,
    stdin: Optional[BinaryIO] = None,
    stdout: Optional[BinaryIO] = None,
) -> None:
    """Connect to ``path``, send ``command`` and copy the reply to ``stdout``.

    Returns once the server has closed its side and our side is done writing.

    Raises:
        OSError: If the socket cannot be dialled.
    """
    stdin = stdin or sys.stdin.buffer
    stdout = stdout or sys.stdout.buffer

    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.connect(path)
    except OSError:
        sock.close()
        raise

    writer = threading.Thread(
        target=_copy_input, args=(sock, command, keep_alive, stdin), daemon=True
    )
    reader = threading.Thread(target=_copy_output, args=(sock, stdout), daemon=True)
    writer.start()
    reader.start()
    try:
        reader.join()
        if not keep_alive:
            writer.join()
    finally:
        sock.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        path = discover(args.socketDir, args.packageName)
    except DiscoveryError as exc:
        print(exc)
        return 1

    try:
        run(path, join_command(args.command), keep_alive=args.keepAlive)
    except OSError as exc:
        print(f"{path}: {exc}")
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
