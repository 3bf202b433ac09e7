"""test_cli.py - Tests for the livelog command-line client.

Covers:
    - Argument quoting and joining
    - Socket discovery: explicit package, exactly one, none, several
    - main() exit codes for discovery and dial failures
    - End-to-end round trips against a running endpoint, with and without keepAlive
"""

import io
import os

import pytest

from livelog.cli import build_parser, discover, join_command, main, quote_arg, run
from livelog.errors import DiscoveryError


def _touch(directory: str, name: str) -> str:
    path = os.path.join(directory, name)
    with open(path, "w"):
        pass
    return path


class TestQuoting:
    def test_quote_arg_leaves_plain_words(self):
        """Arguments without whitespace are sent as they are."""
        assert quote_arg(r"^foo\d") == r"^foo\d"

    def test_quote_arg_quotes_whitespace(self):
        """Arguments with whitespace are double-quoted and escaped."""
        assert quote_arg('say "hi" now') == r'"say \"hi\" now"'

    def test_join_command_uses_single_spaces(self):
        """Positionals are joined with one space each."""
        assert join_command(["debug", "regex", "foo bar"]) == 'debug regex "foo bar"'


class TestParser:
    def test_parser_defaults(self):
        """socketDir defaults to /tmp/gocore; keepAlive is off."""
        args = build_parser().parse_args(["status"])
        assert args.socketDir == "/tmp/gocore"
        assert args.packageName == ""
        assert args.keepAlive is False
        assert args.command == ["status"]


class TestDiscover:
    def test_discover_explicit_package(self, sock_dir):
        """--packageName builds the path directly."""
        assert discover(sock_dir, "svc") == os.path.join(sock_dir, "svc.sock")

    def test_discover_explicit_package_falls_back_to_upper_case(self, sock_dir):
        """A lower-case name finds the upper-case socket a logger creates."""
        path = _touch(sock_dir, "SVC.sock")
        assert discover(sock_dir, "svc") == path

    def test_discover_single_socket(self, sock_dir):
        """Exactly one socket is picked automatically."""
        path = _touch(sock_dir, "ONLY.sock")
        _touch(sock_dir, "notes.txt")
        assert discover(sock_dir) == path

    def test_discover_no_sockets(self, sock_dir):
        """An empty directory is an error."""
        with pytest.raises(DiscoveryError, match="No livelog processes"):
            discover(sock_dir)

    def test_discover_ambiguous(self, sock_dir):
        """Several sockets without a package name is an error."""
        _touch(sock_dir, "A.sock")
        _touch(sock_dir, "B.sock")
        with pytest.raises(DiscoveryError, match="There are 2 sockets"):
            discover(sock_dir)


class TestMain:
    def test_main_exits_nonzero_when_nothing_runs(self, sock_dir, capsys):
        """No sockets: message and exit status 1."""
        assert main(["--socketDir", sock_dir, "status"]) == 1
        assert "No livelog processes are running." in capsys.readouterr().out

    def test_main_exits_nonzero_when_ambiguous(self, sock_dir, capsys):
        """Two sockets: ambiguity message and exit status 1."""
        _touch(sock_dir, "A.sock")
        _touch(sock_dir, "B.sock")
        assert main(["--socketDir", sock_dir, "status"]) == 1
        assert "no packageName specified" in capsys.readouterr().out

    def test_main_exits_nonzero_on_dial_failure(self, sock_dir, capsys):
        """A socket path nobody listens on is a dial failure."""
        assert main(["--socketDir", sock_dir, "--packageName", "ghost", "status"]) == 1
        assert "ghost.sock" in capsys.readouterr().out


class TestRoundTrip:
    def test_status_scenario(self, running_logger, sock_dir):
        """status then quit: the reply is printed and the call returns."""
        out = io.BytesIO()
        run(running_logger.endpoint.path, "status", stdout=out)
        text = out.getvalue().decode()
        assert text.startswith("livelog svc: commands are")
        assert "status package=svc debug=off" in text

    def test_main_discovers_single_socket(self, running_logger, sock_dir, capsys):
        """main finds the one running process and exits 0."""
        assert main(["--socketDir", sock_dir, "debug", "on"]) == 0
        assert "OK debug on" in capsys.readouterr().out
        assert running_logger.filter.enabled

    def test_keep_alive_forwards_stdin(self, running_logger):
        """With keepAlive, stdin lines are sent until EOF."""
        out = io.BytesIO()
        stdin = io.BytesIO(b"debug regex ^foo\nstatus\n")
        run(running_logger.endpoint.path, "debug on", keep_alive=True, stdin=stdin, stdout=out)
        text = out.getvalue().decode()
        assert "OK debug on" in text
        assert "OK debug regex ^foo" in text
        assert "regex=^foo" in text
