"""test_config.py - Unit tests for settings lookup and socket paths."""

import os

from livelog.config import (
    DEFAULT_SOCKET_DIR,
    Config,
    colour_enabled,
    ensure_socket_dir,
    socket_dir,
    socket_path,
)


class TestConfig:
    def test_config_get_is_case_insensitive(self):
        """socketDIR, SOCKETDIR and socketdir are the same key."""
        config = Config({"socketDIR": "/run/x"})
        assert config.get("SOCKETDIR") == "/run/x"
        assert config.get("socketdir") == "/run/x"

    def test_config_from_environ_strips_prefix(self):
        """LIVELOG_SOCKETDIR becomes socketDIR; other variables are ignored."""
        config = Config.from_environ({"LIVELOG_SOCKETDIR": "/run/y", "HOME": "/root"})
        assert socket_dir(config) == "/run/y"
        assert config.get("HOME") == ""

    def test_socket_dir_default(self):
        """Without a setting the directory is /tmp/gocore."""
        assert socket_dir(Config()) == DEFAULT_SOCKET_DIR == "/tmp/gocore"

    def test_colour_setting(self):
        """Colour is on unless switched off."""
        assert colour_enabled(Config()) is True
        assert colour_enabled(Config({"colour": "off"})) is False
        assert colour_enabled(Config({"colour": "0"})) is False

    def test_socket_path_upper_cases_package(self):
        """The socket file name is the upper-cased package name."""
        assert socket_path("/tmp/gocore", "svc") == "/tmp/gocore/SVC.sock"

    def test_ensure_socket_dir_creates_nested(self, sock_dir):
        """Missing directories are created."""
        target = os.path.join(sock_dir, "a", "b")
        assert ensure_socket_dir(target) is True
        assert os.path.isdir(target)

    def test_ensure_socket_dir_reports_failure(self, sock_dir):
        """A path blocked by a file is reported, not raised."""
        blocker = os.path.join(sock_dir, "file")
        with open(blocker, "w"):
            pass
        assert ensure_socket_dir(os.path.join(blocker, "sub")) is False
