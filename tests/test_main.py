"""Tests for the command-line entry point."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from panedrop.main import build_parser, format_pane, main
from panedrop.protocols import HostKeyPolicy, Protocol
from panedrop.settings import Settings


@pytest.fixture(autouse=True)
def default_settings():
    with patch("panedrop.main.load_settings", return_value=Settings()):
        yield


@pytest.fixture
def dirs(tmp_path):
    left = tmp_path / "left"
    right = tmp_path / "right"
    (left / "src").mkdir(parents=True)
    (left / "src" / "app.py").write_text("print()")
    (left / "README").write_text("readme")
    right.mkdir()
    (right / "backup.tar").write_bytes(b"\x00" * 2048)
    return left, right


def _run(left, right, *args: str) -> None:
    main(["--mirror", str(right), "--local", str(left), *args])


class TestParser:
    def test_requires_target(self):
        with pytest.raises(SystemExit):
            build_parser(Settings()).parse_args(["list"])

    def test_host_and_mirror_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser(Settings()).parse_args(["--host", "h", "--mirror", "/tmp", "list"])

    def test_protocol_default_from_settings(self):
        settings = Settings()
        settings.connection.protocol = "sftp"
        args = build_parser(settings).parse_args(["--host", "h", "list"])
        assert args.protocol == "sftp"


class TestCommands:
    def test_list(self, dirs, capsys):
        left, right = dirs
        _run(left, right, "list")
        out = capsys.readouterr().out
        assert f"Local:{left}" in out
        assert f"Mirror:{right}" in out
        assert "d        <DIR>  src" in out
        assert "f       2.0 KB  backup.tar" in out

    def test_upload(self, dirs, capsys):
        left, right = dirs
        _run(left, right, "upload", "src", "README")
        assert (right / "src" / "app.py").read_text() == "print()"
        assert (right / "README").read_text() == "readme"
        assert "Uploaded 2 entries" in capsys.readouterr().out

    def test_download(self, dirs):
        left, right = dirs
        _run(left, right, "download", "backup.tar")
        assert (left / "backup.tar").read_bytes() == b"\x00" * 2048

    def test_delete_remote(self, dirs):
        left, right = dirs
        _run(left, right, "delete", "remote", "backup.tar")
        assert not (right / "backup.tar").exists()
        assert (left / "README").exists()

    def test_delete_local(self, dirs):
        left, right = dirs
        _run(left, right, "delete", "local", "src")
        assert not (left / "src").exists()

    def test_unknown_name_exits(self, dirs, capsys):
        left, right = dirs
        with pytest.raises(SystemExit) as excinfo:
            _run(left, right, "upload", "missing.txt")
        assert excinfo.value.code == 1
        assert "missing.txt not found" in capsys.readouterr().err

    def test_missing_mirror_exits(self, dirs, tmp_path, capsys):
        left, _ = dirs
        with pytest.raises(SystemExit) as excinfo:
            _run(left, tmp_path / "nope", "list")
        assert excinfo.value.code == 1
        assert "Could not open session" in capsys.readouterr().err

    @patch("panedrop.main.Session.open")
    def test_remote_connection_info(self, mock_open, dirs):
        left, _ = dirs
        session = MagicMock()
        session.__enter__.return_value = session
        session.local.entries = []
        session.remote.entries = []
        mock_open.return_value = session

        main(
            [
                "--host",
                "sftp.example.com",
                "--protocol",
                "sftp",
                "-u",
                "alice",
                "--strict-host-keys",
                "--local",
                str(left),
                "--remote",
                "/srv",
                "list",
            ]
        )

        info, local_dir, remote_dir, _ = mock_open.call_args[0]
        assert info.protocol is Protocol.SFTP
        assert info.host == "sftp.example.com"
        assert info.username == "alice"
        assert info.host_key_policy is HostKeyPolicy.STRICT
        assert local_dir == str(left)
        assert remote_dir == "/srv"
        session.__exit__.assert_called_once()

    @patch("panedrop.main.Session.open", side_effect=ConnectionError("FTP connection failed: x"))
    def test_connection_failure_exits(self, _mock_open, dirs, capsys):
        left, _ = dirs
        with pytest.raises(SystemExit) as excinfo:
            main(["--host", "ftp.example.com", "--local", str(left), "list"])
        assert excinfo.value.code == 1
        assert "FTP connection failed" in capsys.readouterr().err


def test_format_pane_header():
    pane = MagicMock()
    pane.label = "Local"
    pane.location = "/tmp"
    pane.entries = []
    assert format_pane(pane) == "Local:/tmp"
