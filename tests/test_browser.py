"""Tests for the session and the intent dispatcher."""

from __future__ import annotations

import threading
import time
from unittest.mock import MagicMock, patch

import pytest

from panedrop.browser import DualPaneBrowser
from panedrop.capabilities import HeartbeatLost, ListingFailed
from panedrop.entries import Entry, EntryKind
from panedrop.local_files import LocalFileSystem
from panedrop.protocols import ConnectionInfo, Protocol
from panedrop.session import Session
from panedrop.settings import BrowserSettings, ConnectionDefaults, Settings


@pytest.fixture
def dirs(tmp_path):
    left = tmp_path / "left"
    right = tmp_path / "right"
    (left / "photos").mkdir(parents=True)
    (left / "photos" / "cat.jpg").write_bytes(b"meow")
    (left / "notes.txt").write_text("notes")
    right.mkdir()
    (right / "old.log").write_text("log")
    return left, right


@pytest.fixture
def session(dirs):
    left, right = dirs
    with Session.local_pair(str(left), str(right)) as s:
        yield s


class TestLocalPairSession:
    def test_panes_list_both_directories(self, session, dirs):
        left, right = dirs
        assert session.local.location == str(left)
        assert [e.name for e in session.local.entries] == ["photos", "notes.txt"]
        assert [e.name for e in session.remote.entries] == ["old.log"]

    def test_no_heartbeat(self, session):
        assert session.heartbeat is None
        assert session.poll_connection() is None

    def test_viewport_height_from_settings(self, dirs):
        left, right = dirs
        settings = Settings(browser=BrowserSettings(viewport_height=3))
        with Session.local_pair(str(left), str(right), settings) as s:
            assert s.local.viewport_height == 3
            assert s.remote.viewport_height == 3

    def test_missing_directory_fails(self, dirs, tmp_path):
        left, _ = dirs
        with pytest.raises(ListingFailed):
            Session.local_pair(str(left), str(tmp_path / "missing"))


class TestDualPaneBrowser:
    def test_starts_on_local_pane(self, session):
        browser = DualPaneBrowser(session)
        assert browser.focused is session.local
        assert browser.other is session.remote

    def test_switch_swaps_focus(self, session):
        browser = DualPaneBrowser(session)
        browser.switch()
        assert browser.focused is session.remote
        browser.switch()
        assert browser.focused is session.local

    def test_transfer_refreshes_destination_and_deselects_source(self, session, dirs):
        _, right = dirs
        browser = DualPaneBrowser(session)
        browser.toggle_selection()  # photos
        browser.down()
        browser.toggle_selection()  # notes.txt

        browser.transfer()

        assert (right / "photos" / "cat.jpg").read_bytes() == b"meow"
        assert (right / "notes.txt").read_text() == "notes"
        assert [e.name for e in session.remote.entries] == ["photos", "notes.txt", "old.log"]
        assert session.local.selection_count == 0

    def test_transfer_from_other_side(self, session, dirs):
        left, _ = dirs
        browser = DualPaneBrowser(session)
        browser.switch()
        browser.toggle_selection()
        browser.transfer()
        assert (left / "old.log").read_text() == "log"
        assert "old.log" in [e.name for e in session.local.entries]

    def test_delete_relists(self, session, dirs):
        left, _ = dirs
        browser = DualPaneBrowser(session)
        browser.toggle_selection()
        browser.delete()
        assert not (left / "photos").exists()
        assert [e.name for e in session.local.entries] == ["notes.txt"]

    def test_enter_and_leave(self, session, dirs):
        left, _ = dirs
        browser = DualPaneBrowser(session)
        browser.enter()
        assert session.local.location == str(left / "photos")
        browser.leave()
        assert session.local.location == str(left)

    def test_dispatch_by_name(self, session):
        browser = DualPaneBrowser(session)
        browser.dispatch("down")
        browser.dispatch("toggle")
        assert session.local.selected == {1: "notes.txt"}
        browser.dispatch("refresh")
        assert session.local.selection_count == 0

    def test_dispatch_unknown_intent(self, session):
        with pytest.raises(ValueError, match="Unknown intent"):
            DualPaneBrowser(session).dispatch("fly")

    def test_intents_listed(self, session):
        assert "transfer" in DualPaneBrowser(session).intents


class TestConnectionLoss:
    @pytest.fixture
    def lost_session(self, dirs):
        left, right = dirs
        error = ConnectionError("421 Service not available")
        lost = HeartbeatLost("Connection lost")
        lost.__cause__ = error
        heartbeat = MagicMock()
        heartbeat.poll.side_effect = [None, lost, None, None, None]
        fs = LocalFileSystem()
        return Session(fs, str(left), LocalFileSystem(), str(right), heartbeat=heartbeat)

    def test_intents_fail_after_loss(self, lost_session):
        browser = DualPaneBrowser(lost_session)
        browser.down()
        assert lost_session.local.cursor == 1

        with pytest.raises(HeartbeatLost):
            browser.up()
        assert browser.disconnected
        assert lost_session.local.cursor == 1

        with pytest.raises(HeartbeatLost):
            browser.refresh()

    def test_transfer_not_attempted_after_loss(self, lost_session, dirs):
        _, right = dirs
        browser = DualPaneBrowser(lost_session)
        browser.toggle_selection()
        with pytest.raises(HeartbeatLost):
            browser.transfer()
        assert not (right / "photos").exists()

    def test_close_stops_heartbeat(self, lost_session):
        lost_session.close()
        lost_session.heartbeat.stop.assert_called_once()


class TestRemoteSession:
    @patch("panedrop.session.create_client")
    def test_open_connects_and_starts_heartbeat(self, mock_create, dirs):
        left, _ = dirs
        client = MagicMock()
        client.info = ConnectionInfo(protocol=Protocol.FTP, host="ftp.example.com")
        client.list_dir.return_value = [Entry("pub", EntryKind.DIRECTORY)]
        mock_create.return_value = client
        settings = Settings(connection=ConnectionDefaults(keepalive=60))

        session = Session.open(client.info, str(left), "/", settings)
        try:
            client.connect.assert_called_once()
            assert session.remote.label == "ftp.example.com"
            assert [e.name for e in session.remote.entries] == ["pub"]
            assert session.heartbeat.running
            assert session.heartbeat.interval == 60
        finally:
            session.close()

        assert not session.heartbeat.running
        client.disconnect.assert_called_once()

    @patch("panedrop.session.create_client")
    def test_open_disconnects_when_listing_fails(self, mock_create, dirs):
        left, _ = dirs
        client = MagicMock()
        client.list_dir.side_effect = ConnectionError("Not connected")
        mock_create.return_value = client

        with pytest.raises(ListingFailed):
            Session.open(ConnectionInfo(host="ftp.example.com"), str(left), "/")

        client.disconnect.assert_called_once()

    @patch("panedrop.session.create_client")
    def test_connect_failure_propagates(self, mock_create, dirs):
        left, _ = dirs
        mock_create.return_value.connect.side_effect = ConnectionError("FTP connection failed")
        with pytest.raises(ConnectionError):
            Session.open(ConnectionInfo(host="ftp.example.com"), str(left))

    @patch("panedrop.session.create_client")
    def test_close_is_idempotent(self, mock_create, dirs):
        left, _ = dirs
        client = mock_create.return_value
        client.list_dir.return_value = []
        session = Session.open(ConnectionInfo(host="h"), str(left), "/")
        session.close()
        session.close()
        client.disconnect.assert_called_once()

    @patch("panedrop.session.create_client")
    def test_open_disconnects_when_keepalive_setting_invalid(self, mock_create, dirs):
        left, _ = dirs
        client = mock_create.return_value
        client.list_dir.return_value = []
        settings = Settings(connection=ConnectionDefaults(keepalive=0))

        with pytest.raises(ValueError, match="interval"):
            Session.open(ConnectionInfo(host="h"), str(left), "/", settings)

        client.connect.assert_called_once()
        client.disconnect.assert_called_once()

    @patch("panedrop.session.create_client")
    def test_keepalive_never_overlaps_a_transfer(self, mock_create, dirs):
        left, _ = dirs
        client = mock_create.return_value
        client.list_dir.return_value = []
        uploading = threading.Event()
        overlaps: list[bool] = []

        def upload(fileobj, path):
            uploading.set()
            time.sleep(0.3)
            uploading.clear()

        client.upload.side_effect = upload
        client.noop.side_effect = lambda: overlaps.append(uploading.is_set())
        settings = Settings(connection=ConnectionDefaults(keepalive=0.02))

        session = Session.open(ConnectionInfo(host="h"), str(left), "/", settings)
        try:
            session.local.select("notes.txt")
            session.local.transfer("/")
            time.sleep(0.1)
        finally:
            session.close()

        assert overlaps
        assert not any(overlaps)
