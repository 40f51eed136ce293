"""A browsing session: two panes, their backends and the keepalive."""

from __future__ import annotations

import logging

from panedrop.capabilities import FileSystem, HeartbeatLost, bind_capabilities
from panedrop.heartbeat import Heartbeat
from panedrop.local_files import LocalFileSystem
from panedrop.pane import Pane
from panedrop.protocols import ConnectionInfo, TransferClient, create_client
from panedrop.remote_files import RemoteFileSystem
from panedrop.settings import Settings

logger = logging.getLogger(__name__)


class Session:
    """Owns both panes and everything they talk to.

    ``local`` is the pane over the local filesystem, ``remote`` the pane over
    the server (or over a second local directory when no client is used).
    """

    def __init__(
        self,
        local_fs: FileSystem,
        local_dir: str,
        remote_fs: FileSystem,
        remote_dir: str,
        *,
        remote_label: str = "Remote",
        client: TransferClient | None = None,
        heartbeat: Heartbeat | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or Settings()
        height = settings.browser.viewport_height
        self.local_fs = local_fs
        self.remote_fs = remote_fs
        self.client = client
        self.heartbeat = heartbeat
        self.local = Pane("Local", local_dir, bind_capabilities(local_fs, remote_fs), height)
        self.remote = Pane(remote_label, remote_dir, bind_capabilities(remote_fs, local_fs), height)
        self._closed = False

    @classmethod
    def open(
        cls,
        info: ConnectionInfo,
        local_dir: str,
        remote_dir: str = "/",
        settings: Settings | None = None,
    ) -> Session:
        """Connect to ``info`` and start the keepalive."""
        settings = settings or Settings()
        client = create_client(info)
        client.connect()
        remote_fs = RemoteFileSystem(client)
        try:
            heartbeat = Heartbeat(remote_fs.keepalive, settings.connection.keepalive)
            session = cls(
                LocalFileSystem(),
                local_dir,
                remote_fs,
                remote_dir,
                remote_label=info.host,
                client=client,
                heartbeat=heartbeat,
                settings=settings,
            )
            heartbeat.start()
        except Exception:
            client.disconnect()
            raise
        return session

    @classmethod
    def local_pair(
        cls, left_dir: str, right_dir: str, settings: Settings | None = None
    ) -> Session:
        """A session whose second pane is another local directory."""
        return cls(
            LocalFileSystem(),
            left_dir,
            LocalFileSystem(),
            right_dir,
            remote_label="Mirror",
            settings=settings,
        )

    def poll_connection(self) -> HeartbeatLost | None:
        """Return the connection-loss error reported by the keepalive, if any."""
        if self.heartbeat is None:
            return None
        return self.heartbeat.poll()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self.heartbeat is not None:
            self.heartbeat.stop()
        if self.client is not None:
            self.client.disconnect()
            logger.info("Disconnected from %s", self.client.info.host)

    def __enter__(self) -> Session:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
