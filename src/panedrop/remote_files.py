"""Remote filesystem backend built on a protocol client."""

from __future__ import annotations

import errno
import logging
import posixpath
import tempfile
import threading
from contextlib import contextmanager
from typing import BinaryIO, Iterator

from panedrop.capabilities import FileSystem, ListingFailed
from panedrop.entries import Entry, EntryKind
from panedrop.protocols import TransferClient

logger = logging.getLogger(__name__)

# downloads larger than this spill from memory to a temporary file
SPOOL_MAX_SIZE = 8 * 1024 * 1024


class RemoteFileSystem(FileSystem):
    """A remote server seen through a connected :class:`TransferClient`.

    The client has a single control channel. Every call to it, including the
    keepalive probe from the heartbeat thread, runs under one lock so that
    commands and replies never interleave.
    """

    def __init__(self, client: TransferClient) -> None:
        self._client = client
        self._lock = threading.Lock()

    @property
    def client(self) -> TransferClient:
        return self._client

    def list_dir(self, path: str) -> list[Entry]:
        try:
            with self._lock:
                return self._client.list_dir(path)
        except Exception as e:
            logger.warning("Cannot list remote directory %s: %s", path, e)
            raise ListingFailed(path, e) from e

    def walk(self, top: str) -> Iterator[tuple[str, EntryKind]]:
        yield top, EntryKind.DIRECTORY
        for entry in sorted(self.list_dir(top), key=lambda e: e.name):
            child = self.join(top, entry.name)
            if entry.kind is EntryKind.DIRECTORY:
                yield from self.walk(child)
            else:
                yield child, entry.kind

    @contextmanager
    def open_read(self, path: str) -> Iterator[BinaryIO]:
        with tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_SIZE) as buffer:
            with self._lock:
                self._client.download(path, buffer)
            buffer.seek(0)
            yield buffer

    def write_file(self, path: str, fileobj: BinaryIO) -> None:
        with self._lock:
            self._client.upload(fileobj, path)

    def make_dir(self, path: str) -> None:
        try:
            with self._lock:
                self._client.mkdir(path)
        except Exception as e:
            # servers report "already exists" in different ways; ask the parent instead
            if self._is_dir(path):
                raise FileExistsError(errno.EEXIST, "Directory already exists", path) from e
            raise

    def _is_dir(self, path: str) -> bool:
        name = posixpath.basename(posixpath.normpath(path))
        try:
            with self._lock:
                siblings = self._client.list_dir(self.parent(path))
        except Exception as e:
            logger.debug("Cannot check whether %s exists: %s", path, e)
            return False
        return any(e.name == name and e.kind is EntryKind.DIRECTORY for e in siblings)

    def remove_file(self, path: str) -> None:
        with self._lock:
            self._client.delete(path)

    def remove_tree(self, path: str) -> None:
        with self._lock:
            children = self._client.list_dir(path)
        for entry in children:
            child = self.join(path, entry.name)
            if entry.kind is EntryKind.DIRECTORY:
                self.remove_tree(child)
            else:
                self.remove_file(child)
        with self._lock:
            self._client.rmdir(path)

    def join(self, *parts: str) -> str:
        return posixpath.join(*parts)

    def parent(self, path: str) -> str:
        return posixpath.dirname(posixpath.normpath(path))

    def relpath(self, path: str, start: str) -> str:
        return posixpath.relpath(path, start)

    def keepalive(self) -> None:
        with self._lock:
            self._client.noop()
