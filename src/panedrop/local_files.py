"""Local filesystem backend."""

from __future__ import annotations

import errno
import logging
import os
import shutil
from typing import BinaryIO, Iterator

from panedrop.capabilities import FileSystem, ListingFailed
from panedrop.entries import Entry, EntryKind

logger = logging.getLogger(__name__)

COPY_BUFFER_SIZE = 64 * 1024


def _entry_kind(entry: os.DirEntry) -> EntryKind:
    if entry.is_symlink():
        return EntryKind.LINK
    if entry.is_dir():
        return EntryKind.DIRECTORY
    return EntryKind.FILE


class LocalFileSystem(FileSystem):
    """Files on this machine, addressed with native paths."""

    def list_dir(self, path: str) -> list[Entry]:
        entries: list[Entry] = []
        try:
            with os.scandir(path) as it:
                for item in it:
                    kind = _entry_kind(item)
                    size = 0
                    if kind is not EntryKind.DIRECTORY:
                        try:
                            size = item.stat(follow_symlinks=False).st_size
                        except OSError as e:
                            logger.debug("Cannot stat %s: %s", item.path, e)
                    entries.append(Entry(name=item.name, kind=kind, size=size))
        except OSError as e:
            logger.warning("Cannot list directory %s: %s", path, e)
            raise ListingFailed(path, e) from e
        return entries

    def walk(self, top: str) -> Iterator[tuple[str, EntryKind]]:
        yield top, EntryKind.DIRECTORY
        yield from self._walk_children(top)

    def _walk_children(self, directory: str) -> Iterator[tuple[str, EntryKind]]:
        with os.scandir(directory) as it:
            children = sorted(it, key=lambda e: e.name)
        for child in children:
            kind = _entry_kind(child)
            yield child.path, kind
            # links are copied as files and never followed
            if kind is EntryKind.DIRECTORY:
                yield from self._walk_children(child.path)

    def open_read(self, path: str) -> BinaryIO:
        return open(path, "rb")

    def write_file(self, path: str, fileobj: BinaryIO) -> None:
        with open(path, "wb") as out:
            shutil.copyfileobj(fileobj, out, COPY_BUFFER_SIZE)

    def make_dir(self, path: str) -> None:
        try:
            os.mkdir(path)
        except FileExistsError as e:
            if os.path.isdir(path):
                raise
            raise NotADirectoryError(errno.ENOTDIR, "Not a directory", path) from e

    def remove_file(self, path: str) -> None:
        os.remove(path)

    def remove_tree(self, path: str) -> None:
        shutil.rmtree(path)

    def join(self, *parts: str) -> str:
        return os.path.join(*parts)

    def parent(self, path: str) -> str:
        return os.path.dirname(os.path.normpath(path))

    def relpath(self, path: str, start: str) -> str:
        return os.path.relpath(path, start)
