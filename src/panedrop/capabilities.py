"""Backend capability contracts shared by panes and the transfer engine."""

from __future__ import annotations

import posixpath
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from dataclasses import dataclass
from functools import partial
from typing import BinaryIO, Callable, Iterator, Sequence

from panedrop.entries import Entry, EntryKind

ListFn = Callable[[str], list[Entry]]
TransferFn = Callable[[str, Sequence[Entry], str], object]  # (source_root, entries, destination_root)
DeleteFn = Callable[[str, Sequence[Entry]], object]  # (location, entries)


class PaneError(Exception):
    """Base class for errors raised by the browser core."""


class CapabilityNotConfigured(PaneError):
    """A pane was asked to transfer or delete without that capability bound."""

    def __init__(self, capability: str) -> None:
        super().__init__(f"{capability} capability is not configured")
        self.capability = capability


class ListingFailed(PaneError):
    def __init__(self, location: str, reason: object = None) -> None:
        message = f"Could not list {location}"
        if reason is not None:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.location = location


class TransferFailed(PaneError):
    def __init__(self, path: str, reason: object = None) -> None:
        message = f"Could not transfer {path}"
        if reason is not None:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.path = path


class DeleteFailed(PaneError):
    def __init__(self, path: str, reason: object = None) -> None:
        message = f"Could not delete {path}"
        if reason is not None:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.path = path


class HeartbeatLost(PaneError):
    """The remote session stopped answering liveness probes."""


@dataclass(frozen=True)
class Capabilities:
    """The operations a pane is configured with.

    ``transfer`` and ``delete`` are optional; a pane raises
    :class:`CapabilityNotConfigured` when asked to use a missing one.
    ``join`` and ``parent`` compute child and parent locations.
    """

    list_dir: ListFn
    transfer: TransferFn | None = None
    delete: DeleteFn | None = None
    join: Callable[[str, str], str] = posixpath.join
    parent: Callable[[str], str] = posixpath.dirname


class FileSystem(ABC):
    """Primitive operations of one storage backend."""

    @abstractmethod
    def list_dir(self, path: str) -> list[Entry]:
        """List the children of ``path``. Raises ListingFailed on failure."""

    @abstractmethod
    def walk(self, top: str) -> Iterator[tuple[str, EntryKind]]:
        """Yield ``(path, kind)`` depth-first, each directory before its children."""

    @abstractmethod
    def open_read(self, path: str) -> AbstractContextManager[BinaryIO]:
        """Open ``path`` for binary reading."""

    @abstractmethod
    def write_file(self, path: str, fileobj: BinaryIO) -> None:
        """Write ``fileobj`` to ``path``, replacing any existing file."""

    @abstractmethod
    def make_dir(self, path: str) -> None:
        """Create a directory.

        Raises FileExistsError only when a directory already exists at ``path``.
        """

    @abstractmethod
    def remove_file(self, path: str) -> None:
        """Remove a file or link."""

    @abstractmethod
    def remove_tree(self, path: str) -> None:
        """Remove a directory and everything below it."""

    @abstractmethod
    def join(self, *parts: str) -> str:
        """Join path components."""

    @abstractmethod
    def parent(self, path: str) -> str:
        """Return the parent directory of ``path``."""

    @abstractmethod
    def relpath(self, path: str, start: str) -> str:
        """Return ``path`` relative to ``start``."""

    def keepalive(self) -> None:
        """Probe the backend. Local storage has nothing to keep alive."""


def bind_capabilities(source: FileSystem, counterpart: FileSystem) -> Capabilities:
    """Capabilities for a pane showing ``source`` whose transfers go to ``counterpart``."""
    from panedrop.transfer import delete_entries, transfer_entries

    def transfer(source_root: str, entries: Sequence[Entry], destination_root: str) -> int:
        return transfer_entries(source, source_root, entries, counterpart, destination_root)

    return Capabilities(
        list_dir=source.list_dir,
        transfer=transfer,
        delete=partial(delete_entries, source),
        join=source.join,
        parent=source.parent,
    )
