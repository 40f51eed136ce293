"""Directory entries as produced by a listing call."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable


class EntryKind(Enum):
    DIRECTORY = "directory"
    FILE = "file"
    LINK = "link"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def rank(self) -> int:
        """Position of this kind in the listing order (directories first)."""
        return _KIND_ORDER.index(self)


_LABELS = {
    EntryKind.DIRECTORY: "d",
    EntryKind.FILE: "f",
    EntryKind.LINK: "l",
}

_KIND_ORDER = (EntryKind.DIRECTORY, EntryKind.FILE, EntryKind.LINK)


@dataclass(frozen=True)
class Entry:
    """One file, directory or link inside a listed location."""

    name: str
    kind: EntryKind = EntryKind.FILE
    size: int = 0

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @property
    def display_size(self) -> str:
        if self.is_dir:
            return "<DIR>"
        if self.size < 1024:
            return f"{self.size} B"
        if self.size < 1024 * 1024:
            return f"{self.size / 1024:.1f} KB"
        if self.size < 1024 * 1024 * 1024:
            return f"{self.size / (1024 * 1024):.1f} MB"
        return f"{self.size / (1024 * 1024 * 1024):.1f} GB"


def sort_key(entry: Entry) -> tuple[int, str]:
    return (entry.kind.rank, entry.name)


def sort_entries(entries: Iterable[Entry]) -> list[Entry]:
    """Return entries ordered by kind, then by case-sensitive name."""
    return sorted(entries, key=sort_key)
