"""Recursive transfer and delete of a selection between two filesystems."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Sequence

from panedrop.capabilities import DeleteFailed, FileSystem, TransferFailed
from panedrop.entries import Entry, EntryKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferStep:
    """One node of an expanded selection.

    ``relative_path`` is relative to the source root and always uses ``/``.
    """

    relative_path: str
    kind: EntryKind

    @property
    def parts(self) -> list[str]:
        return self.relative_path.split("/")


def plan_transfer(
    source: FileSystem, source_root: str, entries: Sequence[Entry]
) -> Iterator[TransferStep]:
    """Expand a selection into steps, each directory before anything inside it."""
    for entry in entries:
        if entry.kind is not EntryKind.DIRECTORY:
            yield TransferStep(entry.name, entry.kind)
            continue
        for path, kind in source.walk(source.join(source_root, entry.name)):
            # walk reports full paths; the mapping needs the suffix below the root
            relative = source.relpath(path, source_root).replace("\\", "/")
            yield TransferStep(relative, kind)


def transfer_entries(
    source: FileSystem,
    source_root: str,
    entries: Sequence[Entry],
    destination: FileSystem,
    destination_root: str,
) -> int:
    """Copy ``entries`` from ``source_root`` into ``destination_root``.

    Stops at the first failure and raises TransferFailed; work already done
    is kept. Returns the number of files copied.
    """
    copied = 0
    current = destination_root
    try:
        for entry in entries:
            # walk and read failures are reported against the source path
            current = source.join(source_root, entry.name)
            for step in plan_transfer(source, source_root, [entry]):
                source_path = source.join(source_root, *step.parts)
                target = destination.join(destination_root, *step.parts)
                current = target
                if step.kind is EntryKind.DIRECTORY:
                    _ensure_dir(destination, target)
                    # the walk lists this directory next
                    current = source_path
                    continue
                current = source_path
                logger.debug("Copying %s -> %s", source_path, target)
                with source.open_read(source_path) as f:
                    current = target
                    destination.write_file(target, f)
                copied += 1
    except Exception as e:
        logger.error("Transfer failed at %s: %s", current, e)
        raise TransferFailed(current, e) from e
    logger.info("Transferred %d files from %s to %s", copied, source_root, destination_root)
    return copied


def _ensure_dir(destination: FileSystem, path: str) -> None:
    try:
        destination.make_dir(path)
        logger.debug("Created directory %s", path)
    except FileExistsError:
        logger.debug("Directory already exists: %s", path)


def delete_entries(fs: FileSystem, location: str, entries: Sequence[Entry]) -> None:
    """Delete ``entries`` under ``location``, stopping at the first failure."""
    for entry in entries:
        path = fs.join(location, entry.name)
        try:
            if entry.kind is EntryKind.DIRECTORY:
                fs.remove_tree(path)
            else:
                fs.remove_file(path)
        except Exception as e:
            logger.error("Delete failed at %s: %s", path, e)
            raise DeleteFailed(path, e) from e
        logger.debug("Deleted %s", path)
