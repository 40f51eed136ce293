"""Navigable file list: one side of the dual-pane browser."""

from __future__ import annotations

import logging

from panedrop.capabilities import Capabilities, CapabilityNotConfigured
from panedrop.entries import Entry, sort_entries

logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT_HEIGHT = 10


class Pane:
    """Cursor, viewport and selection state over one listed location.

    Every listing goes through :meth:`_move`, which only touches the pane's
    state after the listing call has succeeded.
    """

    def __init__(
        self,
        label: str,
        location: str,
        capabilities: Capabilities,
        viewport_height: int = DEFAULT_VIEWPORT_HEIGHT,
    ) -> None:
        if viewport_height < 1:
            raise ValueError("viewport_height must be at least 1")
        self.label = label
        self._location = location
        self._capabilities = capabilities
        self._viewport_height = viewport_height
        self._entries: list[Entry] = []
        self._cursor = 0
        self._viewport_top = 0
        self._selected: dict[int, str] = {}
        self._move(location)

    @property
    def location(self) -> str:
        return self._location

    @property
    def entries(self) -> list[Entry]:
        return list(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def viewport_top(self) -> int:
        return self._viewport_top

    @property
    def viewport_height(self) -> int:
        return self._viewport_height

    @property
    def selected(self) -> dict[int, str]:
        return dict(self._selected)

    @property
    def selection_count(self) -> int:
        return len(self._selected)

    @property
    def current_entry(self) -> Entry | None:
        if not self._entries:
            return None
        return self._entries[self._cursor]

    def visible_entries(self) -> list[Entry]:
        return self._entries[self._viewport_top : self._viewport_top + self._viewport_height]

    # --- Navigation ---

    def up(self) -> None:
        if self._cursor <= 0:
            return
        self._cursor -= 1
        if self._cursor < self._viewport_top:
            self._viewport_top = self._cursor

    def down(self) -> None:
        if self._cursor >= len(self._entries) - 1:
            return
        self._cursor += 1
        if self._cursor > self._viewport_top + self._viewport_height - 1:
            self._viewport_top = self._cursor - self._viewport_height + 1

    def enter(self) -> None:
        """Descend into the entry under the cursor."""
        entry = self.current_entry
        if entry is None:
            return
        self._move(self._capabilities.join(self._location, entry.name))

    def leave(self) -> None:
        """Move to the parent of the current location."""
        self._move(self._capabilities.parent(self._location))

    def refresh(self) -> None:
        self._move(self._location)

    def _move(self, location: str) -> None:
        entries = self._capabilities.list_dir(location)
        self._entries = sort_entries(entries)
        self._location = location
        self._reset()
        logger.debug("%s: listed %s (%d entries)", self.label, location, len(self._entries))

    def _reset(self) -> None:
        self._cursor = 0
        self._viewport_top = 0
        self.deselect_all()

    # --- Selection ---

    def toggle_selection(self) -> None:
        if not self._entries:
            return
        if self._cursor in self._selected:
            del self._selected[self._cursor]
        else:
            self._selected[self._cursor] = self._entries[self._cursor].name

    def select(self, name: str) -> None:
        """Add the entry called ``name`` to the selection."""
        for index, entry in enumerate(self._entries):
            if entry.name == name:
                self._selected[index] = name
                return
        raise KeyError(f"{name} not found in {self._location}")

    def deselect_all(self) -> None:
        self._selected.clear()

    def selected_entries(self) -> list[Entry]:
        return [self._entries[i] for i in sorted(self._selected)]

    def selected_paths(self) -> list[str]:
        return [self._capabilities.join(self._location, e.name) for e in self.selected_entries()]

    # --- Backend operations ---

    def transfer(self, destination_root: str) -> None:
        """Hand the selection to the transfer capability.

        Neither pane is refreshed here; the caller refreshes the destination
        and deselects this pane once the transfer succeeds.
        """
        if self._capabilities.transfer is None:
            raise CapabilityNotConfigured("transfer")
        selected = self.selected_entries()
        if not selected:
            return
        logger.info(
            "%s: transferring %d entries from %s to %s",
            self.label,
            len(selected),
            self._location,
            destination_root,
        )
        self._capabilities.transfer(self._location, selected, destination_root)

    def delete(self) -> None:
        """Delete the selection, then re-list the current location."""
        if self._capabilities.delete is None:
            raise CapabilityNotConfigured("delete")
        selected = self.selected_entries()
        if not selected:
            return
        logger.info("%s: deleting %d entries in %s", self.label, len(selected), self._location)
        self._capabilities.delete(self._location, selected)
        self._move(self._location)
