"""Intent dispatch for the dual-pane browser."""

from __future__ import annotations

import logging
from typing import Callable

from panedrop.capabilities import HeartbeatLost
from panedrop.pane import Pane
from panedrop.session import Session

logger = logging.getLogger(__name__)


class DualPaneBrowser:
    """Routes user intents to the focused pane of a :class:`Session`.

    One intent is handled completely before the next. The keepalive is polled
    before every intent; after a connection loss no pane is touched again and
    every intent raises :class:`HeartbeatLost`.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self.focused: Pane = session.local
        self.other: Pane = session.remote
        self._lost: HeartbeatLost | None = None
        self._intents: dict[str, Callable[[], None]] = {
            "up": self.up,
            "down": self.down,
            "enter": self.enter,
            "leave": self.leave,
            "refresh": self.refresh,
            "toggle": self.toggle_selection,
            "switch": self.switch,
            "transfer": self.transfer,
            "delete": self.delete,
        }

    @property
    def disconnected(self) -> bool:
        return self._lost is not None

    @property
    def intents(self) -> list[str]:
        return list(self._intents)

    def dispatch(self, intent: str) -> None:
        try:
            handler = self._intents[intent]
        except KeyError:
            raise ValueError(f"Unknown intent: {intent}") from None
        handler()

    def _check_connection(self) -> None:
        if self._lost is None:
            self._lost = self._session.poll_connection()
            if self._lost is not None:
                logger.warning("Remote session lost: %s", self._lost)
        if self._lost is not None:
            raise HeartbeatLost(str(self._lost)) from self._lost

    def up(self) -> None:
        self._check_connection()
        self.focused.up()

    def down(self) -> None:
        self._check_connection()
        self.focused.down()

    def enter(self) -> None:
        self._check_connection()
        self.focused.enter()

    def leave(self) -> None:
        self._check_connection()
        self.focused.leave()

    def refresh(self) -> None:
        self._check_connection()
        self.focused.refresh()

    def toggle_selection(self) -> None:
        self._check_connection()
        self.focused.toggle_selection()

    def switch(self) -> None:
        self._check_connection()
        self.focused, self.other = self.other, self.focused

    def transfer(self) -> None:
        """Copy the focused selection into the other pane's location."""
        self._check_connection()
        self.focused.transfer(self.other.location)
        self.other.refresh()
        self.focused.deselect_all()

    def delete(self) -> None:
        self._check_connection()
        self.focused.delete()
