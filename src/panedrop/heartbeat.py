"""Background keepalive for a remote session."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable

from panedrop.capabilities import HeartbeatLost

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 15.0


class Heartbeat:
    """Runs ``probe`` every ``interval`` seconds on a daemon thread.

    The first failing probe is reported once through :meth:`poll` and ends
    the loop. :meth:`stop` ends it without reporting anything.
    """

    def __init__(self, probe: Callable[[], object], interval: float = DEFAULT_INTERVAL) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._probe = probe
        self._interval = interval
        self._quit = threading.Event()
        self._errors: queue.Queue[HeartbeatLost] = queue.Queue(maxsize=1)
        self._thread: threading.Thread | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("Heartbeat already started")
        self._thread = threading.Thread(target=self._run, name="heartbeat", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._quit.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def poll(self) -> HeartbeatLost | None:
        """Return the connection-loss error if one was reported, without blocking."""
        try:
            return self._errors.get_nowait()
        except queue.Empty:
            return None

    def _run(self) -> None:
        while not self._quit.wait(self._interval):
            try:
                self._probe()
            except Exception as e:
                logger.error("Keepalive probe failed: %s", e)
                lost = HeartbeatLost(f"Connection lost: {e}")
                lost.__cause__ = e
                self._errors.put_nowait(lost)
                return
            logger.debug("Keepalive probe ok")
        logger.debug("Heartbeat stopped")
