"""Periodic tick driver and the auto-advance step it triggers."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from voru.errors import PlaybackError
from voru.events import Command, Tick

from .player_engine import PlayerEngine, PlayState

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL_MS = 500
MIN_TICK_INTERVAL_MS = 10


class TickScheduler:
    """Pushes `Tick()` onto the command stream and guards auto-advance.

    The timer thread only submits; `run_tick` is called by the engine loop
    on the engine thread.
    """

    def __init__(
        self,
        submit: Callable[[Command], None],
        *,
        interval_ms: int = DEFAULT_TICK_INTERVAL_MS,
    ) -> None:
        if interval_ms < MIN_TICK_INTERVAL_MS:
            raise ValueError(f"interval_ms must be >= {MIN_TICK_INTERVAL_MS}")
        self._submit = submit
        self._interval = interval_ms / 1000
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._advanced_for: tuple[int, int] | None = None

    @property
    def interval_ms(self) -> int:
        return int(self._interval * 1000)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._thread_main, name="TickSchedulerThread", daemon=True
        )
        self._thread.start()

    def shutdown(self) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout=2.0)
        self._thread = None

    def run_tick(self, engine: PlayerEngine) -> bool:
        """Advance past a drained track once per (index, session). Returns True on advance.

        Silent boundary errors such as the end of the queue are dropped here;
        visible errors propagate to the caller.
        """
        index = engine.current_index
        if index is None or engine.play_state() is not PlayState.ENDED:
            return False
        key = (index, engine.session_serial)
        if key == self._advanced_for:
            return False
        self._advanced_for = key
        try:
            engine.play_next()
        except PlaybackError as exc:
            if not exc.silent:
                raise
            logger.debug("Auto-advance stopped: %s", exc)
            return False
        return True

    def _thread_main(self) -> None:
        while not self._stop_event.wait(self._interval):
            self._submit(Tick())
