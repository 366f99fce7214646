"""The engine thread: drains the ordered command stream into `PlayerEngine`."""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable
from typing import Any

from voru.commands import expand_track_paths
from voru.errors import TrackLoadError, VoruError
from voru.events import (
    Command,
    EngineCommand,
    RemoteCommand,
    Shutdown,
    Tick,
)

from .control_bridge import ControlBridge, apply_remote_action
from .player_engine import PlayerEngine, PlayerViewState
from .tick_scheduler import TickScheduler
from .track_cache import Track, TrackCache

logger = logging.getLogger(__name__)

# Engine methods reachable through `EngineCommand`.
ENGINE_METHODS = frozenset(
    {
        "play",
        "play_next",
        "play_prev",
        "replay",
        "resume",
        "pause",
        "stop",
        "toggle",
        "seek",
        "seek_forward",
        "seek_backward",
        "set_volume",
        "volume_up",
        "volume_down",
        "volume_reset",
        "set_muted",
        "mute_toggle",
        "set_loop",
        "cycle_loop",
        "cycle_loop_back",
        "play_playlist",
        "play_playlist_shuffled",
        "queue_add_playlist",
        "queue_add_from_playlist",
        "queue_add_playlist_slice",
        "queue_set_playlist",
        "queue_clear",
        "queue_remove",
        "queue_move_to",
        "queue_shuffle",
    }
)

NoticeHandler = Callable[[str, str], None]


class EngineLoop:
    """Single writer of engine state.

    Every command, tick and remote request is executed here in submission
    order, followed by a snapshot reconciliation and a UI update.
    """

    def __init__(
        self,
        engine: PlayerEngine,
        bridge: ControlBridge,
        ticks: TickScheduler,
        cache: TrackCache,
        *,
        on_update: Callable[[PlayerViewState], None] | None = None,
        on_notice: NoticeHandler | None = None,
        on_quit: Callable[[], None] | None = None,
    ) -> None:
        self._engine = engine
        self._bridge = bridge
        self._ticks = ticks
        self._cache = cache
        self._on_update = on_update
        self._on_notice = on_notice
        self._on_quit = on_quit
        self._commands: queue.Queue[Command] = queue.Queue()
        self._thread: threading.Thread | None = None

    def submit(self, command: Command) -> None:
        self._commands.put(command)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._thread_main, name="EngineLoopThread", daemon=True
        )
        self._thread.start()

    def shutdown(self, timeout: float = 2.0) -> bool:
        """Stop the engine thread; False if it is still running after `timeout`."""
        if self._thread is None:
            return True
        self._commands.put(Shutdown())
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("Engine thread did not stop within %.1fs", timeout)
            return False
        self._thread = None
        return True

    def drain(self) -> int:
        """Process everything queued so far on the calling thread."""
        processed = 0
        while True:
            try:
                command = self._commands.get_nowait()
            except queue.Empty:
                return processed
            processed += 1
            if not self.process(command):
                return processed

    def process(self, command: Command) -> bool:
        """Run one command. Returns False once the loop should stop."""
        if isinstance(command, Shutdown):
            logger.debug("Engine loop shutting down")
            return False
        try:
            self._dispatch(command)
        except VoruError as exc:
            self._report(exc)
        except Exception:
            logger.exception("Unexpected error while handling %r", command)
        self._bridge.reconcile(self._engine)
        self._publish()
        return True

    def _thread_main(self) -> None:
        while True:
            command = self._commands.get()
            if not self.process(command):
                return

    def _dispatch(self, command: Command) -> None:
        if isinstance(command, Tick):
            self._ticks.run_tick(self._engine)
        elif isinstance(command, RemoteCommand):
            logger.debug("Remote action %r", command.action)
            apply_remote_action(self._engine, command.action)
        elif isinstance(command, EngineCommand):
            self._run_engine_command(command.name, command.args)
        else:
            raise TypeError(f"Unknown command: {command!r}")

    def _run_engine_command(self, name: str, args: tuple[Any, ...]) -> None:
        logger.debug("Engine command %s%r", name, args)
        if name == "quit":
            if self._on_quit is not None:
                self._on_quit()
        elif name == "notify":
            self._notify(" ".join(str(arg) for arg in args), "information")
        elif name == "queue_add_paths":
            self._queue_add_paths([str(arg) for arg in args])
        elif name in ENGINE_METHODS:
            getattr(self._engine, name)(*args)
        else:
            raise ValueError(f"Unknown engine command: {name}")

    def _queue_add_paths(self, args: list[str]) -> None:
        tracks: list[Track] = []
        for path in expand_track_paths(args):
            try:
                tracks.append(self._cache.get_or_create(path))
            except TrackLoadError as exc:
                logger.info("Skipping %s", exc)
        self._engine.queue_add_tracks(tracks)
        self._notify(f"{len(tracks)} tracks were added", "information")

    def _report(self, exc: VoruError) -> None:
        if exc.silent:
            logger.debug("Ignored %s: %s", type(exc).__name__, exc)
            return
        logger.warning("%s: %s", type(exc).__name__, exc)
        self._notify(exc.user_message(), "error")

    def _notify(self, text: str, severity: str) -> None:
        if self._on_notice is not None:
            self._on_notice(text, severity)

    def _publish(self) -> None:
        if self._on_update is None:
            return
        try:
            self._on_update(self._engine.view_state())
        except Exception:
            logger.exception("UI update callback failed")
