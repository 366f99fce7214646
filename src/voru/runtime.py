"""Builds the engine, its threads and the optional MPRIS service."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from typing import Protocol

from .config import PlayerConfig
from .errors import PlaylistLoadError, format_user_error
from .events import Command
from .services.control_bridge import ControlBridge
from .services.engine_loop import EngineLoop, NoticeHandler
from .services.fake_backend import FakePlaybackBackend
from .services.playback_backend import PlaybackBackend
from .services.player_engine import PlayerEngine, PlayerViewState
from .services.playlist_loader import Playlist, load_playlists
from .services.tick_scheduler import TickScheduler
from .services.track_cache import TrackCache
from .services.vlc_backend import VLCPlaybackBackend

logger = logging.getLogger(__name__)


class _Service(Protocol):
    def start(self) -> None: ...

    def shutdown(self) -> None: ...


def build_backend(name: str) -> tuple[PlaybackBackend, str | None]:
    """Create the named backend, falling back to the fake one if VLC is missing."""
    logger.info("Playback backend selected: %s", name)
    if name != "vlc":
        return FakePlaybackBackend(), None
    try:
        import vlc

        instance = vlc.Instance()
        if instance is None:
            raise RuntimeError("libVLC returned no instance")
    except Exception as exc:
        logger.warning("VLC backend unavailable (%s); using fake backend.", exc)
        return FakePlaybackBackend(), format_user_error(
            what_failed="VLC backend unavailable; using fake backend.",
            likely_cause="VLC/libVLC runtime is not available.",
            next_step="Install VLC/libVLC, then restart to use --backend vlc.",
            detail=str(exc),
        )
    return VLCPlaybackBackend(instance=instance), None


def load_playlists_with_notice(
    paths: Sequence[str], cache: TrackCache
) -> tuple[list[Playlist], str | None]:
    try:
        return load_playlists(paths, cache), None
    except PlaylistLoadError as exc:
        logger.warning("%s", exc)
        return [], format_user_error(
            what_failed="Playlists were not loaded.",
            likely_cause="A configured playlist path is missing or lists a missing track.",
            next_step="Fix the `playlists` entries in config.json and restart.",
            detail=str(exc),
        )


class PlayerRuntime:
    """Owns the engine thread, the tick timer, the bridge notifier and MPRIS."""

    def __init__(
        self,
        config: PlayerConfig,
        backend: PlaybackBackend,
        *,
        playlists: Sequence[Playlist] = (),
        cache: TrackCache | None = None,
        on_update: Callable[[PlayerViewState], None] | None = None,
        on_notice: NoticeHandler | None = None,
        on_quit: Callable[[], None] | None = None,
        mpris_enabled: bool | None = None,
        shuffle_random: random.Random | None = None,
    ) -> None:
        self.config = config
        self.cache = cache or TrackCache()
        self.engine = PlayerEngine(
            backend, playlists=playlists, shuffle_random=shuffle_random
        )
        self.bridge = ControlBridge(self.submit)
        self.ticks = TickScheduler(self.submit, interval_ms=config.tick_interval_ms)
        self.loop = EngineLoop(
            self.engine,
            self.bridge,
            self.ticks,
            self.cache,
            on_update=on_update,
            on_notice=on_notice,
            on_quit=on_quit,
        )
        self._mpris_enabled = (
            config.mpris_enabled if mpris_enabled is None else mpris_enabled
        )
        self._mpris: _Service | None = None
        self._started = False

    def submit(self, command: Command) -> None:
        self.loop.submit(command)

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        self.loop.start()
        self.bridge.start()
        self.ticks.start()
        if self._mpris_enabled:
            self._mpris = _start_mpris(self.bridge)

    def shutdown(self) -> None:
        if not self._started:
            return
        self._started = False
        self.ticks.shutdown()
        if self._mpris is not None:
            self._mpris.shutdown()
            self._mpris = None
        stopped = self.loop.shutdown()
        self.bridge.shutdown()
        if not stopped:
            logger.warning("Engine thread still running; backend left open")
            return
        self.engine.shutdown()
        logger.info("Player runtime stopped")


def _start_mpris(bridge: ControlBridge) -> _Service | None:
    try:
        from .services.mpris_service import MprisService
    except ImportError as exc:
        logger.info("MPRIS disabled: %s", exc)
        return None
    service = MprisService(bridge)
    try:
        service.start()
    except Exception as exc:
        logger.warning("MPRIS disabled: %s", exc)
        return None
    return service
