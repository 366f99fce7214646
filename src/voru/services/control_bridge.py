"""Bridge between the engine thread and remote control.

The bridge owns the externally visible `PlayerSnapshot`. The engine thread
refreshes it with `reconcile()` after every command; remote listeners only
read it through `snapshot()` or push requests with `request()`. Change
notifications are queued in an outbox and delivered on a notifier thread so
that reconciliation never waits on a listener.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Union

from voru.events import (
    Command,
    RemoteAction,
    RemoteCommand,
    RemoteNext,
    RemotePause,
    RemotePlay,
    RemotePlayPause,
    RemotePrev,
    RemoteSeek,
    RemoteSetLoop,
    RemoteSetPosition,
    RemoteShuffle,
    RemoteStop,
    RemoteVolume,
)

from .player_engine import MAX_VOLUME, LoopMode, PlayerEngine, PlayState

logger = logging.getLogger(__name__)

PlaybackStatus = Literal["Playing", "Paused", "Stopped"]
LoopStatus = Literal["None", "Playlist"]

TRACK_OBJECT_PREFIX = "/org/mpris/MediaPlayer2/voru/track/"
NO_TRACK_OBJECT = "/org/mpris/MediaPlayer2/TrackList/NoTrack"
DEFAULT_SEEK_TOLERANCE_MS = 1000


@dataclass(frozen=True)
class TrackMetadata:
    track_id: int
    path: str
    title: str
    album: str | None = None
    artist: str | None = None
    length_ms: int = 0


@dataclass(frozen=True)
class PlayerSnapshot:
    status: PlaybackStatus = "Stopped"
    loop_status: LoopStatus = "None"
    shuffle: bool = False
    metadata: TrackMetadata | None = None
    position_ms: int = 0
    volume: float = 1.0 / MAX_VOLUME


@dataclass(frozen=True)
class PropertiesChanged:
    names: tuple[str, ...]
    snapshot: PlayerSnapshot


@dataclass(frozen=True)
class Seeked:
    position_ms: int


Notification = Union[PropertiesChanged, Seeked]

# Snapshot field -> remote property name.
_PROPERTY_NAMES = (
    ("status", "PlaybackStatus"),
    ("loop_status", "LoopStatus"),
    ("shuffle", "Shuffle"),
    ("metadata", "Metadata"),
    ("volume", "Volume"),
)

_STATUS_BY_STATE: dict[PlayState, PlaybackStatus] = {
    PlayState.PLAYING: "Playing",
    PlayState.PAUSED: "Paused",
    PlayState.STOPPED: "Stopped",
    PlayState.ENDED: "Stopped",
}


def snapshot_from_engine(engine: PlayerEngine) -> PlayerSnapshot:
    entry = engine.current_entry
    metadata = None
    if entry is not None:
        track = entry.track
        metadata = TrackMetadata(
            track_id=track.track_id,
            path=track.path,
            title=track.display_title,
            album=track.album,
            artist=track.artist,
            length_ms=engine.duration_ms(),
        )
    mode = engine.loop_mode
    return PlayerSnapshot(
        status=_STATUS_BY_STATE[engine.play_state()],
        loop_status="None" if mode is LoopMode.NONE else "Playlist",
        shuffle=mode is LoopMode.REPEAT_SHUFFLED,
        metadata=metadata,
        position_ms=engine.position_ms(),
        volume=engine.volume / MAX_VOLUME,
    )


def track_object_path(track_id: int | None) -> str:
    if track_id is None:
        return NO_TRACK_OBJECT
    return f"{TRACK_OBJECT_PREFIX}{track_id}"


def track_id_from_object_path(path: str) -> int | None:
    if not path.startswith(TRACK_OBJECT_PREFIX):
        return None
    try:
        return int(path[len(TRACK_OBJECT_PREFIX) :])
    except ValueError:
        return None


def metadata_fields(snapshot: PlayerSnapshot) -> dict[str, Any]:
    """Remote `Metadata` map in plain Python types (times in microseconds)."""
    metadata = snapshot.metadata
    if metadata is None:
        return {"mpris:trackid": NO_TRACK_OBJECT}
    fields: dict[str, Any] = {
        "mpris:trackid": track_object_path(metadata.track_id),
        "mpris:length": metadata.length_ms * 1000,
        "xesam:title": metadata.title,
        "xesam:url": Path(metadata.path).absolute().as_uri(),
    }
    if metadata.album:
        fields["xesam:album"] = metadata.album
    if metadata.artist:
        fields["xesam:artist"] = [metadata.artist]
    return fields


def apply_remote_action(engine: PlayerEngine, action: RemoteAction) -> None:
    """Run one remote action on the engine thread."""
    if isinstance(action, RemotePlay):
        engine.resume()
    elif isinstance(action, RemotePause):
        engine.pause()
    elif isinstance(action, RemoteStop):
        engine.stop()
    elif isinstance(action, RemotePlayPause):
        engine.toggle()
    elif isinstance(action, RemoteSeek):
        if action.offset_us > 0:
            engine.seek_forward(action.offset_us // 1000)
        elif action.offset_us < 0:
            engine.seek_backward(-action.offset_us // 1000)
    elif isinstance(action, RemoteVolume):
        fraction = max(0.0, min(1.0, float(action.volume)))
        engine.set_volume(fraction * MAX_VOLUME)
    elif isinstance(action, RemoteNext):
        engine.play_next()
    elif isinstance(action, RemotePrev):
        engine.play_prev()
    elif isinstance(action, RemoteShuffle):
        engine.queue_shuffle()
    elif isinstance(action, RemoteSetPosition):
        # Stale requests for a track that is no longer current are ignored.
        if action.position_us >= 0 and engine.is_track_current(action.track_id):
            engine.seek(action.position_us // 1000)
    elif isinstance(action, RemoteSetLoop):
        if action.loop_status == "None":
            engine.set_loop(LoopMode.NONE)
        elif engine.loop_mode is LoopMode.NONE:
            engine.set_loop(LoopMode.REPEAT_QUEUE)
    else:
        raise TypeError(f"Unknown remote action: {action!r}")


class ControlBridge:
    def __init__(
        self,
        submit: Callable[[Command], None],
        *,
        seek_tolerance_ms: int = DEFAULT_SEEK_TOLERANCE_MS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._submit = submit
        self._seek_tolerance_ms = seek_tolerance_ms
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshot = PlayerSnapshot()
        self._reconciled_at: float | None = None
        self._outbox: queue.SimpleQueue[Notification | None] = queue.SimpleQueue()
        self._listeners: list[Callable[[Notification], None]] = []
        self._thread: threading.Thread | None = None

    @property
    def lock(self) -> threading.Lock:
        return self._lock

    def snapshot(self) -> PlayerSnapshot:
        with self._lock:
            return self._snapshot

    def add_listener(self, listener: Callable[[Notification], None]) -> None:
        self._listeners.append(listener)

    def request(self, action: RemoteAction) -> None:
        """Queue a remote action onto the engine command stream."""
        self._submit(RemoteCommand(action))

    def reconcile(self, engine: PlayerEngine) -> bool:
        """Refresh the snapshot from the engine; skip if the lock is busy.

        Must run on the engine thread. Returns False when the cycle was skipped.
        """
        fresh = snapshot_from_engine(engine)
        if not self._lock.acquire(blocking=False):
            logger.debug("Snapshot lock busy; skipping reconciliation")
            return False
        try:
            previous = self._snapshot
            self._snapshot = fresh
        finally:
            self._lock.release()
        now = self._clock()
        for notification in self._diff(previous, fresh, now):
            self._outbox.put(notification)
        self._reconciled_at = now
        return True

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._notifier_main, name="ControlBridgeNotifier", daemon=True
        )
        self._thread.start()

    def shutdown(self) -> None:
        if self._thread is None:
            return
        self._outbox.put(None)
        self._thread.join(timeout=2.0)
        self._thread = None

    def flush_notifications(self) -> int:
        """Deliver queued notifications on the calling thread. Returns the count."""
        delivered = 0
        while True:
            try:
                notification = self._outbox.get_nowait()
            except queue.Empty:
                return delivered
            if notification is None:
                continue
            self._deliver(notification)
            delivered += 1

    def _diff(
        self, previous: PlayerSnapshot, fresh: PlayerSnapshot, now: float
    ) -> list[Notification]:
        notifications: list[Notification] = []
        names = tuple(
            remote_name
            for field_name, remote_name in _PROPERTY_NAMES
            if getattr(previous, field_name) != getattr(fresh, field_name)
        )
        if names:
            notifications.append(PropertiesChanged(names, fresh))
        if self._is_discontinuous(previous, fresh, now):
            notifications.append(Seeked(fresh.position_ms))
        return notifications

    def _is_discontinuous(
        self, previous: PlayerSnapshot, fresh: PlayerSnapshot, now: float
    ) -> bool:
        if previous.metadata is None or fresh.metadata is None:
            return False
        if previous.metadata.track_id != fresh.metadata.track_id:
            return False
        expected = previous.position_ms
        if previous.status == "Playing" and self._reconciled_at is not None:
            expected += round((now - self._reconciled_at) * 1000)
        return abs(fresh.position_ms - expected) > self._seek_tolerance_ms

    def _notifier_main(self) -> None:
        while True:
            notification = self._outbox.get()
            if notification is None:
                return
            self._deliver(notification)

    def _deliver(self, notification: Notification) -> None:
        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception:
                logger.exception("Remote-control listener failed")
