"""Player engine: the single writer of queue and playback state.

`PlayerEngine` composes a `PlayQueue` with a `PlaybackBackend` and owns the
loop, mute and volume policies. It is not thread-safe; every call must come
from the engine loop thread. Boundary conditions are raised as the typed
errors in `voru.errors` and never crash the caller.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from voru.errors import (
    NoAudioError,
    NoMoreTracksError,
    NoPlaylistError,
    NoTrackError,
    NotPlayingError,
    PlaybackError,
)

from .play_queue import PlayQueue, QueueEntry
from .playback_backend import PlaybackBackend
from .playlist_loader import Playlist, all_tracks_playlist
from .track_cache import Track

logger = logging.getLogger(__name__)

MAX_VOLUME = 2.0
DEFAULT_VOLUME = 1.0


class LoopMode(Enum):
    NONE = "none"
    REPEAT_QUEUE = "repeat-queue"
    REPEAT_SHUFFLED = "repeat-shuffled"

    def cycle_next(self) -> LoopMode:
        modes = list(LoopMode)
        return modes[(modes.index(self) + 1) % len(modes)]

    def cycle_prev(self) -> LoopMode:
        modes = list(LoopMode)
        return modes[(modes.index(self) - 1) % len(modes)]


class PlayState(Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED = "ended"


@dataclass(frozen=True)
class PlayerViewState:
    """Immutable picture of the engine handed to the UI after each command."""

    play_state: PlayState = PlayState.STOPPED
    titles: tuple[str, ...] = ()
    current_index: int | None = None
    current_title: str | None = None
    position_ms: int = 0
    duration_ms: int = 0
    elapsed_ms: int = 0
    queue_duration_ms: int = 0
    volume: float = DEFAULT_VOLUME
    muted: bool = False
    loop_mode: LoopMode = LoopMode.NONE
    playlist_names: tuple[str, ...] = ()
    playlist_sizes: tuple[int, ...] = ()
    current_playlist_index: int | None = None


class PlayerEngine:
    """Queue plus one backend session, driven by user and remote commands."""

    def __init__(
        self,
        backend: PlaybackBackend,
        *,
        playlists: Sequence[Playlist] = (),
        shuffle_random: random.Random | None = None,
        volume: float = DEFAULT_VOLUME,
    ) -> None:
        self._backend = backend
        self._queue = PlayQueue()
        self._playlists: list[Playlist] = [all_tracks_playlist(playlists), *playlists]
        self._shuffle_random = shuffle_random or random.Random()
        self._volume = _clamp_volume(volume)
        self._muted = False
        self._loop_mode = LoopMode.NONE
        self._session_serial = 0

    @property
    def backend(self) -> PlaybackBackend:
        return self._backend

    @property
    def queue(self) -> PlayQueue:
        return self._queue

    @property
    def playlists(self) -> tuple[Playlist, ...]:
        return tuple(self._playlists)

    @property
    def current_index(self) -> int | None:
        return self._queue.current_index

    @property
    def current_entry(self) -> QueueEntry | None:
        return self._queue.current_entry

    @property
    def volume(self) -> float:
        return self._volume

    @property
    def muted(self) -> bool:
        return self._muted

    @property
    def effective_volume(self) -> float:
        return 0.0 if self._muted else self._volume

    @property
    def loop_mode(self) -> LoopMode:
        return self._loop_mode

    @property
    def session_serial(self) -> int:
        """Incremented on every successful load; tells sessions of one index apart."""
        return self._session_serial

    def play_state(self) -> PlayState:
        return PlayState(self._backend.get_state())

    def position_ms(self) -> int:
        return self._backend.get_position_ms() or 0

    def duration_ms(self) -> int:
        entry = self._queue.current_entry
        if entry is not None and entry.track.duration_ms:
            return entry.track.duration_ms
        return self._backend.get_duration_ms() or 0

    # Transport

    def play(self, index: int) -> None:
        entry = self._queue.get(index)
        try:
            self._backend.load(entry.path, duration_ms=entry.track.duration_ms)
        except PlaybackError:
            if self._backend.get_state() == "stopped":
                self._queue.set_current(None)
            raise
        self._session_serial += 1
        self._backend.set_volume(self.effective_volume)
        self._queue.set_current(index)
        logger.info("Playing %s (queue index %d)", entry.path, index)

    def replay(self) -> None:
        self.play(0)

    def play_next(self) -> None:
        index = self._require_current_index()
        if index < len(self._queue) - 1:
            self.play(index + 1)
            return
        if self._loop_mode is LoopMode.NONE:
            raise NoMoreTracksError()
        if self._loop_mode is LoopMode.REPEAT_SHUFFLED:
            self._queue.shuffle(self._shuffle_random)
        self.play(0)

    def play_prev(self) -> None:
        index = self._require_current_index()
        if index == 0:
            raise NoMoreTracksError()
        self.play(index - 1)

    def resume(self) -> None:
        state = self.play_state()
        if state is PlayState.STOPPED:
            raise NoAudioError()
        index = self._queue.current_index
        if state is PlayState.ENDED and index is not None:
            self.play(index)
            return
        self._backend.resume()

    def pause(self) -> None:
        self._backend.pause()

    def stop(self) -> None:
        self._queue.set_current(None)
        self._backend.stop()

    def toggle(self) -> None:
        if self.play_state() is PlayState.PLAYING:
            self.pause()
        else:
            self.resume()

    def seek(self, position_ms: int) -> None:
        self._backend.seek_ms(max(0, int(position_ms)))

    def seek_forward(self, delta_ms: int) -> None:
        self.seek(self.position_ms() + max(0, int(delta_ms)))

    def seek_backward(self, delta_ms: int) -> None:
        self.seek(max(0, self.position_ms() - max(0, int(delta_ms))))

    # Volume

    def set_volume(self, volume: float) -> None:
        self._volume = _clamp_volume(volume)
        self._apply_volume()

    def volume_up(self, step: float) -> None:
        self.set_volume(self._volume + step)

    def volume_down(self, step: float) -> None:
        self.set_volume(self._volume - step)

    def volume_reset(self) -> None:
        self.set_volume(DEFAULT_VOLUME)

    def set_muted(self, muted: bool) -> None:
        self._muted = bool(muted)
        self._apply_volume()

    def mute_toggle(self) -> None:
        self.set_muted(not self._muted)

    # Loop

    def set_loop(self, mode: LoopMode) -> None:
        self._loop_mode = mode

    def cycle_loop(self) -> None:
        self._loop_mode = self._loop_mode.cycle_next()

    def cycle_loop_back(self) -> None:
        self._loop_mode = self._loop_mode.cycle_prev()

    # Playlists

    def playlist(self, playlist_index: int) -> Playlist:
        if playlist_index < 0 or playlist_index >= len(self._playlists):
            raise NoPlaylistError()
        return self._playlists[playlist_index]

    def _require_playlist_track(self, playlist_index: int, track_index: int) -> None:
        playlist = self.playlist(playlist_index)
        if track_index < 0 or track_index >= len(playlist.tracks):
            raise NoTrackError()

    def play_playlist(self, playlist_index: int, track_index: int = 0) -> None:
        self._require_playlist_track(playlist_index, track_index)
        self.queue_set_playlist(playlist_index)
        self.play(track_index)

    def play_playlist_shuffled(
        self, playlist_index: int, track_index: int | None = None
    ) -> None:
        """Queue a playlist in random order and start playing.

        When `track_index` names a track of the playlist, that track is moved
        to the front so it plays first. A missing playlist or track leaves the
        queue untouched.
        """
        self._require_playlist_track(
            playlist_index, 0 if track_index is None else track_index
        )
        self.queue_set_playlist(playlist_index)
        first: QueueEntry | None = None
        if track_index is not None:
            first = self._queue.get(track_index)
        self._queue.shuffle(self._shuffle_random)
        if first is not None:
            position = self._queue.index_of(first)
            if position is not None:
                self._queue.move_to(position, 0)
        self.play(0)

    # Queue

    def queue_add(self, entry: QueueEntry) -> None:
        self._queue.add(entry)

    def queue_add_many(self, entries: Iterable[QueueEntry]) -> None:
        self._queue.add_many(entries)

    def queue_add_tracks(self, tracks: Iterable[Track]) -> None:
        self._queue.add_many(QueueEntry(track) for track in tracks)

    def queue_add_playlist(self, playlist_index: int) -> None:
        self.queue_add_playlist_slice(playlist_index, 0, None)

    def queue_add_playlist_slice(
        self, playlist_index: int, start: int, stop: int | None
    ) -> None:
        playlist = self.playlist(playlist_index)
        self._queue.add_many(
            QueueEntry(track, playlist_index) for track in playlist.tracks[start:stop]
        )

    def queue_add_from_playlist(self, playlist_index: int, track_index: int) -> None:
        playlist = self.playlist(playlist_index)
        if track_index < 0 or track_index >= len(playlist.tracks):
            raise NoTrackError()
        self._queue.add(QueueEntry(playlist.tracks[track_index], playlist_index))

    def queue_set(self, entries: Iterable[QueueEntry]) -> None:
        self._queue.replace(entries)
        self._stop_session()

    def queue_set_playlist(self, playlist_index: int) -> None:
        playlist = self.playlist(playlist_index)
        self.queue_set(QueueEntry(track, playlist_index) for track in playlist.tracks)

    def queue_clear(self) -> None:
        self._queue.clear()
        self._stop_session()

    def queue_remove(self, index: int) -> None:
        was_current = self._queue.current_index == index
        self._queue.remove(index)
        if not was_current:
            return
        if index < len(self._queue):
            self.play(index)
        else:
            self._stop_session()

    def queue_move_to(self, from_index: int, to_index: int) -> int:
        return self._queue.move_to(from_index, to_index)

    def queue_shuffle(self) -> None:
        self._queue.shuffle(self._shuffle_random)

    # Queries

    def is_track_index_current(self, index: int) -> bool:
        return self._queue.current_index == index

    def is_track_current(self, track_id: int) -> bool:
        entry = self._queue.current_entry
        return entry is not None and entry.track.track_id == track_id

    def is_playlist_index_current(self, playlist_index: int) -> bool:
        entry = self._queue.current_entry
        return entry is not None and entry.playlist_index == playlist_index

    def current_is_last(self) -> bool:
        index = self._queue.current_index
        return index is not None and index >= len(self._queue) - 1

    def view_state(self) -> PlayerViewState:
        entry = self._queue.current_entry
        return PlayerViewState(
            play_state=self.play_state(),
            titles=tuple(item.title for item in self._queue),
            current_index=self._queue.current_index,
            current_title=entry.title if entry is not None else None,
            position_ms=self.position_ms(),
            duration_ms=self.duration_ms(),
            elapsed_ms=self._queue.elapsed_ms,
            queue_duration_ms=self._queue.duration_ms,
            volume=self._volume,
            muted=self._muted,
            loop_mode=self._loop_mode,
            playlist_names=tuple(playlist.name for playlist in self._playlists),
            playlist_sizes=tuple(len(playlist) for playlist in self._playlists),
            current_playlist_index=entry.playlist_index if entry is not None else None,
        )

    def shutdown(self) -> None:
        self._backend.shutdown()

    def _require_current_index(self) -> int:
        index = self._queue.current_index
        if index is None:
            raise NotPlayingError()
        return index

    def _has_session(self) -> bool:
        return self._backend.get_state() != "stopped"

    def _apply_volume(self) -> None:
        # Stored volume is picked up by the next load when nothing is loaded.
        if self._has_session():
            self._backend.set_volume(self.effective_volume)

    def _stop_session(self) -> None:
        self._queue.set_current(None)
        if self._has_session():
            self._backend.stop()


def _clamp_volume(value: float) -> float:
    return max(0.0, min(MAX_VOLUME, float(value)))
