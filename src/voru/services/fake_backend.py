"""Fake playback backend for deterministic testing and `--backend fake`."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Collection
from dataclasses import dataclass

from voru.errors import NoAudioError, PlaybackDecodeError, PlaybackIoError

from .playback_backend import BackendStatus, clamp_seek_ms

logger = logging.getLogger(__name__)


@dataclass
class _Session:
    path: str
    duration_ms: int
    base_position_ms: int = 0
    started_at: float | None = None
    paused: bool = False


class FakePlaybackBackend:
    """In-memory backend that advances playback with a (replaceable) clock.

    Position grows with the clock while playing and the session reports
    `"ended"` once it reaches the duration, the way a drained sink would.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        default_duration_ms: int = 180_000,
        missing_paths: Collection[str] = (),
        unplayable_paths: Collection[str] = (),
    ) -> None:
        if default_duration_ms < 1:
            raise ValueError("default_duration_ms must be >= 1")
        self._clock = clock
        self._default_duration_ms = default_duration_ms
        self._missing_paths = set(missing_paths)
        self._unplayable_paths = set(unplayable_paths)
        self._session: _Session | None = None
        self.volume: float = 1.0
        self.load_count = 0
        self.seek_calls: list[int] = []

    @property
    def loaded_path(self) -> str | None:
        return self._session.path if self._session is not None else None

    def load(self, path: str, *, duration_ms: int | None = None) -> None:
        if self._session is not None:
            self._session = None
        if path in self._missing_paths:
            raise PlaybackIoError(path, FileNotFoundError(2, "No such file"))
        if path in self._unplayable_paths:
            raise PlaybackDecodeError(f"Unrecognized format: {path}")
        resolved = duration_ms if duration_ms and duration_ms > 0 else None
        self._session = _Session(
            path=path,
            duration_ms=resolved or self._default_duration_ms,
            started_at=self._clock(),
        )
        self.load_count += 1
        logger.debug("Fake backend loaded %s", path)

    def resume(self) -> None:
        session = self._require_session()
        if session.paused:
            session.paused = False
            session.started_at = self._clock()

    def pause(self) -> None:
        session = self._require_session()
        if not session.paused:
            session.base_position_ms = self._position(session)
            session.paused = True
            session.started_at = None

    def stop(self) -> None:
        self._require_session()
        self._session = None

    def seek_ms(self, position_ms: int) -> None:
        session = self._require_session()
        target = clamp_seek_ms(position_ms, session.duration_ms)
        self.seek_calls.append(target)
        session.base_position_ms = target
        if not session.paused:
            session.started_at = self._clock()

    def set_volume(self, volume: float) -> None:
        self._require_session()
        self.volume = volume

    def get_position_ms(self) -> int | None:
        if self._session is None:
            return None
        return self._position(self._session)

    def get_duration_ms(self) -> int | None:
        if self._session is None:
            return None
        return self._session.duration_ms

    def get_state(self) -> BackendStatus:
        session = self._session
        if session is None:
            return "stopped"
        if self._position(session) >= session.duration_ms:
            return "ended"
        if session.paused:
            return "paused"
        return "playing"

    def shutdown(self) -> None:
        self._session = None

    def _require_session(self) -> _Session:
        if self._session is None:
            raise NoAudioError()
        return self._session

    def _position(self, session: _Session) -> int:
        position = session.base_position_ms
        if not session.paused and session.started_at is not None:
            position += round((self._clock() - session.started_at) * 1000)
        return min(position, session.duration_ms)
