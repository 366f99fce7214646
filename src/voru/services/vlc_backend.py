"""VLC playback backend using python-vlc."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from voru.errors import (
    NoAudioError,
    PlaybackDecodeError,
    PlaybackIoError,
    PlaybackSeekError,
)

from .playback_backend import BackendStatus, clamp_seek_ms

logger = logging.getLogger(__name__)


class VLCPlaybackBackend:
    """Playback backend backed by a single libVLC media player.

    The instance is created lazily on first load so that importing this module
    never requires VLC to be installed.
    """

    def __init__(self, *, instance: Any | None = None) -> None:
        self._instance = instance
        self._player: Any | None = None
        self._loaded = False
        self._duration_ms: int | None = None

    def load(self, path: str, *, duration_ms: int | None = None) -> None:
        player = self._ensure_player()
        if self._loaded:
            player.stop()
            self._loaded = False
            self._duration_ms = None
        try:
            with open(path, "rb"):
                pass
        except OSError as exc:
            raise PlaybackIoError(path, exc) from exc
        assert self._instance is not None
        media = self._instance.media_new_path(str(Path(path)))
        player.set_media(media)
        if player.play() == -1:
            raise PlaybackDecodeError(f"VLC could not start playback of {path}")
        self._loaded = True
        self._duration_ms = duration_ms if duration_ms and duration_ms > 0 else None
        logger.debug("VLC loaded %s (duration_ms=%s)", path, self._duration_ms)

    def resume(self) -> None:
        self._require_player().set_pause(0)

    def pause(self) -> None:
        self._require_player().set_pause(1)

    def stop(self) -> None:
        player = self._require_player()
        player.stop()
        self._loaded = False
        self._duration_ms = None

    def seek_ms(self, position_ms: int) -> None:
        player = self._require_player()
        target = clamp_seek_ms(position_ms, self.get_duration_ms())
        if player.set_time(int(target)) == -1:
            raise PlaybackSeekError(f"VLC refused to seek to {target} ms")

    def set_volume(self, volume: float) -> None:
        player = self._require_player()
        percent = int(round(volume * 100))
        if player.audio_set_volume(percent) == -1:
            logger.warning("VLC rejected volume %s%%", percent)

    def get_position_ms(self) -> int | None:
        if not self._loaded or self._player is None:
            return None
        return max(int(self._player.get_time()), 0)

    def get_duration_ms(self) -> int | None:
        if not self._loaded or self._player is None:
            return None
        if self._duration_ms is not None:
            return self._duration_ms
        length = int(self._player.get_length())
        return length if length > 0 else None

    def get_state(self) -> BackendStatus:
        if not self._loaded or self._player is None:
            return "stopped"
        return _map_state(self._player)

    def shutdown(self) -> None:
        if self._player is None:
            return
        try:
            self._player.stop()
            self._player.release()
        except Exception as exc:  # pragma: no cover - depends on VLC install
            logger.debug("VLC shutdown failed: %s", exc)
        self._player = None
        self._loaded = False

    def _ensure_player(self) -> Any:
        if self._player is not None:
            return self._player
        if self._instance is None:
            try:
                import vlc

                self._instance = vlc.Instance()
            except Exception as exc:  # pragma: no cover - depends on VLC install
                raise PlaybackDecodeError(
                    "VLC backend unavailable. Ensure VLC/libVLC is installed."
                ) from exc
        self._player = self._instance.media_player_new()
        return self._player

    def _require_player(self) -> Any:
        if not self._loaded or self._player is None:
            raise NoAudioError()
        return self._player


def _map_state(player: Any) -> BackendStatus:
    try:
        state = player.get_state()
    except Exception:
        return "ended"
    name = getattr(state, "name", str(state)).lower()
    if name == "paused":
        return "paused"
    if name in {"ended", "error"}:
        return "ended"
    if name == "stopped":
        return "stopped"
    # NothingSpecial/Opening/Buffering/Playing: the session is live.
    return "playing"
