"""Track records and the path-keyed cache that owns them."""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

from voru.errors import TrackLoadError

from .audio_tags import read_audio_tags

logger = logging.getLogger(__name__)

_TRACK_IDS = itertools.count()

NO_TITLE = "<no title>"


@dataclass(frozen=True)
class Track:
    """Immutable track metadata. One instance exists per path."""

    path: str
    filename: str | None
    title: str | None = None
    album: str | None = None
    artist: str | None = None
    duration_ms: int | None = None
    track_id: int = field(default_factory=lambda: next(_TRACK_IDS))

    @property
    def display_title(self) -> str:
        return self.title or self.filename or NO_TITLE

    @property
    def duration_or_zero_ms(self) -> int:
        return self.duration_ms or 0


def track_filename(path: Path) -> str | None:
    """`parent/name` for a track path, or just `name` at the filesystem root."""
    name = path.name
    if not name:
        return None
    parent = path.parent.name
    return f"{parent}/{name}" if parent else name


class TrackCache:
    """Maps paths to shared `Track` instances, reading tags on first use."""

    def __init__(self) -> None:
        self._tracks: dict[str, Track] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._tracks)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, (str, Path)) and str(path) in self._tracks

    def get(self, path: str | Path) -> Track | None:
        return self._tracks.get(str(path))

    def get_or_create(self, path: str | Path) -> Track:
        key = str(path)
        with self._lock:
            track = self._tracks.get(key)
            if track is not None:
                return track
        track = _load_track(Path(key))
        with self._lock:
            # Another thread may have raced us; keep the first instance.
            return self._tracks.setdefault(key, track)


def _load_track(path: Path) -> Track:
    if not path.exists():
        raise TrackLoadError(str(path), "no such file")
    if path.is_dir():
        raise TrackLoadError(str(path), "is a directory")
    tags = read_audio_tags(path)
    if tags.error is not None:
        logger.info("Unreadable tags for %s: %s", path, tags.error)
    return Track(
        path=str(path),
        filename=track_filename(path),
        title=tags.title,
        album=tags.album,
        artist=tags.artist,
        duration_ms=tags.duration_ms,
    )
