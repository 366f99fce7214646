"""Playlist files: one track path per line."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from voru.errors import PlaylistLoadError, TrackLoadError

from .track_cache import Track, TrackCache

logger = logging.getLogger(__name__)

_PLAYLIST_IDS = itertools.count()

ALL_TRACKS_NAME = "*"


@dataclass(frozen=True)
class Playlist:
    name: str
    tracks: tuple[Track, ...] = ()
    playlist_id: int = field(default_factory=lambda: next(_PLAYLIST_IDS))

    @property
    def duration_ms(self) -> int:
        return sum(track.duration_or_zero_ms for track in self.tracks)

    def __len__(self) -> int:
        return len(self.tracks)


def all_tracks_playlist(playlists: Iterable[Playlist]) -> Playlist:
    """The synthetic `*` playlist: every track of every playlist, in order."""
    tracks: list[Track] = []
    for playlist in playlists:
        tracks.extend(playlist.tracks)
    return Playlist(name=ALL_TRACKS_NAME, tracks=tuple(tracks))


def expand_path(raw: str) -> Path:
    return Path(raw).expanduser()


def load_playlist_file(path: Path, cache: TrackCache) -> Playlist:
    """Load one playlist file.

    Blank lines and `#` comments are skipped. Relative entries are resolved
    against the playlist's directory and `~` is expanded. Any track that fails
    to load fails the whole playlist.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise PlaylistLoadError(str(path), str(exc)) from exc
    tracks: list[Track] = []
    for line in content.splitlines():
        entry = line.strip()
        if not entry or entry.startswith("#"):
            continue
        track_path = expand_path(entry)
        if not track_path.is_absolute():
            track_path = path.parent / track_path
        try:
            tracks.append(cache.get_or_create(track_path))
        except TrackLoadError as exc:
            raise PlaylistLoadError(str(path), f"Unable to load a track: {exc}") from exc
    logger.debug("Loaded playlist %s with %d tracks", path, len(tracks))
    return Playlist(name=path.name or "<no name>", tracks=tuple(tracks))


def load_playlists(paths: Sequence[str | Path], cache: TrackCache) -> list[Playlist]:
    """Load configured playlist paths; a directory contributes every file in it."""
    playlists: list[Playlist] = []
    for raw in paths:
        path = expand_path(str(raw))
        if not path.exists():
            raise PlaylistLoadError(str(path), "no such file or directory")
        if path.is_dir():
            try:
                children = sorted(path.iterdir())
            except OSError as exc:
                raise PlaylistLoadError(str(path), str(exc)) from exc
            for child in children:
                if child.is_file():
                    playlists.append(load_playlist_file(child, cache))
        elif path.is_file():
            playlists.append(load_playlist_file(path, cache))
        else:
            raise PlaylistLoadError(str(path), "wrong file type")
    return playlists
