"""Play queue model: ordered entries, the current index, and aggregates."""

from __future__ import annotations

import itertools
import random
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from voru.errors import EmptyQueueError, NoTrackError

from .track_cache import Track

_ENTRY_IDS = itertools.count()


@dataclass(frozen=True, eq=False)
class QueueEntry:
    """A track placed in the queue.

    `playlist_index` records which playlist the entry came from; `None` means
    the track was added on its own. Entries compare by identity, so the same
    track queued twice yields two distinct entries.
    """

    track: Track
    playlist_index: int | None = None
    entry_id: int = field(default_factory=lambda: next(_ENTRY_IDS))

    @property
    def path(self) -> str:
        return self.track.path

    @property
    def title(self) -> str:
        return self.track.display_title

    @property
    def duration_ms(self) -> int:
        return self.track.duration_or_zero_ms

    @property
    def is_standalone(self) -> bool:
        return self.playlist_index is None


class PlayQueue:
    """Entries plus an optional current position.

    Invariant: when `current_index` is set it is in range and `current_entry`
    is the entry at that index. `duration_ms` and `elapsed_ms` are kept in
    step with every mutation.
    """

    def __init__(self, entries: Iterable[QueueEntry] = ()) -> None:
        self._entries: list[QueueEntry] = list(entries)
        self._current_index: int | None = None
        self._current_entry: QueueEntry | None = None
        self.duration_ms = 0
        self.elapsed_ms = 0
        self._update_duration()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[QueueEntry]:
        return iter(self._entries)

    @property
    def entries(self) -> tuple[QueueEntry, ...]:
        return tuple(self._entries)

    @property
    def current_index(self) -> int | None:
        return self._current_index

    @property
    def current_entry(self) -> QueueEntry | None:
        return self._current_entry

    def get(self, index: int) -> QueueEntry:
        if index < 0 or index >= len(self._entries):
            raise NoTrackError()
        return self._entries[index]

    def index_of(self, entry: QueueEntry) -> int | None:
        for index, candidate in enumerate(self._entries):
            if candidate is entry:
                return index
        return None

    def set_current(self, index: int | None) -> None:
        if index is None:
            self._current_index = None
            self._current_entry = None
        else:
            self._current_entry = self.get(index)
            self._current_index = index
        self._update_elapsed()

    def add(self, entry: QueueEntry) -> None:
        self._entries.append(entry)
        self._update_duration()

    def add_many(self, entries: Iterable[QueueEntry]) -> None:
        self._entries.extend(entries)
        self._update_duration()

    def replace(self, entries: Iterable[QueueEntry]) -> None:
        """Swap in new entries; the current position is cleared."""
        self._entries = list(entries)
        self._update_duration()
        self.set_current(None)

    def clear(self) -> None:
        self.replace(())

    def remove(self, index: int) -> QueueEntry:
        """Remove and return the entry at `index`.

        Removing the current entry clears the current position. Removing an
        entry before it shifts the current index down by one.
        """
        if not self._entries:
            raise EmptyQueueError()
        entry = self.get(index)
        del self._entries[index]
        current = self._current_index
        if current is not None:
            if current == index:
                self._current_index = None
                self._current_entry = None
            elif current > index:
                self._current_index = current - 1
        self._update_duration()
        self._update_elapsed()
        return entry

    def move_to(self, from_index: int, to_index: int) -> int:
        """Move an entry, keeping the current entry current. Returns the target."""
        entry = self.get(from_index)
        target = min(max(to_index, 0), len(self._entries) - 1)
        del self._entries[from_index]
        self._entries.insert(target, entry)
        self._relocate_current()
        return target

    def shuffle(self, rng: random.Random | None = None) -> None:
        (rng or random.Random()).shuffle(self._entries)
        self._relocate_current()

    def _relocate_current(self) -> None:
        if self._current_entry is not None:
            self._current_index = self.index_of(self._current_entry)
            if self._current_index is None:
                self._current_entry = None
        self._update_elapsed()

    def _update_duration(self) -> None:
        self.duration_ms = sum(entry.duration_ms for entry in self._entries)

    def _update_elapsed(self) -> None:
        if self._current_index is None:
            self.elapsed_ms = 0
            return
        self.elapsed_ms = sum(
            entry.duration_ms for entry in self._entries[: self._current_index]
        )
