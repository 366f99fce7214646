"""`:command` line parsing.

`parse_command` turns a line such as `seek-forw 30` or `add ~/music/*` into an
`EngineCommand` for the engine loop. Path expansion for `queue-add` happens on
the engine thread (`expand_track_paths`) since it touches the filesystem.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from voru.errors import CommandError
from voru.events import EngineCommand


@dataclass(frozen=True)
class CommandSpec:
    name: str
    description: str
    args: str | None = None
    alias_of: str | None = None

    @property
    def canonical(self) -> str:
        return self.alias_of or self.name

    @property
    def usage(self) -> str:
        return f"{self.name} {self.args}" if self.args else self.name


_CANONICAL: tuple[CommandSpec, ...] = (
    CommandSpec("quit", 'Say "goodbye" to VORU'),
    CommandSpec("hello", 'Say "hello" to VORU!'),
    CommandSpec("echo", "Say something else", "<MSG>"),
    CommandSpec("play-next", "Play next track in the queue"),
    CommandSpec("play-prev", "Play previous track in the queue"),
    CommandSpec("replay", "Play the first track in the queue"),
    CommandSpec("resume", "Resume playback or replay the current track"),
    CommandSpec("pause", "Pause playback"),
    CommandSpec("stop", "Stop playback and clear currently playing track"),
    CommandSpec("toggle", "Resume/pause playback"),
    CommandSpec("seek", "Seek to <SECONDS>", "<SECONDS>"),
    CommandSpec("seek-forw", "Seek forward by <SECONDS>", "<SECONDS>"),
    CommandSpec("seek-back", "Seek backward by <SECONDS>", "<SECONDS>"),
    CommandSpec("volume", "Set volume to <PERCENTAGE>", "<PERCENTAGE>"),
    CommandSpec("volume-up", "Increase volume by <PERCENTAGE>", "<PERCENTAGE>"),
    CommandSpec("volume-down", "Decrease volume by <PERCENTAGE>", "<PERCENTAGE>"),
    CommandSpec("volume-reset", "Reset volume to 100%"),
    CommandSpec("mute", "Mute audio"),
    CommandSpec("unmute", "Unmute audio"),
    CommandSpec("mute-toggle", "Mute/unmute audio"),
    CommandSpec("loop", "Cycle loop mode (none, queue, shuffled queue)"),
    CommandSpec("queue-add", "Add <TRACKS> to the queue", "<TRACKS>"),
    CommandSpec("queue-clear", "Clear the queue"),
    CommandSpec("queue-shuffle", "Randomize order of the queue"),
    CommandSpec(
        "playlist-play", "Play playlist <N>, from its track <T> if given", "<N> [<T>]"
    ),
    CommandSpec(
        "playlist-shuffle",
        "Play playlist <N> in random order, starting with track <T> if given",
        "<N> [<T>]",
    ),
    CommandSpec(
        "playlist-add",
        "Add playlist <N>, its track <T> or tracks <T>..<U> to the queue",
        "<N> [<T> [<U>]]",
    ),
    CommandSpec("playlist-set", "Replace the queue with playlist <N>", "<N>"),
)

_ALIASES = {
    "q": "quit",
    "bye": "quit",
    "next": "play-next",
    "prev": "play-prev",
    "seekf": "seek-forw",
    "seekb": "seek-back",
    "vol": "volume",
    "volup": "volume-up",
    "voldown": "volume-down",
    "volreset": "volume-reset",
    "mutetog": "mute-toggle",
    "add": "queue-add",
    "clear": "queue-clear",
    "shuffle": "queue-shuffle",
    "pplay": "playlist-play",
    "pshuffle": "playlist-shuffle",
    "padd": "playlist-add",
}


def _build_registry() -> dict[str, CommandSpec]:
    registry = {spec.name: spec for spec in _CANONICAL}
    for alias, target in _ALIASES.items():
        base = registry[target]
        registry[alias] = CommandSpec(alias, base.description, base.args, target)
    return registry


COMMANDS: dict[str, CommandSpec] = _build_registry()

# Commands that map straight onto an argument-less engine method.
_SIMPLE = {
    "play-next": "play_next",
    "play-prev": "play_prev",
    "replay": "replay",
    "resume": "resume",
    "pause": "pause",
    "stop": "stop",
    "toggle": "toggle",
    "volume-reset": "volume_reset",
    "mute-toggle": "mute_toggle",
    "loop": "cycle_loop",
    "queue-clear": "queue_clear",
    "queue-shuffle": "queue_shuffle",
}

_SECONDS = {"seek": "seek", "seek-forw": "seek_forward", "seek-back": "seek_backward"}
_PERCENT = {"volume": "set_volume", "volume-up": "volume_up", "volume-down": "volume_down"}


def parse_command(line: str) -> EngineCommand:
    """Parse one command line (a leading `:` is optional)."""
    text = line.strip()
    if text.startswith(":"):
        text = text[1:].lstrip()
    name, _, rest = text.partition(" ")
    rest = rest.strip()
    args = rest.split()
    spec = COMMANDS.get(name)
    if spec is None:
        raise CommandError("No such command")
    command = spec.canonical
    first = args[0] if args else None

    if command in _SIMPLE:
        return EngineCommand(_SIMPLE[command])
    if command in _SECONDS:
        return EngineCommand(_SECONDS[command], (parse_secs(first) * 1000,))
    if command in _PERCENT:
        return EngineCommand(_PERCENT[command], (parse_percent(first),))
    if command == "quit":
        return EngineCommand("quit")
    if command == "hello":
        return EngineCommand("notify", ("hey",))
    if command == "echo":
        return EngineCommand("notify", (rest,))
    if command == "mute":
        return EngineCommand("set_muted", (True,))
    if command == "unmute":
        return EngineCommand("set_muted", (False,))
    if command == "queue-add":
        if not args:
            raise CommandError("Not enough arguments")
        return EngineCommand("queue_add_paths", tuple(args))
    if command.startswith("playlist-"):
        return _parse_playlist_command(command, args)
    raise CommandError("No such command")


def _parse_playlist_command(command: str, args: list[str]) -> EngineCommand:
    if not args:
        raise CommandError("Not enough arguments")
    indexes = tuple(parse_index(arg) for arg in args[:3])
    playlist = indexes[0]
    if command == "playlist-set":
        return EngineCommand("queue_set_playlist", (playlist,))
    if command == "playlist-add":
        if len(indexes) == 1:
            return EngineCommand("queue_add_playlist", (playlist,))
        if len(indexes) == 2:
            return EngineCommand("queue_add_from_playlist", indexes)
        start, last = indexes[1], indexes[2]
        return EngineCommand("queue_add_playlist_slice", (playlist, start, last + 1))
    name = "play_playlist" if command == "playlist-play" else "play_playlist_shuffled"
    return EngineCommand(name, indexes[:2])


def parse_secs(arg: str | None) -> int:
    if arg is None:
        raise CommandError("Not enough arguments")
    if not arg.isdigit():
        raise CommandError(f'Invalid argument type "{arg}"')
    return int(arg)


def parse_index(arg: str | None) -> int:
    """1-based position as typed -> 0-based index."""
    value = parse_secs(arg)
    if value < 1:
        raise CommandError(f'Invalid argument type "{arg}"')
    return value - 1


def parse_percent(arg: str | None) -> float:
    """`"35%"` or `"35"` -> `0.35`."""
    if arg is None:
        raise CommandError("Not enough arguments")
    value = arg.rstrip("%")
    if not value.isdigit():
        raise CommandError(f'Invalid argument type "{value}"')
    return int(value) / 100


def expand_track_paths(args: Iterable[str]) -> list[Path]:
    """Expand `~` and trailing-`*` directory listings into candidate file paths.

    Paths that do not exist raise `CommandError`; directories are skipped.
    """
    paths: list[Path] = []
    for arg in args:
        raw = os.path.expanduser(arg)
        if raw.endswith("*"):
            directory = Path(raw.rstrip("*") or ".")
            try:
                candidates = sorted(directory.iterdir())
            except OSError as exc:
                raise CommandError(f'No such file or directory "{directory}"') from exc
        else:
            candidates = [Path(raw)]
        for path in candidates:
            if not path.exists():
                raise CommandError(f'No such file or directory "{path}"')
            if path.is_file():
                paths.append(path)
    return paths


def formatted_list(*, include_aliases: bool = True) -> list[tuple[bool, str, str]]:
    """`(is_alias, "name <ARGS>", description)` rows sorted by name."""
    rows = []
    for spec in sorted(COMMANDS.values(), key=lambda item: item.name):
        if spec.alias_of and not include_aliases:
            continue
        description = spec.description
        if spec.alias_of:
            description = f"(alias to :{spec.alias_of}) {description}"
        rows.append((spec.alias_of is not None, spec.usage, description))
    return rows
