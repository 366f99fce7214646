"""Textual TUI shell for voru.

The app only renders `PlayerViewState` updates and turns key presses and
`:command` lines into engine commands; all player state lives on the engine
thread owned by `PlayerRuntime`.
"""

from __future__ import annotations

import logging

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, Input, OptionList, Static

from .commands import parse_command
from .config import PlayerConfig
from .errors import CommandError
from .events import EngineCommand, NoticeRaised, PlayerUpdated
from .runtime import PlayerRuntime, build_backend, load_playlists_with_notice
from .runtime_config import resolve_backend
from .services.player_engine import LoopMode, PlayerViewState, PlayState
from .services.track_cache import TrackCache
from .utils.time_format import format_duration_ms, format_time_pair_ms

logger = logging.getLogger(__name__)

_STATE_ICONS = {
    PlayState.PLAYING: "▶",
    PlayState.PAUSED: "⏸",
    PlayState.STOPPED: "■",
    PlayState.ENDED: "■",
}
_LOOP_LABELS = {
    LoopMode.NONE: "off",
    LoopMode.REPEAT_QUEUE: "queue",
    LoopMode.REPEAT_SHUFFLED: "shuffled",
}


def format_status_line(state: PlayerViewState) -> Text:
    position, duration = format_time_pair_ms(state.position_ms, state.duration_ms)
    volume = "muted" if state.muted else f"{round(state.volume * 100)}%"
    text = Text()
    text.append(f"{_STATE_ICONS[state.play_state]} ", style="bold #F2C94C")
    text.append(state.current_title or "Nothing playing")
    text.append(f" | {position}/{duration} | ")
    text.append("Vol: ", style="bold #F2C94C")
    text.append(volume)
    text.append(" | ")
    text.append("Loop: ", style="bold #F2C94C")
    text.append(_LOOP_LABELS[state.loop_mode])
    return text


def format_queue_entry(index: int, title: str, current_index: int | None) -> Text:
    if index == current_index:
        return Text(f"▶ {title}", style="bold #F2C94C")
    return Text(f"  {title}")


def format_playlist_entry(
    index: int, name: str, size: int, current_playlist_index: int | None
) -> Text:
    label = f"{name}  {size} track" + ("" if size == 1 else "s")
    if index == current_playlist_index:
        return Text(f"▶ {label}", style="bold #F2C94C")
    return Text(f"  {label}")


def format_queue_description(state: PlayerViewState) -> str:
    """`i / n tracks  elapsed / total`, or `n tracks  total` with nothing current."""
    count = len(state.titles)
    total = format_duration_ms(state.queue_duration_ms)
    if state.current_index is None:
        return f"{count} tracks  {total}"
    elapsed = format_duration_ms(state.elapsed_ms + state.position_ms)
    return f"{state.current_index + 1} / {count} tracks  {elapsed} / {total}"


class VoruApp(App):
    TITLE = "voru"
    CSS = """
    Screen {
        layout: vertical;
    }

    #status-line {
        height: 1;
        padding: 0 1;
    }

    #queue-desc {
        height: 1;
        padding: 0 1;
        color: $text-muted;
    }

    #playlists {
        height: 8;
        border: solid $primary;
    }

    #queue {
        height: 1fr;
        border: solid $primary;
    }

    #cmdline {
        display: none;
    }

    #cmdline.-active {
        display: block;
    }
    """

    BINDINGS = [
        Binding("space", "engine('toggle')", "Play/Pause"),
        Binding("L,shift+right", "engine('play_next')", "Next"),
        Binding("H,shift+left", "engine('play_prev')", "Prev"),
        Binding("y", "engine('replay')", "Replay", show=False),
        Binding("right,l", "seek(1)", "Seek +", show=False),
        Binding("left,h", "seek(-1)", "Seek -", show=False),
        Binding("plus", "volume(1)", "Vol +"),
        Binding("minus", "volume(-1)", "Vol -"),
        Binding("equals_sign", "engine('volume_reset')", "Vol reset", show=False),
        Binding("m", "engine('mute_toggle')", "Mute"),
        Binding("r", "engine('cycle_loop')", "Loop"),
        Binding("R", "engine('cycle_loop_back')", "Loop back", show=False),
        Binding("S", "engine('queue_shuffle')", "Shuffle"),
        Binding("P", "playlist_shuffled", "Play shuffled", show=False),
        Binding("a", "playlist_add", "Add playlist", show=False),
        Binding("D", "queue_remove", "Remove", show=False),
        Binding("K,shift+up", "queue_move(-1)", "Move up", show=False),
        Binding("J,shift+down", "queue_move(1)", "Move down", show=False),
        Binding("f", "focus_current", "Current", show=False),
        Binding("colon,semicolon", "open_cmdline", "Command"),
        Binding("escape", "close_cmdline", "Close", show=False, priority=True),
        Binding("Q", "quit", "Quit"),
    ]

    def __init__(
        self,
        *,
        config: PlayerConfig | None = None,
        backend_name: str | None = None,
        mpris_enabled: bool | None = None,
        startup_command: str | None = None,
        echo: str | None = None,
        config_notice: str | None = None,
        auto_init: bool = True,
    ) -> None:
        super().__init__()
        self.config = config or PlayerConfig()
        self._backend_name = resolve_backend(backend_name, self.config.backend)
        self._mpris_enabled = mpris_enabled
        self._startup_command = startup_command
        self._echo = echo
        self._config_notice = config_notice
        self._auto_init = auto_init
        self.runtime: PlayerRuntime | None = None
        self.view_state = PlayerViewState()
        self.last_notice: str | None = None
        self._rendered_queue: tuple[tuple[str, ...], int | None] | None = None
        self._rendered_playlists: tuple[object, ...] | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static(format_status_line(self.view_state), id="status-line")
        yield OptionList(id="playlists")
        yield Static(format_queue_description(self.view_state), id="queue-desc")
        yield OptionList(id="queue")
        yield Input(placeholder=":command", id="cmdline")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#playlists", OptionList).border_title = "Playlists"
        queue = self.query_one("#queue", OptionList)
        queue.border_title = "Queue"
        queue.focus()
        if self._config_notice:
            self._show_notice(self._config_notice, "warning")
        if self._auto_init:
            self.start_runtime()

    def on_unmount(self) -> None:
        if self.runtime is not None:
            self.runtime.shutdown()
            self.runtime = None

    def start_runtime(self) -> None:
        cache = TrackCache()
        playlists, playlist_notice = load_playlists_with_notice(
            self.config.playlists, cache
        )
        backend, backend_notice = build_backend(self._backend_name)
        for notice in (playlist_notice, backend_notice):
            if notice:
                self._show_notice(notice, "error")
        self.runtime = PlayerRuntime(
            self.config,
            backend,
            playlists=playlists,
            cache=cache,
            on_update=lambda state: self.post_message(PlayerUpdated(state)),
            on_notice=lambda text, severity: self.post_message(
                NoticeRaised(text, severity=severity)
            ),
            on_quit=lambda: self.call_later(self.exit),
            mpris_enabled=self._mpris_enabled,
        )
        self.runtime.start()
        if self._echo:
            self.runtime.submit(EngineCommand("notify", (self._echo,)))
        if self._startup_command:
            self.run_command_line(self._startup_command)

    def run_command_line(self, line: str) -> None:
        if not line.strip():
            return
        try:
            command = parse_command(line)
        except CommandError as exc:
            self._show_notice(str(exc), "error")
            return
        self._submit(command.name, *command.args)

    # Engine output

    def on_player_updated(self, message: PlayerUpdated) -> None:
        self.view_state = message.state
        self.query_one("#status-line", Static).update(format_status_line(message.state))
        self.query_one("#queue-desc", Static).update(
            format_queue_description(message.state)
        )
        self._render_queue(message.state)
        self._render_playlists(message.state)

    def on_notice_raised(self, message: NoticeRaised) -> None:
        self._show_notice(message.text, message.severity)

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        if event.option_list.id == "playlists":
            self._submit("play_playlist", event.option_index)
        else:
            self._submit("play", event.option_index)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        line = event.value
        event.input.value = ""
        self.action_close_cmdline()
        self.run_command_line(line)

    # Actions

    def action_engine(self, name: str) -> None:
        self._submit(name)

    def action_seek(self, direction: int) -> None:
        name = "seek_forward" if direction > 0 else "seek_backward"
        self._submit(name, self.config.seek_step_ms)

    def action_volume(self, direction: int) -> None:
        name = "volume_up" if direction > 0 else "volume_down"
        self._submit(name, self.config.volume_step)

    def action_playlist_shuffled(self) -> None:
        """Shuffle-play the highlighted playlist, `*` when nothing is highlighted."""
        self._submit("play_playlist_shuffled", self._highlighted_playlist() or 0)

    def action_playlist_add(self) -> None:
        index = self._highlighted_playlist()
        if index is not None:
            self._submit("queue_add_playlist", index)

    def action_queue_remove(self) -> None:
        index = self._highlighted()
        if index is not None:
            self._submit("queue_remove", index)

    def action_queue_move(self, offset: int) -> None:
        index = self._highlighted()
        if index is None:
            return
        target = max(0, index + offset)
        self._submit("queue_move_to", index, target)
        queue = self.query_one("#queue", OptionList)
        queue.highlighted = min(target, max(0, queue.option_count - 1))

    def action_focus_current(self) -> None:
        if self.view_state.current_index is not None:
            self.query_one("#queue", OptionList).highlighted = (
                self.view_state.current_index
            )

    def action_open_cmdline(self) -> None:
        cmdline = self.query_one("#cmdline", Input)
        cmdline.add_class("-active")
        cmdline.focus()

    def action_close_cmdline(self) -> None:
        cmdline = self.query_one("#cmdline", Input)
        cmdline.remove_class("-active")
        self.query_one("#queue", OptionList).focus()

    def _submit(self, name: str, *args: object) -> None:
        if self.runtime is None:
            logger.debug("Dropped %s: runtime not started", name)
            return
        self.runtime.submit(EngineCommand(name, tuple(args)))

    def _highlighted(self) -> int | None:
        return self.query_one("#queue", OptionList).highlighted

    def _highlighted_playlist(self) -> int | None:
        return self.query_one("#playlists", OptionList).highlighted

    def _render_queue(self, state: PlayerViewState) -> None:
        key = (state.titles, state.current_index)
        if key == self._rendered_queue:
            return
        self._rendered_queue = key
        queue = self.query_one("#queue", OptionList)
        highlighted = queue.highlighted
        queue.clear_options()
        queue.add_options(
            [
                format_queue_entry(index, title, state.current_index)
                for index, title in enumerate(state.titles)
            ]
        )
        if state.titles:
            target = highlighted if highlighted is not None else 0
            queue.highlighted = min(target, len(state.titles) - 1)

    def _render_playlists(self, state: PlayerViewState) -> None:
        key = (
            state.playlist_names,
            state.playlist_sizes,
            state.current_playlist_index,
        )
        if key == self._rendered_playlists:
            return
        self._rendered_playlists = key
        playlists = self.query_one("#playlists", OptionList)
        highlighted = playlists.highlighted
        playlists.clear_options()
        playlists.add_options(
            [
                format_playlist_entry(index, name, size, state.current_playlist_index)
                for index, (name, size) in enumerate(
                    zip(state.playlist_names, state.playlist_sizes)
                )
            ]
        )
        if state.playlist_names:
            target = highlighted if highlighted is not None else 0
            playlists.highlighted = min(target, len(state.playlist_names) - 1)

    def _show_notice(self, text: str, severity: str) -> None:
        self.last_notice = text
        self.notify(text, severity=severity)  # type: ignore[arg-type]
