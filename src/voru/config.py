"""User configuration loaded from `config.json`.

Loading is tolerant: a missing file means defaults, an unreadable or invalid
file means defaults plus a user-facing notice, and a field of the wrong type
falls back to that field's default.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from voru.errors import format_user_error
from voru.services.tick_scheduler import MIN_TICK_INTERVAL_MS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerConfig:
    playlists: tuple[str, ...] = ()
    seek_step_s: int = 10
    volume_step: float = 0.1
    tick_interval_ms: int = 500
    backend: str = "vlc"
    mpris_enabled: bool = True
    log_level: str = "INFO"

    @property
    def seek_step_ms(self) -> int:
        return self.seek_step_s * 1000


def _coerce_config(data: dict[str, Any]) -> PlayerConfig:
    defaults = PlayerConfig()

    def _int_at_least(value: Any, default: int, minimum: int = 1) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            return default
        return value if value >= minimum else default

    def _fraction(value: Any, default: float) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return default
        normalized = float(value)
        if not math.isfinite(normalized) or normalized <= 0:
            return default
        return normalized

    def _bool_or_default(value: Any, default: bool) -> bool:
        return value if isinstance(value, bool) else default

    def _str_or_default(value: Any, default: str) -> str:
        return value if isinstance(value, str) and value.strip() else default

    raw_playlists = data.get("playlists")
    playlists = (
        tuple(item for item in raw_playlists if isinstance(item, str) and item.strip())
        if isinstance(raw_playlists, list)
        else defaults.playlists
    )
    return PlayerConfig(
        playlists=playlists,
        seek_step_s=_int_at_least(data.get("seek_step_s"), defaults.seek_step_s),
        volume_step=_fraction(data.get("volume_step"), defaults.volume_step),
        tick_interval_ms=_int_at_least(
            data.get("tick_interval_ms"),
            defaults.tick_interval_ms,
            MIN_TICK_INTERVAL_MS,
        ),
        backend=_str_or_default(data.get("backend"), defaults.backend),
        mpris_enabled=_bool_or_default(
            data.get("mpris_enabled"), defaults.mpris_enabled
        ),
        log_level=_str_or_default(data.get("log_level"), defaults.log_level),
    )


def load_config_with_notice(path: Path) -> tuple[PlayerConfig, str | None]:
    """Load the config and return an optional user-facing notice."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("No config at %s; using defaults.", path)
        return PlayerConfig(), None
    except OSError as exc:
        logger.warning("Failed to read config %s: %s; using defaults.", path, exc)
        return PlayerConfig(), format_user_error(
            what_failed="Config was not loaded; using defaults.",
            likely_cause="The config file is unreadable due to permissions or IO issues.",
            next_step=f"Verify access to '{path}' and restart.",
        )

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Config at %s is invalid JSON (%s); using defaults.", path, exc)
        return PlayerConfig(), format_user_error(
            what_failed="Config was not loaded; using defaults.",
            likely_cause="The config file is not valid JSON.",
            next_step=f"Repair '{path}' and restart.",
            detail=str(exc),
        )

    if not isinstance(data, dict):
        logger.warning("Config at %s is not a JSON object; using defaults.", path)
        return PlayerConfig(), format_user_error(
            what_failed="Config was not loaded; using defaults.",
            likely_cause="The config file must contain a JSON object.",
            next_step=f"Repair '{path}' and restart.",
        )

    return _coerce_config(data), None


def load_config(path: Path) -> PlayerConfig:
    config, _notice = load_config_with_notice(path)
    return config
