"""Per-user directories for voru.

Config lives in the platformdirs user config dir unless `VORU_CONFIG_DIR`
points elsewhere; logs go under the user data dir.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from platformdirs import AppDirs

APP_NAME = "voru"
CONFIG_DIR_ENV = "VORU_CONFIG_DIR"
CONFIG_FILENAME = "config.json"


@dataclass(frozen=True)
class UserPaths:
    config_dir: Path
    data_dir: Path

    @property
    def config_file(self) -> Path:
        return self.config_dir / CONFIG_FILENAME

    @property
    def log_dir(self) -> Path:
        return self.data_dir / "logs"

    def ensure(self) -> UserPaths:
        """Create the config and log directories; returns self."""
        for directory in (self.config_dir, self.log_dir):
            directory.mkdir(parents=True, exist_ok=True)
        return self


@lru_cache(maxsize=1)
def user_paths() -> UserPaths:
    dirs = AppDirs(APP_NAME, appauthor=False)
    override = os.environ.get(CONFIG_DIR_ENV, "").strip()
    config_dir = (
        Path(override).expanduser() if override else Path(dirs.user_config_dir)
    )
    return UserPaths(config_dir=config_dir, data_dir=Path(dirs.user_data_dir))


def config_path() -> Path:
    """Default `config.json` location; its directory is created if missing."""
    return user_paths().ensure().config_file


def log_dir() -> Path:
    return user_paths().ensure().log_dir
