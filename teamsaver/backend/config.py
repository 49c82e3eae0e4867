"""Configuration helpers for the team saver runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class TeamSaverSettings:
    data_dir: Path
    store_name: str
    database_url: str | None
    wipe_teams_on_map_wipe: bool
    log_file: Path
    max_team_size: int


def _read_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() not in _FALSE_VALUES


def load_settings() -> TeamSaverSettings:
    data_dir = Path(os.getenv("TEAMSAVER_DATA_DIR", "data"))
    store_name = os.getenv("TEAMSAVER_STORE_NAME", "TeamSaver")
    log_file_raw = os.getenv("TEAMSAVER_LOG_FILE")
    return TeamSaverSettings(
        data_dir=data_dir,
        store_name=store_name,
        database_url=os.getenv("TEAMSAVER_DATABASE_URL"),
        wipe_teams_on_map_wipe=_read_flag("TEAMSAVER_WIPE_ON_MAP_WIPE", True),
        log_file=Path(log_file_raw) if log_file_raw else data_dir / f"{store_name}.log",
        max_team_size=int(os.getenv("TEAMSAVER_MAX_TEAM_SIZE", "8")),
    )
