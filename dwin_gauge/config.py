"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from functools import lru_cache

_TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int, low: int, high: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(low, min(high, value))


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    # Warning zones are modelled in presets but not painted unless asked for.
    render_warning_zones: bool = False
    export_workers: int = 1
    zip_level: int = 6

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            log_level=os.environ.get("DWIN_GAUGE_LOG_LEVEL", "INFO").strip().upper() or "INFO",
            render_warning_zones=_env_bool("DWIN_GAUGE_RENDER_WARNINGS", False),
            export_workers=_env_int("DWIN_GAUGE_EXPORT_WORKERS", 1, 1, 32),
            zip_level=_env_int("DWIN_GAUGE_ZIP_LEVEL", 6, 0, 9),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
