"""Runtime settings using Pydantic Settings for env var support.

Only process-level knobs live here. Size ceilings and key rules are fixed
data in ``chatsweep.rules`` and are deliberately not configurable.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CASCADE_DIR = Path.home() / ".codeium" / "windsurf" / "cascade"


class ChatsweepSettings(BaseSettings):
    """Engine settings, read from ``CHATSWEEP_*`` environment variables."""

    cascade_dir: Path = Field(default=DEFAULT_CASCADE_DIR)
    verbose: bool = False
    json_logs: bool = False

    @field_validator("cascade_dir", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v

    model_config = SettingsConfigDict(env_prefix="CHATSWEEP_")


def get_settings() -> ChatsweepSettings:
    """Build settings from the current environment.

    Not cached: every scan sees the environment as it is at call time.
    """
    return ChatsweepSettings()


__all__ = ["ChatsweepSettings", "DEFAULT_CASCADE_DIR", "get_settings"]
