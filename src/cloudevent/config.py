from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

import dotenv
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "CLOUDEVENT_"

_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}


class Settings(BaseModel):
    """Runtime settings for the library, read from the environment.

    Values come from ``CLOUDEVENT_*`` variables; a ``.env`` file in the working
    directory is loaded first so local overrides do not need exporting.
    """

    log_level: str = Field("INFO", description="Level for loggers created by get_logger")
    log_dir: Optional[str] = Field(None, description="Directory for per-module log files, disabled when unset")
    log_propagate: bool = Field(False, description="Pass records on to the root logger")

    @field_validator("log_level", mode="before")
    def _normalize_level(cls, v):
        if v is None or v == "":
            return "INFO"
        level = str(v).strip().upper()
        if level not in _LEVELS:
            raise ValueError(f"unknown log level: {v!r}")
        return level

    @field_validator("log_dir", mode="before")
    def _empty_dir_is_none(cls, v):
        if v is None or str(v).strip() == "":
            return None
        return str(v)


def _env(name: str) -> Optional[str]:
    return os.getenv(ENV_PREFIX + name)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    dotenv.load_dotenv(".env")
    values = {}
    level = _env("LOG_LEVEL")
    if level is not None:
        values["log_level"] = level
    log_dir = _env("LOG_DIR")
    if log_dir is not None:
        values["log_dir"] = log_dir
    propagate = _env("LOG_PROPAGATE")
    if propagate is not None:
        values["log_propagate"] = propagate.strip().lower() in ("1", "true", "yes", "on")
    return Settings(**values)


def reset_settings() -> None:
    """Drop the cached settings (tests change the environment between calls)."""
    get_settings.cache_clear()
