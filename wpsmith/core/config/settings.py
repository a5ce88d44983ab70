"""
Runtime settings — external tool locations and tunables.

Read from ``WPSMITH_*`` environment variables, validated by Pydantic.
There is no settings file: per-project preferences live in the
blueprint (``blueprint.json``), machine-level ones in the environment.
"""

from __future__ import annotations

import functools
import os
import shutil

from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "WPSMITH_"


def _default_wp_cli() -> str:
    return shutil.which("wp") or "wp"


class Settings(BaseModel):
    """Machine-level configuration for the external tools."""

    php: str = "php"
    wp_cli: str = Field(default_factory=_default_wp_cli)
    php_memory_limit: str = "512M"

    npx: str = "npx"
    playground_package: str = "@wp-playground/cli"

    default_port: int = 9400
    lock_timeout: float = 10.0          # seconds to wait for the checkpoint index lock
    lock_stale_after: float = 300.0     # seconds before a left-over lock is broken

    sqlite_plugin_url: str = (
        "https://downloads.wordpress.org/plugin/"
        "sqlite-database-integration.latest-stable.zip"
    )
    download_timeout: int = 60

    @field_validator("default_port")
    @classmethod
    def _valid_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError(f"port out of range: {value}")
        return value

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        """Build settings from ``WPSMITH_<FIELD>`` variables.

        Unset or empty variables keep the field default.
        """
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for name in cls.model_fields:
            raw = env.get(f"{ENV_PREFIX}{name.upper()}")
            if raw:
                values[name] = raw
        return cls.model_validate(values)


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read from the environment on first use."""
    return Settings.from_env()
