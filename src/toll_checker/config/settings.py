from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from toll_checker.config.paths import env_file_path

_UNSET = object()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(env_file_path()),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_env: str = "dev"
    log_level: str = "INFO"

    browser_headless: bool = Field(default=True, alias="BROWSER_HEADLESS")
    browser_executable_path: str | None = Field(default=None, alias="BROWSER_EXECUTABLE_PATH")
    browser_channel: str | None = Field(default=None, alias="BROWSER_CHANNEL")
    default_timeout_ms: int = Field(default=30_000, alias="DEFAULT_TIMEOUT_MS")

    screenshot_mode: Literal["auto", "inline", "file"] = Field(default="auto", alias="SCREENSHOT_MODE")
    screenshot_dir: str = Field(default="public", alias="SCREENSHOT_DIR")
    screenshot_url_prefix: str = Field(default="", alias="SCREENSHOT_URL_PREFIX")

    providers_file: str | None = Field(default=None, alias="PROVIDERS_FILE")
    max_workers: int = Field(default=4, alias="MAX_WORKERS")


def is_production(value: object = _UNSET) -> bool:
    """
    If `value` is provided, use it as the app env. Otherwise fall back to settings.app_env.
    This keeps the check unit-testable without depending on a local .env file.
    """
    env = settings.app_env if value is _UNSET else value
    if not isinstance(env, str):
        return False
    return env.strip().lower() in {"prod", "production"}


def require_positive_workers(value: object = _UNSET) -> int:
    workers = settings.max_workers if value is _UNSET else value

    if not isinstance(workers, int) or workers < 1:
        raise RuntimeError(
            "MAX_WORKERS must be a positive integer. Fix it in .env or the environment."
        )

    return workers


settings = Settings()
