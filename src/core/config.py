"""Core configuration.

Why here:
- Centralizes environment variables (pydantic-settings) away from the CLI.
- Lets the Session and the adapters (HTTP/cache/PKI) read config consistently.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_NAME = "dualrun"


def get_user_config_dir() -> Path:
    """Per-user config directory (cross-platform, no extra dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def get_user_cache_dir() -> Path:
    """Per-user download cache directory."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("LOCALAPPDATA", str(Path.home())))
        return base / APP_NAME / "cache"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Caches" / APP_NAME

    xdg = os.environ.get("XDG_CACHE_HOME")
    if xdg:
        return Path(xdg) / APP_NAME
    return Path.home() / ".cache" / APP_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def default_bin_suffix() -> str:
    return ".exe" if sys.platform.startswith("win") else ""


def _parse_env_lines(text: str) -> dict[str, str]:
    """`KEY=value` pairs of a .env file; comments and malformed lines are skipped."""

    values: dict[str, str] = {}
    for line in map(str.strip, text.splitlines()):
        if line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        key = key.strip()
        if sep and key:
            values[key] = value.strip().strip("\"'")
    return values


def write_user_env_vars(values: dict[str, str | None], *, env_path: Path | None = None) -> Path:
    """Merge `values` into the user-level .env (None leaves a key untouched)."""

    target = env_path or get_user_env_file()
    target.parent.mkdir(parents=True, exist_ok=True)

    merged = _parse_env_lines(target.read_text(encoding="utf-8")) if target.exists() else {}
    merged.update((key, value) for key, value in values.items() if value is not None)

    body = "".join(f"{key}={merged[key]}\n" for key in sorted(merged))
    target.write_text(f"# {APP_NAME} user config\n{body}", encoding="utf-8")
    return target


class AppSettings(BaseSettings):
    """Central configuration for a provisioning run.

    The mode flags (`dry_run`, `allow_real_download`) only seed the
    `ExecutionMode` of a Session; the Session never re-reads them.
    """

    model_config = SettingsConfigDict(
        env_prefix="DUALRUN_",
        extra="ignore",
        case_sensitive=False,
        # Project .env first (dev), then the user-level one.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    cache_dir: Path = Field(
        default_factory=get_user_cache_dir,
        description="Directory where downloaded artifacts are cached.",
    )
    workdir: Path = Field(
        default_factory=lambda: get_user_config_dir() / "default",
        description="Working directory of the run; binaries live in <workdir>/bin.",
    )
    bin_suffix: str = Field(
        default_factory=default_bin_suffix,
        description="Filename suffix for executables on this host (e.g. '.exe').",
    )
    quiet_pull: bool = Field(
        default=False,
        description="Suppress download progress output.",
    )

    dry_run: bool = Field(
        default=False,
        description="Simulate every operation and print a transcript instead.",
    )
    allow_real_download: bool = Field(
        default=False,
        description="Perform real downloads even when simulating.",
    )

    http_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Timeout per HTTP request (seconds).",
    )
    user_agent: str = Field(
        default="dualrun/0.1",
        min_length=1,
        description="User-Agent for downloads.",
    )
    log_level: str = Field(
        default="WARNING",
        min_length=1,
        description="Root log level (DEBUG, INFO, WARNING, ...).",
    )
