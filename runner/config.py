from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError

# Load environment variables from .env (if present)
load_dotenv()

APP_NAME = "runner"
SOCKET_NAME = "request.sock"


def runtime_dir() -> Path:
    """Process-private temporary directory (created with mode 0700)."""
    path = Path(tempfile.gettempdir()) / APP_NAME
    path.mkdir(mode=0o700, parents=True, exist_ok=True)
    return path


def config_dir() -> Path:
    base = os.getenv("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / APP_NAME


def application_dirs() -> list[Path]:
    """Descriptor search roots in priority order (XDG base directory rules)."""
    data_home = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    data_dirs = os.getenv("XDG_DATA_DIRS") or "/usr/local/share:/usr/share"

    roots = [Path(data_home) / "applications"]
    roots += [Path(d) / "applications" for d in data_dirs.split(":") if d.strip()]

    seen = set()
    out = []
    for root in roots:
        if root in seen:
            continue
        seen.add(root)
        out.append(root)
    return out


class ApplicationsSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Mark descriptors created in the last few minutes as preferred
    prioritize_new: bool = Field(False, alias="prioritizeNew")

    # Surface [Desktop Action ...] groups as their own records
    actions: bool = True

    # Decorate an action's sub label with the generic name of its application
    show_generic: bool = Field(True, alias="showGeneric")


class Settings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Providers registered at startup
    providers: list[str] = Field(default_factory=lambda: ["applications", "runner"])

    # Preferred terminal emulator for activations that need one
    terminal: str = os.getenv("RUNNER_TERMINAL", "")

    # Seconds to wait for every provider of a query (None waits forever)
    provider_timeout: Optional[float] = 2.0

    log_level: str = os.getenv("RUNNER_LOG_LEVEL", "INFO")

    socket_path: str = os.getenv("RUNNER_SOCKET", "")

    # Desktop identifier used by OnlyShowIn / NotShowIn
    desktop: str = os.getenv("XDG_CURRENT_DESKTOP", "")

    applications: ApplicationsSettings = Field(default_factory=ApplicationsSettings)

    def resolved_socket_path(self) -> Path:
        if self.socket_path:
            return Path(self.socket_path)
        return runtime_dir() / SOCKET_NAME


def load_settings(config_file: Path | None = None) -> Settings:
    """Read config.yml and merge it over the defaults.

    A missing file is fine; a broken one is fatal.
    """
    if config_file is None:
        env_path = os.getenv("RUNNER_CONFIG", "")
        config_file = Path(env_path) if env_path else config_dir() / "config.yml"

    if not config_file.exists():
        return Settings()

    try:
        data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot read {config_file}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{config_file}: top level must be a mapping")

    # Environment wins over the file
    overrides = {
        "terminal": os.getenv("RUNNER_TERMINAL"),
        "log_level": os.getenv("RUNNER_LOG_LEVEL"),
        "socket_path": os.getenv("RUNNER_SOCKET"),
    }
    for key, value in overrides.items():
        if value:
            data[key] = value

    try:
        return Settings(**data)
    except ValidationError as e:
        raise ConfigError(f"{config_file}: {e}") from e
