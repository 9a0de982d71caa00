# Settings and config-directory resolution.
# Created: 2026-10-18
#
# Settings are read from SLACK_STATUS_* environment variables (and a .env
# file). get_settings() is resolved once by the CLI and passed down
# explicitly; nothing else reads the environment.

from __future__ import annotations

import logging
import os
import platform
import shutil
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from slackstatus.errors import ConfigIOError

logger = logging.getLogger(__name__)

APP_NAME = "slack-status-cli"

# Filenames already checked for legacy migration in this process.
_migration_attempted: set[str] = set()


class Settings(BaseSettings):
    """Runtime settings for slack-status.

    Every field has a default so ``Settings()`` works without any environment.
    The OAuth client id/secret also honour the bare ``CLIENT_ID`` and
    ``CLIENT_SECRET`` variables older releases read.
    """

    model_config = SettingsConfigDict(
        env_prefix="SLACK_STATUS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    client_id: str = Field(
        default="",
        validation_alias=AliasChoices("SLACK_STATUS_CLIENT_ID", "CLIENT_ID"),
    )
    client_secret: str = Field(
        default="",
        validation_alias=AliasChoices("SLACK_STATUS_CLIENT_SECRET", "CLIENT_SECRET"),
    )

    # Loopback callback the Slack app redirects to
    listen_host: str = "localhost"
    listen_port: int = 8888
    listen_path: str = "/auth"
    # Seconds to wait for the browser redirect; 0 waits forever
    callback_timeout: float = 300.0

    # Overrides the platform config directory entirely
    config_dir: Path | None = None

    api_base: str = "https://slack.com/api/"
    http_timeout: float = 15.0


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()


def _user_config_root() -> Path:
    """Per-user configuration root for the current platform."""
    system = platform.system()
    if system == "Windows":
        appdata = os.environ.get("APPDATA")
        if not appdata:
            raise ConfigIOError("%APPDATA% is not set")
        return Path(appdata)
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".config"


def _legacy_config_dir() -> Path:
    return Path.home() / ".config" / APP_NAME


def get_config_dir(settings: Settings | None = None) -> Path:
    """Get/create the slack-status config directory."""
    if settings is not None and settings.config_dir is not None:
        d = Path(settings.config_dir).expanduser()
    else:
        d = _user_config_root() / APP_NAME
    try:
        d.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigIOError(f"cannot create config directory {d}: {e}") from e
    return d


def migrate_legacy_file(filename: str, target: Path, legacy: Path | None = None) -> bool:
    """Move ``filename`` from the legacy config dir to ``target`` if needed.

    Checked at most once per filename per process. Returns True when a file
    was moved. A source that disappears between the check and the move is
    not an error.
    """
    if filename in _migration_attempted:
        return False
    _migration_attempted.add(filename)

    if target.exists():
        return False

    legacy = legacy if legacy is not None else _legacy_config_dir() / filename
    if legacy == target or not legacy.exists():
        return False

    logger.info("Migrating config from %s to %s", legacy, target)
    try:
        shutil.move(legacy, target)
    except FileNotFoundError:
        logger.debug("Legacy config %s vanished before migration", legacy)
        return False
    except OSError as e:
        raise ConfigIOError(f"error migrating old config from {legacy}: {e}") from e
    return True


def get_config_file_path(filename: str, settings: Settings | None = None) -> Path:
    """Return the path of ``filename`` inside the config directory.

    Files left in the legacy ``~/.config/slack-status-cli`` location are
    moved over on first access. An explicit ``config_dir`` is used as is and
    never pulls files out of the legacy location.
    """
    path = get_config_dir(settings) / filename
    if settings is None or settings.config_dir is None:
        migrate_legacy_file(filename, path)
    return path
