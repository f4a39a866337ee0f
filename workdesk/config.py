"""Workdesk configuration management."""

import json
import logging
from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .xdg import get_xdg_config_path, get_xdg_data_path

logger = logging.getLogger(__name__)

DEFAULT_STANDARD_MODEL = "gemini-3-pro-preview"
DEFAULT_EXTERNAL_COMMS_MODEL = "gemini-3-pro-preview"


class Config(BaseModel):
    """Workdesk configuration."""

    model_config = ConfigDict(
        extra="allow",
        str_strip_whitespace=True,
    )

    data_dir: Optional[Path] = None
    trash_retention_days: int = Field(default=30, ge=1)
    max_notifications: int = Field(default=50, ge=1)
    max_conversation_messages: int = Field(default=50, ge=1)
    poller_enabled: bool = True
    poll_interval_seconds: float = Field(default=30.0, gt=0)
    standard_model: str = DEFAULT_STANDARD_MODEL
    external_comms_model: str = DEFAULT_EXTERNAL_COMMS_MODEL

    @property
    def workstreams_dir(self) -> Path:
        """Directory holding one JSON file per active workstream."""
        return self._data_root() / "workstreams"

    @property
    def trash_dir(self) -> Path:
        """Directory holding one JSON file per trashed workstream."""
        return self._data_root() / "trash"

    def _data_root(self) -> Path:
        if self.data_dir is not None:
            return self.data_dir
        return get_xdg_data_path()


def get_config_path() -> Path:
    return get_xdg_config_path("config.json")


def _read_config(path: Path) -> Config:
    """Parse a config file strictly.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the file is not valid JSON or fails validation
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return Config.model_validate(data)


def load_config(path: Optional[Path] = None) -> Config:
    """Load Workdesk configuration from JSON file.

    Args:
        path: Path to config.json file. If None, uses default path

    Returns:
        Config object with loaded settings. Returns default config if the file
        doesn't exist or can't be parsed.
    """
    if path is None:
        path = get_config_path()

    if not path.exists():
        return Config()

    try:
        return _read_config(path)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return Config()
    except (OSError, ValidationError) as e:
        logger.warning("Failed to load config from %s: %s", path, e)
        return Config()


def save_config(config: Config, path: Optional[Path] = None) -> None:
    """Save Workdesk configuration to JSON file.

    Args:
        config: Config object to save
        path: Path to config.json file. If None, uses default path

    Raises:
        IOError: If file cannot be written
    """
    if path is None:
        path = get_config_path()

    path.parent.mkdir(parents=True, exist_ok=True)

    # Exclude None values for cleaner output
    config_data = config.model_dump(exclude_none=True, mode="json")

    with open(path, "w", encoding="utf-8") as f:
        json.dump(config_data, f, indent=2)


def update_config(mutate: Callable[[Config], None], path: Optional[Path] = None) -> Config:
    """Apply a change to the stored configuration and save it.

    Unlike load_config, an existing file that fails to parse is never
    replaced, so a hand-edited config with a typo is not lost.

    Args:
        mutate: Callable that modifies the Config in place
        path: Path to config.json file. If None, uses default path

    Returns:
        The saved Config

    Raises:
        ValueError: If the existing file is malformed
    """
    if path is None:
        path = get_config_path()

    if path.exists():
        try:
            config = _read_config(path)
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
            raise ValueError(f"Refusing to overwrite malformed config at {path}: {e}") from e
    else:
        config = Config()

    mutate(config)
    save_config(config, path)
    return config


def set_trash_retention_days(days: int, path: Optional[Path] = None) -> int:
    """Persist the trash retention window.

    Args:
        days: Number of days trashed workstreams are kept (clamped to at least 1)
        path: Path to config.json file. If None, uses default path

    Returns:
        The retention value actually stored

    Raises:
        ValueError: If the existing config file is malformed
    """
    config = update_config(lambda cfg: setattr(cfg, "trash_retention_days", max(1, days)), path)
    return config.trash_retention_days


def set_poll_interval(seconds: float, path: Optional[Path] = None) -> None:
    """Persist the background poll interval.

    Args:
        seconds: Interval between poll cycles
        path: Path to config.json file. If None, uses default path

    Raises:
        ValueError: If seconds is not positive or the existing config file is malformed
    """
    if seconds <= 0:
        raise ValueError("Poll interval must be positive")
    update_config(lambda cfg: setattr(cfg, "poll_interval_seconds", seconds), path)
