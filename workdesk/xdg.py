"""Where workdesk keeps its config file and its workstream/trash records."""

import os
from pathlib import Path


def get_xdg_config_path(filename: str, legacy_dir: bool = True) -> Path:
    """Locate a workdesk config file.

    An existing file wins, checked in this order: ``~/.workdesk/``,
    ``$XDG_CONFIG_HOME/workdesk/``, ``~/.config/workdesk/``. With none on
    disk, the path a new file should be written to is returned
    (``$XDG_CONFIG_HOME`` when set).

    Args:
        filename: Config file name, e.g. "config.json"
        legacy_dir: Also consider ``~/.workdesk``
    """
    candidates = []
    if legacy_dir:
        candidates.append(Path.home() / ".workdesk" / filename)

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    preferred = Path.home() / ".config" / "workdesk" / filename
    if xdg_config:
        preferred = Path(xdg_config) / "workdesk" / filename
        candidates.append(preferred)
    candidates.append(Path.home() / ".config" / "workdesk" / filename)

    for candidate in candidates:
        if candidate.exists():
            return candidate
    return preferred


def get_xdg_data_path(subdir: str = "") -> Path:
    """Root of the record stores, ``$XDG_DATA_HOME/workdesk`` (``~/.local/share/workdesk``).

    Active workstreams live in its ``workstreams/`` subdirectory and trashed
    ones in ``trash/``, one ``<id>.json`` file each.
    """
    xdg_data = os.environ.get("XDG_DATA_HOME", str(Path.home() / ".local" / "share"))
    data_path = Path(xdg_data) / "workdesk"
    if subdir:
        data_path = data_path / subdir
    return data_path
