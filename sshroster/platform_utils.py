"""Platform-related utility functions."""

import logging
import os
import tempfile
from pathlib import Path

APP_NAME = "sshroster"

logger = logging.getLogger(__name__)


def _normalize_path(path: str) -> str:
    """Expand user references and return an absolute path."""
    return os.path.abspath(os.path.expanduser(path))


def _home_dir() -> str:
    expanded = os.path.expanduser("~")
    if expanded and expanded != "~":
        return expanded
    try:
        return str(Path.home())
    except RuntimeError:
        logger.warning(
            "Unable to determine the user's home directory; "
            "falling back to the current working directory."
        )
        return os.getcwd()


def _xdg_dir(env_name: str, fallback: str) -> str:
    value = os.environ.get(env_name, "").strip()
    if value:
        return _normalize_path(value)
    return _normalize_path(os.path.join(_home_dir(), fallback))


def get_config_dir() -> str:
    """Return the per-user configuration directory for sshroster."""
    return os.path.join(_xdg_dir("XDG_CONFIG_HOME", ".config"), APP_NAME)


def get_data_dir() -> str:
    """Return the per-user data directory for sshroster.

    The connection file and the log file live here unless the configuration
    points elsewhere.
    """
    return os.path.join(_xdg_dir("XDG_DATA_HOME", os.path.join(".local", "share")), APP_NAME)


def get_default_data_file() -> str:
    return os.path.join(get_data_dir(), "connections.json")


def get_default_mount_root() -> str:
    """Return the directory under which SSHFS mount points are created."""
    return tempfile.gettempdir()
