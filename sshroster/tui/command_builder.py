"""
Helpers for preparing the commands the TUI hands the terminal to.

Shell sessions run ``ssh`` with keep-alive options and host-key checking
configured from :class:`sshroster.config.Config`.  A stored password is fed to
``sshpass -e`` through the ``SSHPASS`` environment variable so it never shows
up in the process list.  SSHFS mounts go below a per-label directory.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

WhichFunc = Callable[[str], Optional[str]]


@dataclass
class LaunchCommand:
    argv: List[str]
    env: Optional[Dict[str, str]] = field(default=None, repr=False)

    @property
    def program(self) -> str:
        return self.argv[0] if self.argv else ""


def remove_whitespace(value: str) -> str:
    return "".join(value.split())


def _target(connection) -> str:
    host = (getattr(connection, "host", "") or "").strip()
    if not host:
        raise ValueError("Connection is missing a target host")
    user = (getattr(connection, "user", "") or "").strip()
    return f"{user}@{host}" if user else host


def _port(connection) -> str:
    return str(getattr(connection, "port", "") or "22").strip() or "22"


def build_ssh_options(ssh_config: Optional[Mapping[str, Any]] = None) -> List[str]:
    cfg = dict(ssh_config or {})
    interval = cfg.get("keepalive_interval", 15)
    count = cfg.get("keepalive_count_max", 3)
    strict = cfg.get("strict_host_key_checking", "no") or "no"
    return [
        "-o", f"ServerAliveInterval={interval}",
        "-o", f"ServerAliveCountMax={count}",
        "-o", f"StrictHostKeyChecking={strict}",
    ]


def build_ssh_command(
    connection,
    ssh_config: Optional[Mapping[str, Any]] = None,
    *,
    which: WhichFunc = shutil.which,
    base_env: Optional[Mapping[str, str]] = None,
) -> LaunchCommand:
    """
    Return the command launching an interactive shell for *connection*.

    Args:
        connection: a :class:`sshroster.connection_store.RuntimeConnectionItem`
            or anything exposing ``host``, ``port``, ``user`` and ``password``.
        ssh_config: the ``ssh`` section of the configuration.
        which: executable lookup, replaced in tests.
        base_env: environment the password variable is added to (defaults to
            ``os.environ``).
    """

    cmd: List[str] = ["ssh"]
    cmd.extend(build_ssh_options(ssh_config))
    cmd.extend(["-p", _port(connection)])
    cmd.append(_target(connection))

    password = getattr(connection, "password", "") or ""
    if not password:
        return LaunchCommand(cmd)

    sshpass = which("sshpass")
    if not sshpass:
        return LaunchCommand(cmd)

    env = dict(os.environ if base_env is None else base_env)
    env["SSHPASS"] = password
    return LaunchCommand([sshpass, "-e", *cmd], env=env)


def sshpass_missing(connection, which: WhichFunc = shutil.which) -> bool:
    return bool(getattr(connection, "password", "")) and not which("sshpass")


def _mount_name(value: str) -> str:
    name = remove_whitespace(value or "").replace("/", "_").replace(os.sep, "_")
    if name in ("", ".", ".."):
        return ""
    return name


def mount_point_for(connection, mount_root: str) -> str:
    """Directory below *mount_root* named after the label, or the host when the label is unusable."""
    name = _mount_name(getattr(connection, "label", "")) or _mount_name(getattr(connection, "host", ""))
    if not name:
        raise ValueError("Connection has no usable name for a mount point")
    return os.path.join(mount_root, name)


def build_sshfs_command(connection, mount_point: str) -> LaunchCommand:
    return LaunchCommand(["sshfs", f"{_target(connection)}:/", mount_point, "-p", _port(connection)])


__all__ = [
    "LaunchCommand",
    "build_ssh_command",
    "build_ssh_options",
    "build_sshfs_command",
    "mount_point_for",
    "remove_whitespace",
    "sshpass_missing",
]
