"""Exception hierarchy shared by the store, the launcher and the TUI."""

from __future__ import annotations

from typing import Optional


class RosterError(Exception):
    """Base class for sshroster errors."""


class RosterIOError(RosterError):
    """A file could not be read, written or created."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class RosterParseError(RosterError):
    """The connection file is not a valid JSON array of connection objects."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ProcessSpawnError(RosterError):
    """The child process could not be launched."""

    def __init__(self, argv, cause: Optional[BaseException] = None):
        program = argv[0] if argv else "?"
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to launch {program}{detail}")
        self.argv = list(argv or [])
        self.cause = cause


class ProcessAbnormalExit(RosterError):
    """The child exited with a non-zero status or was killed by a signal."""

    def __init__(self, returncode: int, stderr: str = ""):
        if returncode < 0:
            message = f"Interrupted by signal {-returncode}"
        else:
            message = f"Exited with code {returncode}"
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr

    @property
    def interrupted(self) -> bool:
        return self.returncode < 0


__all__ = [
    "RosterError",
    "RosterIOError",
    "RosterParseError",
    "ProcessSpawnError",
    "ProcessAbnormalExit",
]
