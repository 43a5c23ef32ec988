"""
Hands the terminal to an interactive child process and takes it back.

``suspend`` is a context manager factory (``App.suspend`` in the Textual app)
that leaves raw mode and the alternate screen on entry and restores them on
exit, exceptions included.  The child runs entirely inside it.
"""

from __future__ import annotations

import contextlib
import logging
import os
import shlex
import subprocess
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ContextManager, List, Mapping, Optional, TextIO

from sshroster.errors import ProcessAbnormalExit, ProcessSpawnError, RosterError, RosterIOError
from sshroster.platform_utils import get_default_mount_root
from sshroster.tui.command_builder import (
    LaunchCommand,
    build_ssh_command,
    build_sshfs_command,
    mount_point_for,
    sshpass_missing,
)

logger = logging.getLogger(__name__)

SuspendFactory = Callable[[], ContextManager[Any]]


class LauncherState(Enum):
    IDLE = "idle"
    TERMINAL_SUSPENDED = "terminal-suspended"
    CHILD_RUNNING = "child-running"
    PROCESS_EXITED = "process-exited"
    TERMINAL_RESTORED = "terminal-restored"


class SessionKind(Enum):
    SHELL = "ssh"
    SSHFS = "sshfs"


@dataclass
class SessionOutcome:
    kind: SessionKind
    label: str
    returncode: Optional[int] = None
    stderr: str = ""
    error: Optional[RosterError] = None
    mount_point: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def interrupted(self) -> bool:
        return isinstance(self.error, ProcessAbnormalExit) and self.error.interrupted

    def report_lines(self) -> List[str]:
        """Lines printed to the terminal once the child is gone."""
        if isinstance(self.error, ProcessSpawnError):
            return [str(self.error)]
        if self.interrupted:
            return ["Interrupted!"]
        if self.error is not None:
            lines = ["Failed."] if self.kind is SessionKind.SSHFS else [f"{self.kind.value}: {self.error}"]
            if self.stderr.strip():
                lines.append(f"stderr: {self.stderr.rstrip()}")
            return lines
        if self.kind is SessionKind.SSHFS:
            return ["Ok."]
        return []

    def summary(self) -> str:
        """One-line version for the status bar."""
        if isinstance(self.error, ProcessSpawnError):
            return str(self.error)
        if self.interrupted:
            return f"{self.kind.value} session to {self.label} interrupted"
        if self.error is not None:
            return f"{self.kind.value} session to {self.label} failed ({self.error})"
        if self.kind is SessionKind.SSHFS:
            return f"Mounted {self.label} on {self.mount_point}"
        return f"SSH session to {self.label} ended"


class SessionLauncher:
    """Runs ``ssh``/``sshfs`` for a runtime item with the terminal suspended."""

    def __init__(
        self,
        suspend: Optional[SuspendFactory] = None,
        *,
        ssh_config: Optional[Mapping[str, Any]] = None,
        mount_root: Optional[str] = None,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        which: Optional[Callable[[str], Optional[str]]] = None,
        output: Optional[TextIO] = None,
        error_output: Optional[TextIO] = None,
    ):
        self._suspend = suspend or contextlib.nullcontext
        self.ssh_config = dict(ssh_config or {})
        self.mount_root = mount_root
        self._runner = runner
        self._which = which
        self._output = output
        self._error_output = error_output
        self.state = LauncherState.IDLE

    # ---------------------------------------------------------------- actions
    def connect_shell(self, item) -> SessionOutcome:
        kwargs = {"which": self._which} if self._which else {}
        if sshpass_missing(item, **kwargs):
            logger.warning("sshpass not found on PATH; ssh will prompt for the password of %s", item.label)
        command = build_ssh_command(item, self.ssh_config, **kwargs)
        return self._launch(SessionKind.SHELL, item, command)

    def connect_sshfs(self, item) -> SessionOutcome:
        mount_root = self.mount_root or get_default_mount_root()
        try:
            mount_point = mount_point_for(item, mount_root)
        except ValueError as exc:
            raise RosterIOError(f"Can't pick a mount directory for {item.label}: {exc}", mount_root) from exc
        try:
            os.makedirs(mount_point, exist_ok=True)
        except OSError as exc:
            raise RosterIOError(f"Can't create mount directory {mount_point}: {exc}", mount_point) from exc

        command = build_sshfs_command(item, mount_point)
        outcome = self._launch(SessionKind.SSHFS, item, command)
        outcome.mount_point = mount_point
        return outcome

    # --------------------------------------------------------------- plumbing
    def _launch(self, kind: SessionKind, item, command: LaunchCommand) -> SessionOutcome:
        logger.info("Launching %s for %s: %s", kind.value, item.label, shlex.join(command.argv))
        outcome = SessionOutcome(kind=kind, label=item.label)
        try:
            with self._suspend():
                self.state = LauncherState.TERMINAL_SUSPENDED
                self._run_child(command, outcome)
                self._report(outcome)
        finally:
            self.state = LauncherState.TERMINAL_RESTORED
        logger.info("%s session for %s finished: %s", kind.value, item.label, outcome.summary())
        return outcome

    def _run_child(self, command: LaunchCommand, outcome: SessionOutcome) -> None:
        self.state = LauncherState.CHILD_RUNNING
        try:
            completed = self._runner(command.argv, stderr=subprocess.PIPE, env=command.env)
        except OSError as exc:
            logger.error("Failed to launch %s: %s", command.program, exc)
            outcome.error = ProcessSpawnError(command.argv, exc)
            self.state = LauncherState.PROCESS_EXITED
            return

        self.state = LauncherState.PROCESS_EXITED
        stderr = completed.stderr or b""
        if isinstance(stderr, bytes):
            stderr = stderr.decode("utf-8", errors="replace")
        outcome.returncode = completed.returncode
        outcome.stderr = stderr
        if completed.returncode != 0:
            outcome.error = ProcessAbnormalExit(completed.returncode, stderr)
            logger.warning("%s exited with %s", command.program, completed.returncode)

    def _report(self, outcome: SessionOutcome) -> None:
        out = self._output or sys.stdout
        err = self._error_output or sys.stderr
        for line in outcome.report_lines():
            stream = out if outcome.ok else err
            print(line, file=stream)
        out.flush()
        err.flush()


__all__ = ["LauncherState", "SessionKind", "SessionLauncher", "SessionOutcome"]
