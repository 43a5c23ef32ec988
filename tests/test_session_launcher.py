import contextlib
import io
import subprocess

import pytest

from sshroster.connection_store import ConnectionRecord, RuntimeConnectionItem
from sshroster.errors import ProcessAbnormalExit, ProcessSpawnError, RosterIOError
from sshroster.tui.launcher import LauncherState, SessionKind, SessionLauncher


class RecordingSuspend:
    """Stands in for App.suspend and records enter/exit pairs."""

    def __init__(self):
        self.events = []

    @contextlib.contextmanager
    def __call__(self):
        self.events.append("suspend")
        try:
            yield
        finally:
            self.events.append("restore")


class FakeRunner:
    def __init__(self, returncode=0, stderr=b"", exc=None):
        self.returncode = returncode
        self.stderr = stderr
        self.exc = exc
        self.calls = []

    def __call__(self, argv, **kwargs):
        self.calls.append((list(argv), kwargs))
        if self.exc is not None:
            raise self.exc
        return subprocess.CompletedProcess(argv, self.returncode, None, self.stderr)


def _item(**overrides):
    values = {"label": "box 1", "host": "10.0.0.1", "port": "2200", "user": "root"}
    values.update(overrides)
    return RuntimeConnectionItem.from_record(ConnectionRecord(**values))


def _launcher(runner, suspend=None, **kwargs):
    kwargs.setdefault("which", lambda name: None)
    out, err = io.StringIO(), io.StringIO()
    launcher = SessionLauncher(
        suspend or RecordingSuspend(),
        runner=runner,
        output=out,
        error_output=err,
        **kwargs,
    )
    return launcher, out, err


def test_successful_shell_is_silent_and_restores_terminal():
    suspend = RecordingSuspend()
    runner = FakeRunner()
    launcher, out, err = _launcher(runner, suspend)

    outcome = launcher.connect_shell(_item())

    assert outcome.ok
    assert outcome.returncode == 0
    assert out.getvalue() == ""
    assert err.getvalue() == ""
    assert suspend.events == ["suspend", "restore"]
    assert launcher.state is LauncherState.TERMINAL_RESTORED
    argv, kwargs = runner.calls[0]
    assert argv[-1] == "root@10.0.0.1"
    assert kwargs["stderr"] is subprocess.PIPE


def test_nonzero_exit_reports_stderr():
    runner = FakeRunner(returncode=255, stderr=b"Permission denied\n")
    launcher, out, err = _launcher(runner)

    outcome = launcher.connect_shell(_item())

    assert isinstance(outcome.error, ProcessAbnormalExit)
    assert outcome.error.returncode == 255
    assert "stderr: Permission denied" in err.getvalue()
    assert "failed" in outcome.summary()


def test_signal_exit_is_reported_as_interrupted():
    launcher, out, err = _launcher(FakeRunner(returncode=-2))

    outcome = launcher.connect_shell(_item())

    assert outcome.interrupted
    assert err.getvalue().strip() == "Interrupted!"


def test_spawn_failure_still_restores_terminal():
    suspend = RecordingSuspend()
    launcher, out, err = _launcher(FakeRunner(exc=FileNotFoundError("ssh")), suspend)

    outcome = launcher.connect_shell(_item())

    assert isinstance(outcome.error, ProcessSpawnError)
    assert suspend.events == ["suspend", "restore"]
    assert "Failed to launch ssh" in err.getvalue()


def test_unexpected_error_inside_child_run_restores_terminal():
    suspend = RecordingSuspend()
    launcher, out, err = _launcher(FakeRunner(exc=KeyboardInterrupt()), suspend)

    with pytest.raises(KeyboardInterrupt):
        launcher.connect_shell(_item())

    assert suspend.events == ["suspend", "restore"]
    assert launcher.state is LauncherState.TERMINAL_RESTORED


def test_sshfs_creates_mount_point_and_reports_ok(tmp_path):
    runner = FakeRunner()
    launcher, out, err = _launcher(runner, mount_root=str(tmp_path))

    outcome = launcher.connect_sshfs(_item())

    mount_point = tmp_path / "box1"
    assert mount_point.is_dir()
    assert outcome.kind is SessionKind.SSHFS
    assert outcome.mount_point == str(mount_point)
    assert runner.calls[0][0] == ["sshfs", "root@10.0.0.1:/", str(mount_point), "-p", "2200"]
    assert out.getvalue().strip() == "Ok."


def test_sshfs_failure_prints_failed(tmp_path):
    launcher, out, err = _launcher(FakeRunner(returncode=1, stderr=b"fuse: bad mount"), mount_root=str(tmp_path))

    outcome = launcher.connect_sshfs(_item())

    assert not outcome.ok
    assert err.getvalue().splitlines() == ["Failed.", "stderr: fuse: bad mount"]


def test_sshfs_mount_point_creation_failure_is_fatal(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    suspend = RecordingSuspend()
    launcher, out, err = _launcher(FakeRunner(), suspend, mount_root=str(blocker))

    with pytest.raises(RosterIOError):
        launcher.connect_sshfs(_item())

    assert suspend.events == []


def test_stored_password_goes_to_sshpass_through_environment():
    runner = FakeRunner()
    launcher, out, err = _launcher(runner, which=lambda name: "/usr/bin/sshpass")

    outcome = launcher.connect_shell(_item(password="s3cret"))

    assert outcome.ok
    argv, kwargs = runner.calls[0]
    assert argv[:3] == ["/usr/bin/sshpass", "-e", "ssh"]
    assert "s3cret" not in argv
    assert kwargs["env"]["SSHPASS"] == "s3cret"


def test_sshfs_without_usable_mount_name_is_fatal(tmp_path):
    suspend = RecordingSuspend()
    launcher, out, err = _launcher(FakeRunner(), suspend, mount_root=str(tmp_path))

    with pytest.raises(RosterIOError):
        launcher.connect_sshfs(_item(label="..", host=".."))

    assert suspend.events == []
