"""
Tests for launching and handling shells.

These spawn a real /bin/sh and are skipped on platforms without one.
"""

import os
import subprocess
import time

import pytest

from classifier import OutputClassifier
from errors import LaunchError
from monitor import ProgressMonitor
import shell
from shell import ProcessRunner, ShellProcess

pytestmark = pytest.mark.skipif(
    os.name != "posix" or not os.path.exists("/bin/sh"),
    reason="requires a POSIX /bin/sh",
)


def _runner():
    return ProcessRunner(["/bin/sh"])


class TestProcessRunner:
    """Test ProcessRunner.start()."""

    def test_missing_shell_raises_launch_error(self, tmp_path):
        runner = ProcessRunner([str(tmp_path / "no-such-shell")])

        with pytest.raises(LaunchError):
            runner.start()

    def test_missing_working_directory_raises_launch_error(self, tmp_path):
        with pytest.raises(LaunchError):
            _runner().start(working_dir=tmp_path / "missing")

    def test_runs_in_working_directory(self, tmp_path):
        listener = OutputClassifier()
        process = _runner().start(working_dir=tmp_path, listener=listener)
        process.write("pwd\n")
        process.write("exit\n")

        assert process.wait(10)
        process.drain()
        assert os.path.realpath(listener.lines[0]) == os.path.realpath(str(tmp_path))

    def test_explicit_args_override_shell(self, tmp_path):
        listener = OutputClassifier()
        process = _runner().start(["/bin/sh", "-c", "echo hello"], listener=listener)

        assert process.wait(10)
        process.drain()
        assert listener.lines == ["hello"]

    def test_monitor_is_told_about_the_launch(self):
        calls = []

        class Recording(ProgressMonitor):
            def sub_task(self, name):
                calls.append(name)

        process = _runner().start(monitor=Recording(), label="cordova build")
        process.write("exit\n")
        process.wait(10)

        assert calls == ["Launching cordova build"]


class TestShellProcess:
    """Test stream delivery, writes and termination."""

    def test_stdout_and_stderr_reach_listener(self):
        listener = OutputClassifier()
        process = _runner().start(listener=listener)
        process.write("echo out\n")
        process.write("echo 'Error: bad' >&2\n")
        process.write("exit\n")

        assert process.wait(10)
        process.drain()
        assert "out" in listener.lines
        assert listener.get_error_message() == "Error: bad"

    def test_is_terminated_tracks_exit(self):
        process = _runner().start()
        assert not process.is_terminated()

        process.write("exit\n")
        assert process.wait(10)
        assert process.is_terminated()
        assert process.returncode == 0

    def test_wait_times_out_while_running(self):
        process = _runner().start()
        try:
            assert process.wait(0.05) is False
        finally:
            process.terminate()

    def test_terminate_stops_running_children(self):
        process = _runner().start()
        process.write("sleep 30\n")
        started = time.time()

        process.terminate(timeout=5)

        assert process.is_terminated()
        assert time.time() - started < 10

    def test_terminate_is_idempotent(self):
        process = _runner().start()
        process.terminate()
        process.terminate()

        assert process.is_terminated()

    def test_write_after_exit_raises_oserror(self):
        process = _runner().start()
        process.write("exit\n")
        process.wait(10)
        process.close_input()

        with pytest.raises(OSError):
            process.write("echo too late\n")

    def test_undecodable_bytes_are_replaced(self):
        """Test a non-UTF-8 byte neither stops the reader nor hides later errors."""
        listener = OutputClassifier()
        process = _runner().start(listener=listener)
        process.write("printf 'caf\\351\\n'\n")
        process.write("echo 'Error: bad' >&2\n")
        process.write("echo after\n")
        process.write("exit\n")

        assert process.wait(10)
        process.drain()
        assert "caf\ufffd" in listener.lines
        assert "after" in listener.lines
        assert listener.get_error_message() == "Error: bad"


class _StubbornProc:
    """A Popen stand-in that ignores the first termination request."""

    pid = 4242
    stdin = stdout = stderr = None
    returncode = None

    def __init__(self):
        self.calls = []

    def poll(self):
        return self.returncode

    def wait(self, timeout=None):
        if "kill" not in self.calls:
            raise subprocess.TimeoutExpired("shell", timeout)
        self.returncode = -9
        return self.returncode

    def terminate(self):
        self.calls.append("terminate")

    def kill(self):
        self.calls.append("kill")


class TestTerminateWithoutProcessGroups:
    """Test the escalation used where process groups are unavailable."""

    def test_terminate_escalates_to_kill(self, monkeypatch):
        monkeypatch.setattr(shell, "_POSIX", False)
        proc = _StubbornProc()

        ShellProcess(proc, "cordova build").terminate(timeout=0.01)

        assert proc.calls == ["terminate", "kill"]
        assert proc.returncode == -9
