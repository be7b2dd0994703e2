"""
Shared pytest fixtures for the Cordova CLI wrapper tests.

Provides a scripted fake shell (deterministic orchestration tests without
spawning processes) and a fake 'cordova' executable for tests that run a
real POSIX shell.
"""

import os
import stat
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from errors import LaunchError  # noqa: E402


class FakeShellProcess:
    """
    Stands in for ``shell.ShellProcess``.

    Once ``exit\\n`` is written, a background thread waits *delay* seconds,
    delivers the scripted *output* to the listener and marks the shell as
    exited.  With ``hang=True`` the shell never exits on its own.
    The first *interrupt_waits* calls to ``wait`` raise ``InterruptedError``.
    """

    def __init__(self, runner, label, working_dir, listener,
                 output, delay, hang, fail_write, interrupt_waits=0):
        self.runner      = runner
        self.label       = label
        self.working_dir = working_dir
        self.listener    = listener
        self.output: List[Tuple[str, str]] = list(output)
        self.delay       = delay
        self.hang        = hang
        self.fail_write  = fail_write
        self.interrupt_waits = interrupt_waits
        self.written: List[str] = []
        self.terminated_by_request = False
        self.input_closed = False
        self.drained     = False
        self._exited     = threading.Event()
        self._worker: Optional[threading.Thread] = None

    def write(self, text: str) -> None:
        if self.fail_write:
            raise BrokenPipeError("simulated broken pipe")
        self.written.append(text)
        if text == "exit\n" and not self.hang:
            self._worker = threading.Thread(target=self._run, daemon=True)
            self._worker.start()

    def _run(self) -> None:
        time.sleep(self.delay)
        for stream, text in self.output:
            if self.listener is not None:
                self.listener.stream_appended(text, stream)
        self._finish()

    def _finish(self) -> None:
        if not self._exited.is_set():
            self.runner._exited(self)
            self._exited.set()

    def close_input(self) -> None:
        self.input_closed = True

    def wait(self, timeout=None) -> bool:
        if self.interrupt_waits:
            self.interrupt_waits -= 1
            raise InterruptedError("simulated interrupted wait")
        return self._exited.wait(timeout)

    def is_terminated(self) -> bool:
        return self._exited.is_set()

    def terminate(self, timeout=None) -> None:
        self.terminated_by_request = True
        self._finish()

    def drain(self, timeout=None) -> None:
        if self._worker is not None:
            self._worker.join(timeout=5)
        if self.listener is not None:
            self.listener.close()
        self.drained = True


class FakeRunner:
    """Stands in for ``shell.ProcessRunner``; records every shell it starts."""

    def __init__(self, output=(), delay=0.05, hang=False,
                 fail_write=False, fail_launch=False, interrupt_waits=0):
        self.output      = list(output)
        self.delay       = delay
        self.hang        = hang
        self.fail_write  = fail_write
        self.fail_launch = fail_launch
        self.interrupt_waits = interrupt_waits
        self.processes: List[FakeShellProcess] = []
        self.events: List[Tuple[str, str]] = []
        self.running     = 0
        self.max_running = 0
        self._lock = threading.Lock()

    def start(self, args=None, working_dir=None, monitor=None, *,
              listener=None, label="cordova"):
        if self.fail_launch:
            raise LaunchError("simulated launch failure")
        process = FakeShellProcess(
            self, label, working_dir, listener,
            self.output, self.delay, self.hang, self.fail_write,
            self.interrupt_waits,
        )
        with self._lock:
            self.processes.append(process)
            self.running += 1
            self.max_running = max(self.max_running, self.running)
            self.events.append(("start", label))
        return process

    def _exited(self, process: FakeShellProcess) -> None:
        with self._lock:
            self.running -= 1
            self.events.append(("exit", process.label))


class RecordingRegistry:
    """Wraps a ``ProjectLockRegistry`` and counts acquire/release calls."""

    def __init__(self, registry):
        self.registry = registry
        self.acquired = 0
        self.released = 0

    def acquire(self, project_id):
        lock = self.registry.acquire(project_id)
        self.acquired += 1
        return lock

    def release(self, lock):
        self.released += 1
        self.registry.release(lock)

    def lock_for(self, project_id):
        return self.registry.lock_for(project_id)


@pytest.fixture
def demo_project(tmp_path):
    from project import HybridProject

    location = tmp_path / "demo"
    location.mkdir()
    return HybridProject(name="demo", location=location)


@pytest.fixture
def fake_cordova(tmp_path):
    """
    Directory holding an executable 'cordova' shell script.  The script
    echoes its arguments; an argument of ``fail`` makes it print a Cordova
    style error to stderr, ``latin1`` prints a non-UTF-8 line before a Cordova
    style error on stdout, ``sleep`` makes it run for a few seconds.
    """
    if os.name != "posix":
        pytest.skip("fake cordova script requires a POSIX shell")
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    script = bin_dir / "cordova"
    script.write_text(
        "#!/bin/sh\n"
        'echo "cordova $*"\n'
        'case "$*" in\n'
        '  *fail*) echo "Error: plugin not found" >&2; exit 1 ;;\n'
        '  *latin1*) printf "caf\\351 au lait\\n"; echo "Error: plugin not found"; exit 1 ;;\n'
        '  *sleep*) sleep 5 ;;\n'
        "esac\n"
    )
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return bin_dir


@pytest.fixture
def shell_env(fake_cordova):
    env = dict(os.environ)
    env["PATH"] = str(fake_cordova) + os.pathsep + env.get("PATH", "")
    return env
