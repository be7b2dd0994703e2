"""
Launching and handling the shell a Cordova command runs in.

``ProcessRunner.start`` spawns the configured shell with piped streams and
returns a ``ShellProcess``.  Each stream is read by its own daemon thread,
which hands every line to the attached listener in arrival order.  The
listener must provide ``stream_appended(text, stream)`` and ``close()``
(see ``classifier.OutputClassifier``).
"""
import os
import signal
import subprocess
import threading
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import config as cfg
import logger as log
from errors import LaunchError

_POSIX = os.name == "posix"


class ShellProcess:
    """
    Handle on one running shell.

    Owned by the single operation that started it.  Writes go to the
    shell's stdin; ``wait``/``is_terminated`` observe liveness only, the
    exit status is not interpreted.
    """

    def __init__(self, proc: subprocess.Popen, label: str, listener=None) -> None:
        self.proc     = proc
        self.label    = label
        self.listener = listener
        self._readers: List[threading.Thread] = []
        for name, pipe in (("stdout", proc.stdout), ("stderr", proc.stderr)):
            if pipe is None:
                continue
            t = threading.Thread(
                target=self._pump, args=(pipe, name), daemon=True,
                name=f"{label} [{name}]",
            )
            t.start()
            self._readers.append(t)

    @property
    def pid(self) -> int:
        return self.proc.pid

    @property
    def returncode(self) -> Optional[int]:
        return self.proc.returncode

    # ── streams ───────────────────────────────────────────────────────────

    def _pump(self, pipe, stream: str) -> None:
        try:
            for line in iter(pipe.readline, ""):
                if self.listener is not None:
                    self.listener.stream_appended(line, stream)
        finally:
            pipe.close()

    def write(self, text: str) -> None:
        """Write *text* to the shell's stdin.  Raises ``OSError`` on failure."""
        stdin = self.proc.stdin
        if stdin is None or stdin.closed:
            raise BrokenPipeError(f"stdin of '{self.label}' is closed")
        try:
            stdin.write(text)
            stdin.flush()
        except ValueError as exc:
            # raised by a file object closed under us by another thread
            raise BrokenPipeError(str(exc)) from exc

    def close_input(self) -> None:
        stdin = self.proc.stdin
        if stdin is not None and not stdin.closed:
            try:
                stdin.close()
            except OSError:
                pass

    def drain(self, timeout: float = cfg.DRAIN_TIMEOUT) -> None:
        """Wait for the readers to reach EOF, then flush the listener."""
        for t in self._readers:
            t.join(timeout=timeout)
        if self.listener is not None:
            self.listener.close()

    # ── lifecycle ─────────────────────────────────────────────────────────

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block up to *timeout* seconds; True once the shell has exited."""
        try:
            self.proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return False
        return True

    def is_terminated(self) -> bool:
        return self.proc.poll() is not None

    def terminate(self, timeout: float = cfg.TERMINATE_TIMEOUT) -> None:
        """
        SIGTERM the shell (its whole process group on POSIX, so a running
        'cordova' child goes too), then SIGKILL after *timeout* seconds.
        """
        self.close_input()
        if self.is_terminated():
            return
        self._signal(signal.SIGTERM)
        try:
            self.proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            log.warn(f"'{self.label}' did not stop after {timeout:.0f}s – killing it.")
            if _POSIX:
                self._signal(signal.SIGKILL)
            else:
                self.proc.kill()
            self.proc.wait()

    def _signal(self, sig: int) -> None:
        try:
            if _POSIX:
                os.killpg(self.proc.pid, sig)
            else:
                self.proc.terminate()
        except ProcessLookupError:
            pass


class ProcessRunner:
    """
    Starts shells.  *shell_args* defaults to ``config.SHELL_ARGS``; *env*
    (full environment mapping) defaults to the current process environment.
    """

    def __init__(
        self,
        shell_args: Optional[Sequence[str]] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> None:
        self.shell_args = list(shell_args) if shell_args else list(cfg.SHELL_ARGS)
        self.env = env

    def start(
        self,
        args: Optional[Sequence[str]] = None,
        working_dir: Union[str, Path, None] = None,
        monitor=None,
        *,
        listener=None,
        label: str = "cordova",
    ) -> ShellProcess:
        """
        Launch *args* (default: the runner's shell) in *working_dir*, or in
        the caller's current directory when None.  Raises ``LaunchError``
        if the process cannot be spawned.
        """
        cmd = list(args) if args else self.shell_args
        if monitor is not None:
            monitor.sub_task(f"Launching {label}")
        log.info(f"Starting shell for '{label}': {' '.join(cmd)}"
                 + (f"  (in {working_dir})" if working_dir else ""))
        try:
            proc = subprocess.Popen(
                cmd,
                cwd=str(working_dir) if working_dir is not None else None,
                env=self.env,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding=cfg.OUTPUT_ENCODING,
                errors="replace",
                bufsize=1,
                start_new_session=_POSIX,
            )
        except OSError as exc:
            raise LaunchError(f"Could not start '{cmd[0]}' for '{label}': {exc}") from exc
        return ShellProcess(proc, label, listener)
