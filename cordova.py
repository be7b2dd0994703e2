"""
A wrapper around the Cordova CLI.

Every operation runs one Cordova command in a fresh login shell:

  1. take the project's lock      (waits while another command for the same
                                   project is running)
  2. start the shell              (stdout + stderr feed an OutputClassifier)
  3. send  'cordova <verb> ...'   followed by 'exit'
  4. wait for the shell to exit,  checking the monitor for cancellation on
                                  every poll tick
  5. report                       error lines seen  → CommandExecutionError
                                  none              → Outcome.SUCCEEDED
                                  cancelled         → Outcome.CANCELLED

The lock is released on every path out of the operation.

Public API
----------
  CordovaCLI.for_project(project, locks=...)  → CordovaCLI
  cli.build(*options)                         → Outcome
  cli.prepare(*options)                       → Outcome
  cli.platform(Command.ADD, "android")        → Outcome
  cli.plugin(Command.ADD, "org.x", "--save")  → Outcome
"""
from __future__ import annotations

import time
from enum import Enum
from typing import Callable, Optional, Union

import command as cmdmod
import config as cfg
import logger as log
from classifier import ErrorRules, OutputClassifier
from command import Command, Verb
from errors import CommandExecutionError, FatalIOError
from locks import ProjectLockRegistry
from monitor import NullProgressMonitor
from project import HybridProject
from shell import ProcessRunner, ShellProcess


class Outcome(Enum):
    SUCCEEDED = "succeeded"
    CANCELLED = "cancelled"


class State(Enum):
    IDLE          = "idle"
    LOCK_ACQUIRED = "lock-acquired"
    SHELL_STARTED = "shell-started"
    COMMAND_SENT  = "command-sent"
    POLLING       = "polling"
    SUCCEEDED     = "succeeded"
    FAILED        = "failed"
    CANCELLED     = "cancelled"


class CordovaCLI:
    """Runs Cordova commands for one project.  Build with ``for_project``."""

    def __init__(
        self,
        project: HybridProject,
        locks: ProjectLockRegistry,
        *,
        runner: Optional[ProcessRunner] = None,
        rules: Optional[ErrorRules] = None,
        poll_interval: Optional[float] = None,
        echo: Optional[Callable[[str, str], None]] = None,
    ) -> None:
        self.project       = project
        self.locks         = locks
        self.runner        = runner if runner is not None else ProcessRunner()
        self.rules         = rules
        self.poll_interval = poll_interval if poll_interval is not None else cfg.POLL_INTERVAL
        self.echo          = echo
        self.last_state    = State.IDLE

    @classmethod
    def for_project(cls, project: Optional[HybridProject], **kwargs) -> "CordovaCLI":
        if project is None:
            raise ValueError("No project specified")
        return cls(project, **kwargs)

    # ── operations ────────────────────────────────────────────────────────

    def build(self, *options: str, monitor=None) -> Outcome:
        return self._execute(Verb.BUILD, None, options, monitor)

    def prepare(self, *options: str, monitor=None) -> Outcome:
        return self._execute(Verb.PREPARE, None, options, monitor)

    def platform(self, command: Union[Command, str], *options: str, monitor=None) -> Outcome:
        return self._execute(Verb.PLATFORM, Command(command), options, monitor)

    def plugin(self, command: Union[Command, str], *options: str, monitor=None) -> Outcome:
        return self._execute(Verb.PLUGIN, Command(command), options, monitor)

    # ── internals ─────────────────────────────────────────────────────────

    def _execute(self, verb: Verb, sub_command: Optional[Command], options, monitor) -> Outcome:
        monitor = monitor if monitor is not None else NullProgressMonitor()
        label = cmdmod.label(verb, sub_command)
        cordova_command = cmdmod.compose(verb, sub_command, *options)
        project_id = self.project.project_id

        self.last_state = State.IDLE
        monitor.begin_task(f"{label}  [{project_id}]")
        start = time.time()
        lock = self.locks.acquire(project_id)
        try:
            self.last_state = State.LOCK_ACQUIRED
            listener = OutputClassifier(self.rules, echo=self.echo)
            process = self.runner.start(
                None, self.project.working_directory, monitor,
                listener=listener, label=label,
            )
            self.last_state = State.SHELL_STARTED
            try:
                self._send(process, cordova_command)
                exited = self._wait_for_exit(process, monitor)
            except BaseException:
                process.terminate()
                raise
            finally:
                process.close_input()
            if not exited:
                self.last_state = State.CANCELLED
                log.warn(f"{label} cancelled after {log.duration(time.time() - start)}")
                return Outcome.CANCELLED

            process.drain()
            error = listener.get_error_message()
            if error:
                self.last_state = State.FAILED
                log.error(f"{label} failed after {log.duration(time.time() - start)}")
                raise CommandExecutionError(error)
            self.last_state = State.SUCCEEDED
            log.success(f"{label} succeeded in {log.duration(time.time() - start)}")
            return Outcome.SUCCEEDED
        except BaseException:
            self.last_state = State.FAILED
            raise
        finally:
            self.locks.release(lock)
            monitor.done()

    def _send(self, process: ShellProcess, cordova_command: str) -> None:
        try:
            log.info(f"Sending: {cordova_command.strip()}")
            process.write(cordova_command)
            # exit the shell once the command has run
            process.write(cmdmod.EXIT_COMMAND)
        except OSError as exc:
            process.terminate()
            raise FatalIOError() from exc
        self.last_state = State.COMMAND_SENT

    def _wait_for_exit(self, process: ShellProcess, monitor) -> bool:
        """
        Poll until the shell exits (True) or the monitor is cancelled
        (False).  A cancellation seen in the same tick as the exit wins.
        """
        self.last_state = State.POLLING
        while True:
            if monitor.is_cancelled():
                log.warn(f"Cancellation requested – terminating '{process.label}'")
                process.terminate()
                return False
            try:
                if process.wait(self.poll_interval):
                    return not monitor.is_cancelled()
            except InterruptedError as exc:
                log.info(f"Interrupted while waiting for '{process.label}' to exit: {exc}")
