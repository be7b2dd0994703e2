"""
Progress / cancellation monitors.

A Cordova operation only ever asks its monitor ``is_cancelled()``; it polls,
nothing is pushed to it.  ``ProgressMonitor`` is safe to cancel from another
thread or from a signal handler.
"""
import threading
from typing import Optional

import logger as log


class ProgressMonitor:
    def __init__(self, *, verbose: bool = False) -> None:
        self.verbose = verbose
        self.task_name: Optional[str] = None
        self._cancelled = threading.Event()

    def begin_task(self, name: str) -> None:
        self.task_name = name
        if self.verbose:
            log.info(name)

    def sub_task(self, name: str) -> None:
        if self.verbose:
            log.info(f"  {name}")

    def done(self) -> None:
        self.task_name = None

    def cancel(self) -> None:
        self._cancelled.set()

    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()


class NullProgressMonitor(ProgressMonitor):
    """Silent monitor used when the caller does not supply one."""

    def begin_task(self, name: str) -> None:
        self.task_name = name

    def sub_task(self, name: str) -> None:
        pass
