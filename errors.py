"""
Failures raised while driving the Cordova CLI.

Cancellation is not an error: a cancelled operation returns
``Outcome.CANCELLED`` (see ``cordova.py``).
"""


class CordovaError(RuntimeError):
    """Base class for every failure raised by the CLI wrapper."""


class LaunchError(CordovaError):
    """The shell process could not be started."""


class FatalIOError(CordovaError):
    """Writing the command to a running shell failed."""

    def __init__(self, message: str = "Fatal error invoking cordova CLI") -> None:
        super().__init__(message)


class CommandExecutionError(CordovaError):
    """
    The Cordova CLI reported failure in its output.

    ``message`` is the captured error text, verbatim, ready for display.
    """

    code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(CordovaError):
    """A THYM_* setting points at something unusable."""
