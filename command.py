"""
Composition of the command lines sent to the Cordova shell.

Verbs and sub-commands come from closed enumerations.  Options are passed
through verbatim: they are NOT shell-escaped, so callers must not forward
untrusted text containing shell metacharacters.
"""
from enum import Enum
from typing import Optional, Union

OPTION_SAVE  = "--save"
EXIT_COMMAND = "exit\n"


class Verb(str, Enum):
    BUILD    = "build"
    PREPARE  = "prepare"
    PLATFORM = "platform"
    PLUGIN   = "plugin"


class Command(str, Enum):
    """Sub-command of ``platform`` and ``plugin``."""
    ADD    = "add"
    REMOVE = "remove"

    @property
    def cli_command(self) -> str:
        return self.value


def label(verb: Union[Verb, str], sub_command: Union[Command, str, None] = None) -> str:
    """Short human-readable name of a command, e.g. ``cordova plugin add``."""
    parts = ["cordova", Verb(verb).value]
    if sub_command is not None:
        parts.append(Command(sub_command).cli_command)
    return " ".join(parts)


def compose(
    verb: Union[Verb, str],
    sub_command: Union[Command, str, None] = None,
    *options: Optional[str],
) -> str:
    """
    Build ``cordova <verb>[ <sub_command>][ <options...>]\\n``.

    Empty options are dropped; the rest keep their order.  Raises
    ``ValueError`` for a verb or sub-command outside the enumerations.
    """
    parts = [label(verb, sub_command)]
    parts += [opt for opt in options if opt]
    return " ".join(parts) + "\n"
