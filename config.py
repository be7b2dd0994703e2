"""
Central configuration for the Cordova CLI wrapper.
Every value can be overridden through a THYM_* environment variable; the
defaults suit a developer machine with 'cordova' on the login shell's PATH.
"""
import os
import shlex
from pathlib import Path
from typing import List

# ── Shell ─────────────────────────────────────────────────────────────────────
# The interactive shell each Cordova command is sent to.  A login shell is
# used on POSIX so that nvm/npm PATH setup in the user's profile applies.
# Override with THYM_SHELL, e.g.  THYM_SHELL="/bin/zsh -l"
if os.name == "nt":
    _DEFAULT_SHELL = ["cmd.exe", "/Q"]
else:
    _DEFAULT_SHELL = ["/bin/bash", "-l"]

SHELL_ARGS: List[str] = shlex.split(os.environ["THYM_SHELL"]) if os.environ.get("THYM_SHELL") \
    else _DEFAULT_SHELL

# Encoding of the shell's streams.  Undecodable bytes are replaced, never fatal.
OUTPUT_ENCODING = os.environ.get("THYM_ENCODING", "utf-8")

# ── Timing ────────────────────────────────────────────────────────────────────
# Seconds between checks for shell termination / cancellation.
POLL_INTERVAL = float(os.environ.get("THYM_POLL_INTERVAL", "0.05"))

# Grace period between SIGTERM and SIGKILL when a shell is cancelled.
TERMINATE_TIMEOUT = float(os.environ.get("THYM_TERMINATE_TIMEOUT", "5.0"))

# How long to wait for the stream readers to hand over the last output
# after the shell has exited.
DRAIN_TIMEOUT = 2.0

# ── Workspace ─────────────────────────────────────────────────────────────────
WORKSPACE = Path(os.environ.get("THYM_WORKSPACE", os.getcwd())).resolve()

# ── Error recognition ─────────────────────────────────────────────────────────
# Lines of Cordova output that mean the command failed.  The CLI exposes no
# machine-readable status in this mode, so these track its current wording.
ERROR_PATTERNS: List[str] = [
    r"^\s*(CordovaError:\s*)?Error:",
    r"^\s*CordovaError:",
    r"^npm ERR!",
    r"cordova: command not found",
    r"'cordova' is not recognized",
]


def error_patterns() -> List[str]:
    """
    Return the active error patterns: ``ERROR_PATTERNS`` plus one regex per
    line of the file named by THYM_ERROR_PATTERNS_FILE (blank lines and
    ``#`` comments ignored).
    """
    patterns = list(ERROR_PATTERNS)
    extra = os.environ.get("THYM_ERROR_PATTERNS_FILE")
    if not extra:
        return patterns
    for line in Path(extra).read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            patterns.append(line)
    return patterns
