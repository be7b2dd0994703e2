"""
Classification of Cordova CLI output.

The wrapped shell gives no structured result for a command, so success or
failure is inferred from the text it prints.  ``ErrorRules`` holds the
patterns that mark a failure; ``OutputClassifier`` is attached to a shell's
output and error streams and collects the lines those rules recognise.
"""
import re
import threading
from typing import Callable, Dict, Iterable, List, Optional, Union

import config as cfg
from errors import ConfigurationError


class ErrorRules:
    """A set of regexes; a line is an error line if any of them matches."""

    def __init__(self, patterns: Iterable[Union[str, re.Pattern]]) -> None:
        self.patterns: List[re.Pattern] = [
            p if isinstance(p, re.Pattern) else re.compile(p) for p in patterns
        ]

    @classmethod
    def default(cls) -> "ErrorRules":
        """
        Rules from ``config.error_patterns()``.  Raises ``ConfigurationError``
        if the extra patterns file is unreadable or holds a bad regex.
        """
        try:
            return cls(cfg.error_patterns())
        except (OSError, re.error) as exc:
            raise ConfigurationError(f"Invalid error patterns: {exc}") from exc

    def matches(self, line: str) -> bool:
        return any(p.search(line) for p in self.patterns)


class OutputClassifier:
    """
    Stream listener that accumulates shell output line by line.

    Chunks may arrive from the stdout and stderr reader threads at the same
    time; each stream keeps its own partial-line buffer and deliveries are
    serialised by an internal lock.  ``get_error_message`` is only
    meaningful once the process has terminated and ``close`` has been
    called.
    """

    def __init__(
        self,
        rules: Optional[ErrorRules] = None,
        echo: Optional[Callable[[str, str], None]] = None,
    ) -> None:
        self.rules = rules if rules is not None else ErrorRules.default()
        self.echo  = echo
        self.lines: List[str] = []
        self._errors: List[str] = []
        self._partial: Dict[str, str] = {}
        self._lock = threading.Lock()

    def stream_appended(self, text: str, stream: str = "stdout") -> None:
        with self._lock:
            buffered = self._partial.pop(stream, "") + text
            *complete, rest = buffered.split("\n")
            if rest:
                self._partial[stream] = rest
            for line in complete:
                self._line(line.rstrip("\r"), stream)

    def close(self) -> None:
        """Flush partial lines left over when the streams hit EOF."""
        with self._lock:
            for stream, rest in sorted(self._partial.items()):
                self._line(rest.rstrip("\r"), stream)
            self._partial.clear()

    def _line(self, line: str, stream: str) -> None:
        self.lines.append(line)
        if self.rules.matches(line):
            self._errors.append(line)
        if self.echo is not None:
            self.echo(line, stream)

    def get_error_message(self) -> str:
        with self._lock:
            return "\n".join(self._errors)
