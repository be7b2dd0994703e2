"""
Logging helpers: coloured, timestamped console output built on 'rich'.

Orchestration messages go to stdout; errors and the echoed stderr of the
wrapped Cordova process go to stderr.
"""
from datetime import datetime

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

_console     = Console()
_console_err = Console(stderr=True)


def _ts() -> str:
    return datetime.now().strftime("%H:%M:%S")


def section(title: str) -> None:
    _console.rule(f"[bold cyan]{escape(title)}[/bold cyan]")


def info(msg: str) -> None:
    _console.print(f"[dim]{_ts()}[/dim]  [blue]ℹ[/blue]  {escape(msg)}")


def success(msg: str) -> None:
    _console.print(f"[dim]{_ts()}[/dim]  [bold green]✔[/bold green]  {escape(msg)}")


def warn(msg: str) -> None:
    _console.print(f"[dim]{_ts()}[/dim]  [bold yellow]⚠[/bold yellow]  {escape(msg)}")


def error(msg: str) -> None:
    _console_err.print(f"[dim]{_ts()}[/dim]  [bold red]✖[/bold red]  {escape(msg)}")


def step(index: int, total: int, msg: str) -> None:
    label = escape(f"[{index}/{total}]")
    _console.print(f"[dim]{_ts()}[/dim]  [bold magenta]{label}[/bold magenta]  {escape(msg)}")


def output(line: str, stream: str = "stdout") -> None:
    """Echo one line written by the wrapped shell."""
    text = Text(f"    {line}", style="red" if stream == "stderr" else "dim")
    if stream == "stderr":
        _console_err.print(text)
    else:
        _console.print(text)


def banner(title: str, subtitle: str = "") -> None:
    text = Text(title, style="bold cyan")
    if subtitle:
        text.append(f"\n{subtitle}", style="dim")
    _console.print(Panel(text, border_style="cyan"))


def duration(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.1f}s"
    m, s = divmod(int(seconds), 60)
    return f"{m}m{s:02d}s"
