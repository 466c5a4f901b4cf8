"""Rich console output for the one-shot subcommands.

The interactive UI draws with blessed; rich is only used outside of it.
"""

from typing import Optional

from rich.console import Console

_console: Optional[Console] = None
_error_console: Optional[Console] = None


def get_console(stderr: bool = False) -> Console:
    """Get the shared console for stdout, or the one for stderr."""
    global _console, _error_console
    if stderr:
        if _error_console is None:
            _error_console = Console(stderr=True)
        return _error_console
    if _console is None:
        _console = Console()
    return _console


def safe_print(message: str, style: Optional[str] = None) -> None:
    """Print a line to stdout with an optional rich style (e.g. "yellow")."""
    get_console().print(message, style=style)


def print_error(message: str) -> None:
    """Print an error line to stderr."""
    get_console(stderr=True).print(f"Error: {message}", style="bold red")
