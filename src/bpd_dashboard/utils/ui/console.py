"""Rich consoles shared by the command modules."""

from functools import lru_cache

from rich.console import Console
from rich.theme import Theme

BPD_THEME = Theme(
    {
        "success": "bold green",
        "warning": "bold yellow",
        "error": "bold red",
        "muted": "dim",
    }
)


@lru_cache(maxsize=2)
def get_console(stderr: bool = False) -> Console:
    """Return the shared console; ``stderr=True`` gives the diagnostics console."""
    return Console(theme=BPD_THEME, stderr=stderr)
