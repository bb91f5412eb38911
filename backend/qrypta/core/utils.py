"""
Shared formatting helpers for operator-facing output
"""
from typing import Callable, Mapping


def print_separator(title: str, width: int = 70, out: Callable[[str], None] = print):
    """Print a titled separator

    Args:
        title: Title to display
        width: Separator width (default 70)
        out: Line writer (default print)
    """
    out("\n" + "=" * width)
    out(f" {title}")
    out("=" * width)


def format_rows(rows: Mapping[str, str]) -> str:
    """Align key/value rows into a block of text"""
    if not rows:
        return ""
    key_width = max(len(key) for key in rows)
    return "\n".join(f"  {key.ljust(key_width)} : {value}" for key, value in rows.items())


def print_block(title: str, rows: Mapping[str, str], out: Callable[[str], None] = print):
    print_separator(title, out=out)
    out(format_rows(rows))


def shorten(text: str, length: int = 18) -> str:
    """Truncate to `length` characters followed by an ellipsis"""
    return text if len(text) <= length else f"{text[:length]}…"


def format_duration(seconds: float) -> str:
    """Format a duration (e.g. "1m 23s")

    Args:
        seconds: Number of seconds

    Returns:
        Formatted string
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    if minutes < 60:
        return f"{minutes}m {secs}s"
    return f"{minutes // 60}h {minutes % 60}m {secs}s"
