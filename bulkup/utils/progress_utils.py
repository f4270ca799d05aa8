"""ASCII rendering utilities for progress display.

This module provides helper functions for formatting data and rendering
ASCII-based progress bars without external UI dependencies.
"""


def render_bar(completed: float, total: float, width: int = 30) -> str:
    """Render an ASCII progress bar.

    Args:
        completed: Amount completed
        total: Total amount
        width: Width of the progress bar in characters

    Returns:
        ASCII progress bar string like "[========>     ]"

    """
    if total <= 0:
        return "[" + " " * width + "]"

    filled_width = int((completed / total) * width)
    filled_width = max(0, min(filled_width, width))

    if filled_width == width:
        bar = "=" * width
    elif filled_width > 0:
        bar = "=" * (filled_width - 1) + ">" + " " * (width - filled_width)
    else:
        bar = " " * width

    return f"[{bar}]"


def truncate_text(text: str, max_length: int, ellipsis: str = "...") -> str:
    """Truncate text to maximum length with ellipsis.

    Args:
        text: Text to truncate
        max_length: Maximum length including ellipsis
        ellipsis: String to append when truncating

    Returns:
        Truncated text with ellipsis if needed

    """
    if len(text) <= max_length:
        return text

    if max_length <= len(ellipsis):
        return ellipsis[:max_length]

    return text[: max_length - len(ellipsis)] + ellipsis


def format_percentage(completed: float, total: float) -> str:
    """Format completion percentage.

    Args:
        completed: Amount completed
        total: Total amount

    Returns:
        Formatted percentage string like " 75%"

    """
    if total <= 0:
        return "  0%"

    percentage = (completed / total) * 100
    percentage = max(0.0, min(percentage, 100.0))
    return f"{percentage:>3.0f}%"


def format_duration(seconds: float | None) -> str:
    """Format an elapsed time.

    Args:
        seconds: Elapsed seconds, or None when unknown

    Returns:
        Formatted string like "1m 5s", "12s" or "--"

    """
    if seconds is None or seconds < 0:
        return "--"

    minutes, secs = divmod(int(seconds), 60)
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
