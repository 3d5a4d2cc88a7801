"""Text and size helpers for snapshot projection."""

from typing import Any

ELLIPSIS = "..."


def truncate_text(text: str | None, budget: int) -> str | None:
    """Truncate text to at most ``budget`` characters.

    When the text is longer than the budget, the result is exactly
    ``budget`` characters long, ellipsis included.

    Args:
        text: Text to truncate; None and "" are returned unchanged.
        budget: Maximum length, must exceed the ellipsis length.

    Returns:
        The (possibly) truncated text.
    """
    if budget <= len(ELLIPSIS):
        raise ValueError("budget must be longer than the ellipsis")
    if not text or len(text) <= budget:
        return text
    return text[: budget - len(ELLIPSIS)] + ELLIPSIS


def split_images(images: Any) -> list[str]:
    """Normalize an image column to a list of URLs.

    Accepts a list of URLs or a comma-separated string.
    """
    if not images:
        return []
    if isinstance(images, str):
        return [url.strip() for url in images.split(",") if url.strip()]
    return [str(url) for url in images if url]


def format_bytes(size: int) -> str:
    """Format a byte count for humans, e.g. 1536 -> "1.5 KB"."""
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(units) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {units[unit]}"
