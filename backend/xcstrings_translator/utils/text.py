"""Text utilities for safe string handling.

Helpers used when error messages and source strings end up in logs,
translation results or cache statistics.
"""

import math
import re
from typing import Optional


def safe_truncate(text: str, max_chars: int, suffix: str = "...") -> str:
    """Truncate text, preferring a word boundary near the cut.

    Args:
        text: Text to truncate
        max_chars: Maximum characters (excluding suffix)
        suffix: Suffix to append if truncated (default "...")

    Returns:
        Truncated text with suffix if needed
    """
    if not text or len(text) <= max_chars:
        return text

    truncated = text[:max_chars]

    # Look back up to 20 characters for a cleaner break point
    break_chars = {' ', '\n', '\t', ',', '.', '!', '?', ';', ':', '-', '。', '，', '、'}
    for i in range(min(20, max_chars - 1), 0, -1):
        if truncated[-i] in break_chars:
            truncated = truncated[:-i].rstrip()
            break

    return truncated + suffix


def normalize_for_display(text: str, max_length: Optional[int] = None) -> str:
    """Normalize text for safe display in logs.

    Removes control characters, collapses runs of spaces and optionally
    truncates to max_length.
    """
    if not text:
        return ""

    # Remove control characters except newlines and tabs
    text = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', text)

    text = re.sub(r'[ \t]+', ' ', text)
    text = re.sub(r'\n{3,}', '\n\n', text)

    if max_length:
        text = safe_truncate(text, max_length)

    return text.strip()


def strip_wrapping_quotes(text: str) -> str:
    """Remove one leading and one trailing quote character added by a model."""
    return re.sub(r'^["\']|["\']$', '', text)


def format_bytes(size: int) -> str:
    """Format a byte count for display ("0 Bytes", "1.5 KB", ...)."""
    if size <= 0:
        return "0 Bytes"

    units = ["Bytes", "KB", "MB", "GB"]
    index = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    value = round(size / math.pow(1024, index), 2)
    # 1.50 -> "1.5", 2.00 -> "2"
    return f"{value:g} {units[index]}"
