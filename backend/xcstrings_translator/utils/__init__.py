"""Utility modules for xcstrings_translator."""

from .text import format_bytes, normalize_for_display, safe_truncate, strip_wrapping_quotes

__all__ = ["format_bytes", "normalize_for_display", "safe_truncate", "strip_wrapping_quotes"]
