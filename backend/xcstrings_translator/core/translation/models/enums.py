"""Enum definitions for translation models."""

from enum import Enum


class LanguageStatus(str, Enum):
    """Per-language translation state.

    pending -> in-progress -> completed | failed
    """

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (LanguageStatus.COMPLETED, LanguageStatus.FAILED)
