"""Cancellation and progress channel.

A CancellationToken is threaded through a translation run and checked at
chunk and group boundaries. In-flight provider calls are never interrupted;
their results are discarded once the next checkpoint raises.
"""

import logging
import threading
from typing import Callable, Optional

from .exceptions import TranslationCancelledError
from .models.enums import LanguageStatus

logger = logging.getLogger(__name__)

# (completed, total) for one language
ProgressCallback = Callable[[int, int], None]

# (language, completed, total, status)
LanguageProgressCallback = Callable[[str, int, int, LanguageStatus], None]


class CancellationToken:
    """Cooperative cancellation signal.

    A token created with a parent also reports cancelled when the parent is
    cancelled, so the orchestrator can stop sibling languages without
    cancelling the caller's token.
    """

    def __init__(self, parent: Optional["CancellationToken"] = None):
        self._event = threading.Event()
        self._parent = parent
        self.reason: Optional[str] = None

    def cancel(self, reason: Optional[str] = None) -> None:
        """Request cancellation. Safe to call from any thread, more than once."""
        if not self._event.is_set():
            self.reason = reason
            self._event.set()
            logger.info(f"[Cancellation] Cancellation requested{': ' + reason if reason else ''}")

    @property
    def is_cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.is_cancelled

    def raise_if_cancelled(self) -> None:
        """Raise TranslationCancelledError if cancellation was requested."""
        if self.is_cancelled:
            raise TranslationCancelledError()

    def child(self) -> "CancellationToken":
        """Create a token linked to this one."""
        return CancellationToken(parent=self)


def check_cancelled(token: Optional[CancellationToken]) -> None:
    """Checkpoint helper that accepts a missing token."""
    if token is not None:
        token.raise_if_cancelled()


def notify_progress(callback: Optional[ProgressCallback], completed: int, total: int) -> None:
    """Invoke a progress callback inline, isolating its failures."""
    if callback is None:
        return
    try:
        callback(completed, total)
    except Exception as e:
        logger.warning(f"[Progress] Progress callback raised: {e}")


def notify_language_progress(
    callback: Optional[LanguageProgressCallback],
    language: str,
    completed: int,
    total: int,
    status: LanguageStatus,
) -> None:
    """Invoke a language progress callback inline, isolating its failures."""
    if callback is None:
        return
    try:
        callback(language, completed, total, status)
    except Exception as e:
        logger.warning(f"[Progress] Language progress callback raised for {language}: {e}")
