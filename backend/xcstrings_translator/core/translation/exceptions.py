"""Translation exceptions.

Per-key and per-chunk failures are recorded in TranslationResult.error and
never raised. Only fatal errors and cancellation propagate to the caller.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from .models.translation import TranslationBatchResult


class TranslationError(Exception):
    """Translation error with optional code and details."""

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class ProviderError(TranslationError):
    """A provider call failed for one chunk (timeout, rate limit, 5xx, ...)."""

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class ProviderResponseError(ProviderError):
    """The provider answered, but not with the structured payload we asked for."""


class EmptySourceTextError(TranslationError):
    """The text to translate is blank."""

    def __init__(self, message: str = "Source text is empty"):
        super().__init__(message, code="empty_source_text")


class _PartialResultsMixin:
    partial_results: List["TranslationBatchResult"]

    def _init_partial(self, partial_results: Optional[List["TranslationBatchResult"]]) -> None:
        self.partial_results = list(partial_results or [])


class FatalTranslationError(_PartialResultsMixin, TranslationError):
    """Invalidates the whole operation; no further chunks or languages run.

    partial_results holds the languages that finished before the failure.
    """

    def __init__(self, message: str, partial_results: Optional[List["TranslationBatchResult"]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self._init_partial(partial_results)


class ProviderAuthenticationError(FatalTranslationError):
    """The provider rejected the API key."""

    def __init__(self, message: str = "Invalid or unauthorized API key", **kwargs):
        kwargs.setdefault("code", "unauthorized")
        super().__init__(message, **kwargs)


class TranslationCancelledError(_PartialResultsMixin, TranslationError):
    """Raised at a checkpoint after the cancellation token was triggered.

    Kept apart from failures so callers can revert cancelled work instead of
    marking it as errored.
    """

    def __init__(self, message: str = "Translation cancelled", partial_results: Optional[List["TranslationBatchResult"]] = None):
        super().__init__(message, code="cancelled")
        self._init_partial(partial_results)
