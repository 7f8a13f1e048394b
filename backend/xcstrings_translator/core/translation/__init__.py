"""Translation core: chunked translation, multi-language orchestration and cancellation."""

from .cancellation import (
    CancellationToken,
    LanguageProgressCallback,
    ProgressCallback,
)
from .chunked_translator import CHUNK_SIZE, EMPTY_SOURCE_ERROR, ChunkedTranslator
from .exceptions import (
    EmptySourceTextError,
    FatalTranslationError,
    ProviderAuthenticationError,
    ProviderError,
    ProviderResponseError,
    TranslationCancelledError,
    TranslationError,
)
from .models import (
    LanguageStatus,
    TranslationBatchRequest,
    TranslationBatchResult,
    TranslationOptions,
    TranslationRequest,
    TranslationResult,
)
from .orchestrator import MAX_CONCURRENT_LANGUAGES, MultiLanguageOrchestrator

__all__ = [
    # Orchestration
    "ChunkedTranslator",
    "MultiLanguageOrchestrator",
    "CHUNK_SIZE",
    "MAX_CONCURRENT_LANGUAGES",
    "EMPTY_SOURCE_ERROR",
    # Cancellation and progress
    "CancellationToken",
    "ProgressCallback",
    "LanguageProgressCallback",
    # Models
    "LanguageStatus",
    "TranslationOptions",
    "TranslationRequest",
    "TranslationResult",
    "TranslationBatchRequest",
    "TranslationBatchResult",
    # Errors
    "TranslationError",
    "ProviderError",
    "ProviderResponseError",
    "FatalTranslationError",
    "ProviderAuthenticationError",
    "TranslationCancelledError",
    "EmptySourceTextError",
]
