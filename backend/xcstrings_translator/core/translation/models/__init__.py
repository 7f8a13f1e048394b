"""Translation data models.

This module provides structured data models for the translation core,
ensuring type safety and clear contracts between components.
"""

from .enums import LanguageStatus
from .options import TranslationOptions
from .prompt import Message, PromptBundle
from .response import LLMResponse, TokenUsage
from .translation import (
    TranslationBatchRequest,
    TranslationBatchResult,
    TranslationRequest,
    TranslationResult,
)

__all__ = [
    # Translation models
    "LanguageStatus",
    "TranslationOptions",
    "TranslationRequest",
    "TranslationResult",
    "TranslationBatchRequest",
    "TranslationBatchResult",
    # Prompt models
    "Message",
    "PromptBundle",
    # Response models
    "TokenUsage",
    "LLMResponse",
]
