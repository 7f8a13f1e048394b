"""Translation pipeline components.

This module provides the pipeline components used by the translators:
- PromptEngine: Builds batch and single-string prompts
- LLMGateway: Unified interface for LLM providers
- OutputProcessor: Turns raw LLM responses into translation results
"""

from .llm_gateway import GatewayFactory, LiteLLMGateway, LLMGateway
from .output_processor import MISSING_TRANSLATION_ERROR, OutputProcessor
from .prompt_engine import TRANSLATION_BATCH_RESPONSE_FORMAT, PromptEngine

__all__ = [
    "PromptEngine",
    "TRANSLATION_BATCH_RESPONSE_FORMAT",
    "LLMGateway",
    "LiteLLMGateway",
    "GatewayFactory",
    "OutputProcessor",
    "MISSING_TRANSLATION_ERROR",
]
