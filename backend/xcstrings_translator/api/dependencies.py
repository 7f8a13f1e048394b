"""API dependencies for the translation service.

The cache lives on `app.state` for the lifetime of the process; translators
and orchestrators are cheap and built per request around it.
"""

import logging
from typing import Annotated, Callable, Optional

from fastapi import Depends, HTTPException, Request

from xcstrings_translator.config import settings
from xcstrings_translator.core.cache import TranslationCache
from xcstrings_translator.core.translation import ChunkedTranslator, MultiLanguageOrchestrator
from xcstrings_translator.core.translation.pipeline import GatewayFactory, LLMGateway
from xcstrings_translator.core.validation import validate_api_key

logger = logging.getLogger(__name__)


def get_cache(request: Request) -> TranslationCache:
    """Return the process-wide translation cache created at startup."""
    cache = getattr(request.app.state, "cache", None)
    if cache is None:
        raise HTTPException(status_code=503, detail="Translation cache is not initialized")
    return cache


def get_gateway_factory() -> Callable[..., LLMGateway]:
    """Return the factory used to build provider gateways."""
    return GatewayFactory.create


def get_translator(
    cache: Annotated[TranslationCache, Depends(get_cache)],
    gateway_factory: Annotated[Callable[..., LLMGateway], Depends(get_gateway_factory)],
) -> ChunkedTranslator:
    return ChunkedTranslator(
        cache,
        gateway_factory=gateway_factory,
        provider=settings.default_provider,
    )


def get_orchestrator(
    translator: Annotated[ChunkedTranslator, Depends(get_translator)],
) -> MultiLanguageOrchestrator:
    return MultiLanguageOrchestrator(translator)


def resolve_api_key(api_key: Optional[str]) -> str:
    """Pick the request's API key, falling back to the configured one.

    Raises:
        HTTPException: 400 if neither is set
    """
    key = api_key if api_key and api_key.strip() else settings.openai_api_key
    outcome = validate_api_key(key)
    if not outcome.is_valid:
        raise HTTPException(status_code=400, detail=outcome.error)
    return key


CacheDep = Annotated[TranslationCache, Depends(get_cache)]
TranslatorDep = Annotated[ChunkedTranslator, Depends(get_translator)]
OrchestratorDep = Annotated[MultiLanguageOrchestrator, Depends(get_orchestrator)]
