"""Chunked Translator - translates one language's strings in provider-sized chunks.

Flow for a batch:
    requests -> empty-key filter -> cache lookup -> chunks of 20
             -> one structured call per chunk (retried) -> results + cache writes

Failure isolation is per chunk: a chunk that keeps failing marks its own keys
as failed and the next chunk still runs. Only credential errors and
cancellation escape translate_batch.
"""

import asyncio
import logging
from collections import Counter
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from xcstrings_translator.config import settings
from xcstrings_translator.core.cache import TranslationCache
from xcstrings_translator.utils.text import normalize_for_display

from .cancellation import check_cancelled, notify_progress
from .exceptions import (
    EmptySourceTextError,
    FatalTranslationError,
    TranslationCancelledError,
    TranslationError,
)
from .models.options import TranslationOptions
from .models.prompt import PromptBundle
from .models.response import LLMResponse
from .models.translation import TranslationRequest, TranslationResult
from .pipeline import GatewayFactory, LLMGateway, OutputProcessor, PromptEngine

logger = logging.getLogger(__name__)

CHUNK_SIZE = 20
EMPTY_SOURCE_ERROR = "Source text is empty"

T = TypeVar("T")

GatewayFactoryType = Callable[..., LLMGateway]


def chunked(items: Sequence[T], size: int) -> List[List[T]]:
    """Split items into consecutive slices of at most `size`."""
    if size < 1:
        raise ValueError("chunk size must be at least 1")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class ChunkedTranslator:
    """Translates batches for a single language pair.

    Usage:
        translator = ChunkedTranslator(cache)
        results = await translator.translate_batch(
            requests, "en", "fr", api_key, TranslationOptions(app_context="Weather app"),
        )
    """

    def __init__(
        self,
        cache: TranslationCache,
        gateway_factory: GatewayFactoryType = GatewayFactory.create,
        provider: Optional[str] = None,
        chunk_size: int = CHUNK_SIZE,
        retry_delay: Optional[float] = None,
        retry_max_delay: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        """Initialize the translator.

        Args:
            cache: Translation cache shared by all languages
            gateway_factory: Builds a gateway from (provider, api_key, model)
            provider: LLM provider name (defaults to settings.default_provider)
            chunk_size: Requests per provider call
            retry_delay: Base delay of the exponential backoff, seconds
            retry_max_delay: Upper bound of a single backoff wait, seconds
            max_tokens: Response token limit per chunk
        """
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")

        self.cache = cache
        self.provider = provider or settings.default_provider
        self.chunk_size = chunk_size
        self.retry_delay = settings.retry_delay if retry_delay is None else retry_delay
        self.retry_max_delay = settings.retry_max_delay if retry_max_delay is None else retry_max_delay
        self.max_tokens = max_tokens or settings.chunk_max_tokens
        self._gateway_factory = gateway_factory
        self.output_processor = OutputProcessor()

    async def translate_batch(
        self,
        requests: Sequence[TranslationRequest],
        source_language: str,
        target_language: str,
        api_key: str,
        options: Optional[TranslationOptions] = None,
    ) -> List[TranslationResult]:
        """Translate every request of one language exactly once.

        Args:
            requests: Requests for this language
            source_language: Source language code
            target_language: Target language code
            api_key: Provider API key
            options: Model, retries, temperature, context, progress and cancellation

        Returns:
            One result per request with a non-empty key, in input order

        Raises:
            ProviderAuthenticationError: The provider rejected the API key
            TranslationCancelledError: The cancellation token was triggered
        """
        options = options or TranslationOptions()
        token = options.cancellation_token

        valid = [r for r in requests if r.key]
        if len(valid) != len(requests):
            logger.debug(
                f"[Chunked Translator] Skipping {len(requests) - len(valid)} requests with empty keys"
            )

        total = len(valid)
        resolved: Dict[int, TranslationResult] = {}
        pending: List[Tuple[int, TranslationRequest]] = []

        for index, request in enumerate(valid):
            if not request.text or not request.text.strip():
                resolved[index] = TranslationResult.failure(request.key, EMPTY_SOURCE_ERROR)
                continue

            cached = self.cache.get(request.text, source_language, target_language, options.model)
            if cached is not None:
                resolved[index] = TranslationResult.success(request.key, cached)
            else:
                pending.append((index, request))

        if not pending:
            logger.info(
                f"[Chunked Translator] {target_language}: all {total} keys resolved without a provider call"
            )
            return [resolved[i] for i in range(total)]

        chunks = chunked(pending, self.chunk_size)
        logger.info(
            f"[Chunked Translator] {source_language}->{target_language}: {len(pending)} to translate "
            f"in {len(chunks)} chunks ({total - len(pending)} resolved from cache or empty)"
        )

        gateway = self._gateway_factory(
            provider=self.provider, api_key=api_key, model=options.model
        )
        completed = len(resolved)

        for chunk_number, chunk in enumerate(chunks, start=1):
            check_cancelled(token)

            chunk_requests = [request for _, request in chunk]
            try:
                chunk_results = await self._translate_chunk(
                    gateway, chunk_requests, source_language, target_language, options
                )
            except (FatalTranslationError, TranslationCancelledError):
                raise
            except Exception as e:
                logger.error(
                    f"[Chunked Translator] {target_language}: chunk {chunk_number}/{len(chunks)} failed: {e}"
                )
                message = f"Translation failed: {normalize_for_display(str(e) or type(e).__name__, 300)}"
                chunk_results = [TranslationResult.failure(r.key, message) for r in chunk_requests]
            else:
                await self._store_in_cache(
                    chunk_requests, chunk_results, source_language, target_language, options.model
                )

            for (index, _), result in zip(chunk, chunk_results):
                resolved[index] = result

            completed += len(chunk)
            notify_progress(options.on_progress, completed, total)

        return [resolved[i] for i in range(total)]

    async def translate_string(
        self,
        text: str,
        source_language: str,
        target_language: str,
        api_key: str,
        options: Optional[TranslationOptions] = None,
    ) -> str:
        """Translate a single string with a plain-text prompt.

        Uses the same cache and retry policy as translate_batch.

        Raises:
            EmptySourceTextError: The text is blank
            ProviderAuthenticationError: The provider rejected the API key
            TranslationCancelledError: The cancellation token was triggered
            TranslationError: All attempts failed
        """
        options = options or TranslationOptions()

        if not text or not text.strip():
            raise EmptySourceTextError()

        cached = self.cache.get(text, source_language, target_language, options.model)
        if cached is not None:
            return cached

        gateway = self._gateway_factory(
            provider=self.provider, api_key=api_key, model=options.model
        )
        bundle = PromptEngine.build_single(
            text,
            source_language,
            target_language,
            app_context=options.app_context,
            temperature=options.temperature,
        )

        try:
            translated = await self._call_with_retry(
                gateway, bundle, options, self.output_processor.process_single
            )
        except TranslationError:
            raise
        except Exception as e:
            raise TranslationError(f"Translation failed: {e}") from e

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None, self.cache.set, text, source_language, target_language, options.model, translated
        )
        return translated

    async def _translate_chunk(
        self,
        gateway: LLMGateway,
        requests: List[TranslationRequest],
        source_language: str,
        target_language: str,
        options: TranslationOptions,
    ) -> List[TranslationResult]:
        bundle = PromptEngine.build_batch(
            requests,
            source_language,
            target_language,
            app_context=options.app_context,
            temperature=options.temperature,
            max_tokens=self.max_tokens,
        )
        return await self._call_with_retry(
            gateway,
            bundle,
            options,
            lambda response: self.output_processor.process_batch(response, requests),
        )

    async def _call_with_retry(
        self,
        gateway: LLMGateway,
        bundle: PromptBundle,
        options: TranslationOptions,
        process: Callable[[LLMResponse], T],
    ) -> T:
        """Call the provider and process the response, retrying failures.

        Attempts are capped at options.max_retries (at least one). Credential
        errors and cancellation are never retried. Cancellation is checked
        before every attempt.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(max(1, options.max_retries)),
            wait=wait_exponential(multiplier=self.retry_delay, max=self.retry_max_delay),
            retry=retry_if_not_exception_type((FatalTranslationError, TranslationCancelledError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

        result = None
        async for attempt in retrying:
            with attempt:
                check_cancelled(options.cancellation_token)
                response = await gateway.call(bundle)
                result = process(response)
        return result

    async def _store_in_cache(
        self,
        requests: List[TranslationRequest],
        results: List[TranslationResult],
        source_language: str,
        target_language: str,
        model: str,
    ) -> None:
        # A key repeated within one chunk maps to a single translation, so it
        # cannot be paired with the right source text
        key_counts = Counter(request.key for request in requests)
        entries = [
            (request.text, source_language, target_language, model, result.translated_text)
            for request, result in zip(requests, results)
            if not result.is_error and key_counts[request.key] == 1
        ]
        if entries:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self.cache.set_many, entries)
