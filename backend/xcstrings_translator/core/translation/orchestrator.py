"""Multi-Language Orchestrator - fans the chunked translator out across languages.

Languages are processed in groups of at most `max_concurrent_languages`.
Groups run one after another; languages inside a group run concurrently.
Since chunks inside a language are sequential, this also bounds the number
of concurrent provider calls.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from .cancellation import (
    CancellationToken,
    LanguageProgressCallback,
    check_cancelled,
    notify_language_progress,
)
from .chunked_translator import ChunkedTranslator, chunked
from .exceptions import FatalTranslationError, TranslationCancelledError
from .models.enums import LanguageStatus
from .models.options import TranslationOptions
from .models.translation import TranslationBatchRequest, TranslationBatchResult

logger = logging.getLogger(__name__)

MAX_CONCURRENT_LANGUAGES = 2


class MultiLanguageOrchestrator:
    """Runs ChunkedTranslator for every target language and aggregates results.

    Usage:
        orchestrator = MultiLanguageOrchestrator(ChunkedTranslator(cache))
        results = await orchestrator.translate_multiple_languages(
            batches, "en", api_key, options, on_language_progress=callback,
        )
    """

    def __init__(
        self,
        translator: ChunkedTranslator,
        max_concurrent_languages: int = MAX_CONCURRENT_LANGUAGES,
    ):
        if max_concurrent_languages < 1:
            raise ValueError("max_concurrent_languages must be at least 1")
        self.translator = translator
        self.max_concurrent_languages = max_concurrent_languages

    async def translate_multiple_languages(
        self,
        batches: Sequence[TranslationBatchRequest],
        source_language: str,
        api_key: str,
        options: Optional[TranslationOptions] = None,
        on_language_progress: Optional[LanguageProgressCallback] = None,
    ) -> List[TranslationBatchResult]:
        """Translate every batch and return per-language summaries.

        Args:
            batches: One batch per target language
            source_language: Source language code
            api_key: Provider API key
            options: Shared options; on_progress is replaced per language
            on_language_progress: Receives (language, completed, total, status)

        Returns:
            One TranslationBatchResult per batch, in the order supplied

        Raises:
            FatalTranslationError: e.g. invalid API key; partial_results holds
                the languages that completed
            TranslationCancelledError: The caller's token was triggered;
                partial_results holds the languages that completed
        """
        options = options or TranslationOptions()
        caller_token = options.cancellation_token
        # Tripped internally on a fatal error so sibling languages stop early
        run_token = caller_token.child() if caller_token else CancellationToken()

        completed: Dict[int, TranslationBatchResult] = {}
        groups = chunked(list(enumerate(batches)), self.max_concurrent_languages)

        logger.info(
            f"[Orchestrator] Translating {len(batches)} languages from {source_language} "
            f"in {len(groups)} groups (max {self.max_concurrent_languages} concurrent)"
        )

        for group_number, group in enumerate(groups, start=1):
            try:
                check_cancelled(caller_token)
            except TranslationCancelledError as e:
                e.partial_results = self._ordered(completed)
                raise

            logger.debug(
                f"[Orchestrator] Group {group_number}/{len(groups)}: "
                f"{', '.join(batch.language for _, batch in group)}"
            )

            outcomes = await asyncio.gather(
                *(
                    self._translate_language(
                        batch, source_language, api_key, options, run_token, on_language_progress
                    )
                    for _, batch in group
                ),
                return_exceptions=True,
            )

            errors: List[BaseException] = []
            for (index, _), outcome in zip(group, outcomes):
                if isinstance(outcome, BaseException):
                    errors.append(outcome)
                else:
                    completed[index] = outcome

            if errors:
                error = self._primary_error(errors)
                if isinstance(error, (FatalTranslationError, TranslationCancelledError)):
                    error.partial_results = self._ordered(completed)
                raise error

        return self._ordered(completed)

    async def _translate_language(
        self,
        batch: TranslationBatchRequest,
        source_language: str,
        api_key: str,
        options: TranslationOptions,
        run_token: CancellationToken,
        on_language_progress: Optional[LanguageProgressCallback],
    ) -> TranslationBatchResult:
        language = batch.language
        # Requests with an empty key get no result and are not counted
        total = sum(1 for request in batch.requests if request.key)

        notify_language_progress(on_language_progress, language, 0, total, LanguageStatus.IN_PROGRESS)

        def on_progress(done: int, _: int) -> None:
            notify_language_progress(
                on_language_progress, language, done, total, LanguageStatus.IN_PROGRESS
            )

        language_options = options.with_overrides(
            on_progress=on_progress,
            cancellation_token=run_token,
        )

        try:
            results = await self.translator.translate_batch(
                batch.requests, source_language, language, api_key, language_options
            )
        except FatalTranslationError as e:
            logger.error(f"[Orchestrator] {language}: fatal error, stopping all languages: {e}")
            run_token.cancel(reason=f"fatal error in {language}")
            notify_language_progress(on_language_progress, language, 0, total, LanguageStatus.FAILED)
            raise
        except BaseException as e:
            logger.warning(f"[Orchestrator] {language}: aborted: {e!r}")
            notify_language_progress(on_language_progress, language, 0, total, LanguageStatus.FAILED)
            raise

        result = TranslationBatchResult.from_results(language, results)
        logger.info(
            f"[Orchestrator] {language}: completed={result.completed}, failed={result.failed}"
        )
        notify_language_progress(
            on_language_progress,
            language,
            result.completed + result.failed,
            total,
            LanguageStatus.COMPLETED,
        )
        return result

    @staticmethod
    def _primary_error(errors: List[BaseException]) -> BaseException:
        """Pick the error to surface: fatal beats anything else, cancellation comes last."""
        for error in errors:
            if isinstance(error, FatalTranslationError):
                return error
        for error in errors:
            if not isinstance(error, TranslationCancelledError):
                return error
        return errors[0]

    @staticmethod
    def _ordered(completed: Dict[int, TranslationBatchResult]) -> List[TranslationBatchResult]:
        return [completed[i] for i in sorted(completed)]
