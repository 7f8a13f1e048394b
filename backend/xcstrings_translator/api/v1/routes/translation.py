"""Translation API routes."""

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, List, NoReturn, Optional, Set

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from xcstrings_translator.api.dependencies import OrchestratorDep, TranslatorDep, resolve_api_key
from xcstrings_translator.core.translation import (
    CancellationToken,
    EmptySourceTextError,
    LanguageStatus,
    ProviderAuthenticationError,
    TranslationBatchRequest,
    TranslationBatchResult,
    TranslationCancelledError,
    TranslationError,
    TranslationOptions,
    TranslationRequest,
)
from xcstrings_translator.core.validation import validate_language_code

logger = logging.getLogger(__name__)

router = APIRouter()

# Non-standard "client closed request" status, used for cancelled runs
CLIENT_CLOSED_REQUEST = 499

# Keeps streaming runs alive after their client went away
_background_runs: Set[asyncio.Task] = set()


def _check_language_code(value: str) -> str:
    outcome = validate_language_code(value)
    if not outcome.is_valid:
        raise ValueError(outcome.error)
    return value


class _TranslationCallRequest(BaseModel):
    """Fields shared by every translation request."""
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    source_language: str = Field(..., alias="sourceLanguage")
    # Falls back to OPENAI_API_KEY from the environment
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    model: Optional[str] = None
    app_context: Optional[str] = Field(default=None, alias="appContext")
    max_retries: Optional[int] = Field(default=None, alias="maxRetries", ge=1, le=10)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)

    @field_validator("source_language")
    @classmethod
    def check_source_language(cls, value: str) -> str:
        return _check_language_code(value)

    def to_options(self, cancellation_token: Optional[CancellationToken] = None) -> TranslationOptions:
        overrides = {
            name: value
            for name, value in (
                ("model", self.model),
                ("max_retries", self.max_retries),
                ("temperature", self.temperature),
            )
            if value is not None
        }
        return TranslationOptions(
            app_context=self.app_context,
            cancellation_token=cancellation_token,
            **overrides,
        )


class TranslateTextRequest(_TranslationCallRequest):
    """Request to translate a single string."""
    text: str
    target_language: str = Field(..., alias="targetLanguage")

    @field_validator("target_language")
    @classmethod
    def check_target_language(cls, value: str) -> str:
        return _check_language_code(value)


class TranslateTextResponse(BaseModel):
    """Single string translation response."""
    model_config = ConfigDict(populate_by_name=True)

    translated_text: str = Field(..., alias="translatedText")


class TranslateStringsRequest(_TranslationCallRequest):
    """Request to translate many strings into one language."""
    strings: List[TranslationRequest] = Field(default_factory=list)
    target_language: str = Field(..., alias="targetLanguage")

    @field_validator("target_language")
    @classmethod
    def check_target_language(cls, value: str) -> str:
        return _check_language_code(value)


class TranslateBatchRequest(_TranslationCallRequest):
    """Request to translate strings into several languages."""
    batches: List[TranslationBatchRequest] = Field(default_factory=list)

    @field_validator("batches")
    @classmethod
    def check_batch_languages(cls, batches: List[TranslationBatchRequest]) -> List[TranslationBatchRequest]:
        for batch in batches:
            _check_language_code(batch.language)
        return batches


class TranslateBatchResponse(BaseModel):
    """Multi-language translation response."""
    results: List[TranslationBatchResult]


def _error_payload(error: TranslationError) -> Dict[str, Any]:
    partial_results = getattr(error, "partial_results", None) or []
    return {
        "message": error.message,
        "code": error.code,
        "partialResults": [r.model_dump(by_alias=True) for r in partial_results],
    }


def _raise_http_error(error: TranslationError) -> NoReturn:
    """Map a translation error onto an HTTP error response."""
    if isinstance(error, ProviderAuthenticationError):
        status_code = 401
    elif isinstance(error, TranslationCancelledError):
        status_code = CLIENT_CLOSED_REQUEST
    elif isinstance(error, EmptySourceTextError):
        status_code = 400
    else:
        status_code = 502
    raise HTTPException(status_code=status_code, detail=_error_payload(error))


class ProgressEventStream:
    """Queue-backed stream of progress events for one SSE client."""

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()

    def publish(self, event: Dict[str, Any]) -> None:
        self._queue.put_nowait(event)

    def close(self) -> None:
        self._queue.put_nowait(None)

    async def events(self) -> AsyncIterator[Dict[str, Any]]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event


@router.post("/translation/text")
async def translate_text(
    request: TranslateTextRequest,
    translator: TranslatorDep,
) -> TranslateTextResponse:
    """Translate a single string with a plain-text prompt."""
    api_key = resolve_api_key(request.api_key)

    try:
        translated = await translator.translate_string(
            request.text,
            request.source_language,
            request.target_language,
            api_key,
            request.to_options(),
        )
    except TranslationError as e:
        _raise_http_error(e)

    return TranslateTextResponse(translated_text=translated)


@router.post("/translation/strings")
async def translate_strings(
    request: TranslateStringsRequest,
    translator: TranslatorDep,
) -> TranslationBatchResult:
    """Translate strings into one target language.

    Per-key failures are reported in each result's `error`; only an
    unauthorized API key fails the whole request.
    """
    api_key = resolve_api_key(request.api_key)

    try:
        results = await translator.translate_batch(
            request.strings,
            request.source_language,
            request.target_language,
            api_key,
            request.to_options(),
        )
    except TranslationError as e:
        _raise_http_error(e)

    return TranslationBatchResult.from_results(request.target_language, results)


@router.post("/translation/batch")
async def translate_batch(
    request: TranslateBatchRequest,
    orchestrator: OrchestratorDep,
) -> TranslateBatchResponse:
    """Translate strings into several languages, two languages at a time."""
    api_key = resolve_api_key(request.api_key)

    try:
        results = await orchestrator.translate_multiple_languages(
            request.batches,
            request.source_language,
            api_key,
            request.to_options(),
        )
    except TranslationError as e:
        _raise_http_error(e)

    return TranslateBatchResponse(results=results)


@router.post("/translation/batch/stream")
async def translate_batch_stream(
    request: TranslateBatchRequest,
    orchestrator: OrchestratorDep,
):
    """Translate strings into several languages with streaming progress.

    Returns a Server-Sent Events (SSE) stream. Each event is a JSON object
    with a `type` of:
    - progress: language, completed, total, status
    - result: results for every language
    - error: message, code and the languages that completed
    - cancelled: the languages that completed before cancellation

    Closing the connection cancels the run at its next chunk boundary.
    """
    api_key = resolve_api_key(request.api_key)
    token = CancellationToken()
    stream = ProgressEventStream()

    def on_language_progress(language: str, completed: int, total: int, status: LanguageStatus) -> None:
        stream.publish({
            "type": "progress",
            "language": language,
            "completed": completed,
            "total": total,
            "status": status.value,
        })

    async def run() -> None:
        try:
            results = await orchestrator.translate_multiple_languages(
                request.batches,
                request.source_language,
                api_key,
                request.to_options(cancellation_token=token),
                on_language_progress=on_language_progress,
            )
            stream.publish({
                "type": "result",
                "results": [r.model_dump(by_alias=True) for r in results],
            })
        except TranslationCancelledError as e:
            stream.publish({"type": "cancelled", **_error_payload(e)})
        except TranslationError as e:
            stream.publish({"type": "error", **_error_payload(e)})
        except Exception as e:
            logger.exception(f"[Translation API] Streaming translation failed: {e}")
            stream.publish({"type": "error", "message": str(e), "code": None, "partialResults": []})
        finally:
            stream.close()

    async def event_generator():
        """Generate SSE events from the translation run."""
        task = asyncio.create_task(run())
        _background_runs.add(task)
        task.add_done_callback(_background_runs.discard)
        try:
            async for event in stream.events():
                yield f"data: {json.dumps(event)}\n\n"
        finally:
            if not task.done():
                logger.info("[Translation API] Client disconnected, cancelling translation")
                token.cancel(reason="client disconnected")

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        }
    )
