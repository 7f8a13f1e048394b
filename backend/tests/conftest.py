"""
Pytest configuration and fixtures for the translation core and API.
"""

import asyncio
import json
import re
from typing import Dict, List, Optional, Set

import pytest

from xcstrings_translator.core.cache import InMemoryCacheStore, TranslationCache
from xcstrings_translator.core.translation import (
    ChunkedTranslator,
    MultiLanguageOrchestrator,
    ProviderAuthenticationError,
    ProviderError,
    TranslationBatchRequest,
    TranslationRequest,
)
from xcstrings_translator.core.translation.models import LLMResponse, PromptBundle
from xcstrings_translator.core.translation.pipeline import LLMGateway

KEY_TEXT_PATTERN = re.compile(r"Key: (.+)\nText: (.*)")
SINGLE_TEXT_PATTERN = re.compile(r"Text to translate: (.*)\n")

START_MS = 1_700_000_000_000


class FakeClock:
    """Controllable epoch-millisecond clock."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeProvider:
    """Scripted stand-in for the LLM provider.

    Translates "text" into "[lang] text" and records every call. Every
    gateway built by `factory` shares this state, so concurrency across
    languages can be observed.
    """

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.calls: List[PromptBundle] = []
        self.gateways: List[Dict[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        # Chunks containing one of these keys fail with a provider error
        self.fail_keys: Set[str] = set()
        # Keys left out of otherwise valid responses
        self.missing_keys: Set[str] = set()
        # Target languages whose calls are rejected as unauthorized
        self.unauthorized_languages: Set[str] = set()
        # The next N calls fail with a rate limit error
        self.transient_failures = 0
        # Returned verbatim instead of a generated payload
        self.raw_content: Optional[str] = None

    def factory(self, provider: str, api_key: str, model: str, **kwargs) -> LLMGateway:
        self.gateways.append({"provider": provider, "api_key": api_key, "model": model})
        return FakeGateway(self, provider, model)

    def calls_for(self, language: str) -> List[PromptBundle]:
        return [c for c in self.calls if target_of(c) == language]

    async def respond(self, bundle: PromptBundle) -> str:
        self.calls.append(bundle)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)

            target = target_of(bundle)
            if target in self.unauthorized_languages:
                raise ProviderAuthenticationError()
            if self.transient_failures > 0:
                self.transient_failures -= 1
                raise ProviderError("Rate limit exceeded", status_code=429)
            if self.raw_content is not None:
                return self.raw_content

            if bundle.purpose == "single":
                text = SINGLE_TEXT_PATTERN.search(bundle.user_prompt).group(1)
                return f'"[{target}] {text}"'

            pairs = KEY_TEXT_PATTERN.findall(bundle.user_prompt)
            if any(key in self.fail_keys for key, _ in pairs):
                raise ProviderError("Service unavailable", status_code=503)

            translations = [
                {"key": key, "translatedText": f"[{target}] {text}"}
                for key, text in pairs
                if key not in self.missing_keys
            ]
            return json.dumps({"translations": translations})
        finally:
            self.in_flight -= 1


class FakeGateway(LLMGateway):
    def __init__(self, provider: FakeProvider, provider_name: str, model: str):
        self._fake = provider
        self._provider_name = provider_name
        self._model = model

    @property
    def provider(self) -> str:
        return self._provider_name

    @property
    def model(self) -> str:
        return self._model

    async def call(self, bundle: PromptBundle) -> LLMResponse:
        content = await self._fake.respond(bundle)
        return LLMResponse(content=content, provider=self._provider_name, model=self._model)


def target_of(bundle: PromptBundle) -> str:
    return bundle.target_language


def make_requests(count: int, prefix: str = "key") -> List[TranslationRequest]:
    return [TranslationRequest(key=f"{prefix}_{i}", text=f"Text {i}") for i in range(count)]


def make_batches(languages: List[str], count: int) -> List[TranslationBatchRequest]:
    return [TranslationBatchRequest(language=lang, requests=make_requests(count)) for lang in languages]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryCacheStore()


@pytest.fixture
def cache(store, clock):
    return TranslationCache(store=store, clock=clock)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def translator(cache, provider):
    return ChunkedTranslator(cache, gateway_factory=provider.factory, provider="openai", retry_delay=0)


@pytest.fixture
def orchestrator(translator):
    return MultiLanguageOrchestrator(translator)
