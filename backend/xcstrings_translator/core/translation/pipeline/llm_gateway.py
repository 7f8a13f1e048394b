"""LLM Gateway for unified provider access.

Every provider is reached through LiteLLM. Provider failures are mapped onto
the translation error taxonomy here, so nothing above the gateway depends
on litellm exception types.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import litellm
from litellm import acompletion

from xcstrings_translator.config import settings

from ..exceptions import ProviderAuthenticationError, ProviderError, ProviderResponseError
from ..models.prompt import PromptBundle
from ..models.response import LLMResponse, TokenUsage

logger = logging.getLogger(__name__)

UNAUTHORIZED_STATUS = 401

# LiteLLM route prefix and default endpoint per provider
PROVIDER_CONFIGS: Dict[str, Dict[str, Optional[str]]] = {
    "openai": {"prefix": "openai", "base_url": None},
    "anthropic": {"prefix": "anthropic", "base_url": None},
    "deepseek": {"prefix": "deepseek", "base_url": "https://api.deepseek.com/v1"},
    "gemini": {"prefix": "gemini", "base_url": None},
    "ollama": {"prefix": "ollama", "base_url": None},
    "openrouter": {"prefix": "openrouter", "base_url": None},
}


def litellm_model_name(provider: str, model: str) -> str:
    """Route a model through its provider prefix unless it already has one.

    Unknown providers pass the model through unchanged. Bare "claude-*"
    names are understood by LiteLLM without a prefix.
    """
    config = PROVIDER_CONFIGS.get(provider)
    if config is None or (provider == "anthropic" and model.startswith("claude")):
        return model
    prefix = config["prefix"]
    return model if model.startswith(f"{prefix}/") else f"{prefix}/{model}"


class LLMGateway(ABC):
    """Abstract gateway for LLM providers."""

    @property
    @abstractmethod
    def provider(self) -> str:
        pass

    @property
    @abstractmethod
    def model(self) -> str:
        pass

    @abstractmethod
    async def call(self, bundle: PromptBundle) -> LLMResponse:
        """Send one prompt to the provider.

        Args:
            bundle: Prompt bundle with messages and configuration

        Returns:
            LLMResponse with the raw content

        Raises:
            ProviderAuthenticationError: The provider rejected the credentials
            ProviderError: Any other provider failure
        """
        pass


class LiteLLMGateway(LLMGateway):
    """Gateway for every provider LiteLLM can route to."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
        provider_name: str = "openai",
        timeout: Optional[float] = None,
    ):
        """Initialize LiteLLM gateway.

        Args:
            api_key: API key for authentication
            model: Model identifier
            base_url: Optional custom base URL for compatible APIs
            provider_name: Provider name used for routing and logging
            timeout: Request timeout in seconds (defaults to settings.request_timeout)
        """
        self._api_key = api_key
        self._model = model
        self._base_url = base_url
        self._provider = provider_name
        self._timeout = timeout if timeout is not None else settings.request_timeout
        self._litellm_model = litellm_model_name(provider_name, model)

        logger.debug(
            f"[LLM Gateway] Initialized: provider={provider_name}, "
            f"litellm_model={self._litellm_model}, base_url={base_url}"
        )

    @property
    def provider(self) -> str:
        return self._provider

    @property
    def model(self) -> str:
        return self._model

    def _request_kwargs(self, bundle: PromptBundle) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": self._litellm_model,
            "messages": bundle.to_openai_format(),
            "temperature": bundle.temperature,
            "max_tokens": bundle.max_tokens,
            "api_key": self._api_key,
            "timeout": self._timeout,
        }
        if self._base_url:
            kwargs["api_base"] = self._base_url
        if bundle.response_format:
            kwargs["response_format"] = bundle.response_format
        return kwargs

    def _auth_error(self, error: Exception) -> ProviderAuthenticationError:
        return ProviderAuthenticationError(
            f"{self._provider} rejected the API key: {error}",
            details={"provider": self._provider},
        )

    async def call(self, bundle: PromptBundle) -> LLMResponse:
        logger.info(
            f"[LLM Gateway] {self._litellm_model}: {bundle.describe()}, "
            f"~{bundle.estimate_tokens()} input tokens"
        )
        started = time.monotonic()

        try:
            response = await acompletion(**self._request_kwargs(bundle))
        except litellm.AuthenticationError as e:
            raise self._auth_error(e) from e
        except Exception as e:
            status_code = getattr(e, "status_code", None)
            if status_code == UNAUTHORIZED_STATUS:
                raise self._auth_error(e) from e
            raise ProviderError(str(e), status_code=status_code) from e

        latency_ms = int((time.monotonic() - started) * 1000)

        choices: List[Any] = response.choices or []
        if not choices:
            raise ProviderResponseError(f"No response received from {self._provider}")

        choice = choices[0]
        usage = TokenUsage.from_provider(getattr(response, "usage", None))
        logger.debug(
            f"[LLM Gateway] {bundle.describe()}: tokens={usage.total_tokens}, latency={latency_ms}ms"
        )

        return LLMResponse(
            content=choice.message.content or "",
            provider=self._provider,
            model=self._model,
            usage=usage,
            latency_ms=latency_ms,
            finish_reason=getattr(choice, "finish_reason", None),
        )


class GatewayFactory:
    """Factory for creating LLM gateways."""

    PROVIDER_CONFIGS = PROVIDER_CONFIGS

    @classmethod
    def create(
        cls,
        provider: str,
        api_key: str,
        model: str,
        **kwargs,
    ) -> LLMGateway:
        """Create an LLM gateway for the specified provider.

        Unknown providers are routed to LiteLLM with the model name as given.

        Args:
            provider: Provider name (openai, anthropic, deepseek, gemini, ...)
            api_key: API key for authentication
            model: Model identifier
            **kwargs: Additional arguments for the gateway (base_url, timeout)

        Returns:
            Configured LLMGateway instance
        """
        provider = provider.lower()
        config = cls.PROVIDER_CONFIGS.get(provider, {})
        base_url = kwargs.pop("base_url", config.get("base_url"))

        return LiteLLMGateway(
            api_key=api_key,
            model=model,
            base_url=base_url,
            provider_name=provider,
            **kwargs,
        )

    @classmethod
    def get_supported_providers(cls) -> list[str]:
        """Get list of supported provider names."""
        return list(cls.PROVIDER_CONFIGS.keys())
