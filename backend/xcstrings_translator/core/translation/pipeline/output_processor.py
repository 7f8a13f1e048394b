"""Output processor for translation responses.

Turns raw LLM content into per-key TranslationResults. Malformed payloads
raise ProviderResponseError so the chunk can be retried; keys the model left
out become per-key errors.
"""

import json
import logging
import re
from typing import Dict, List, Sequence

from xcstrings_translator.utils.text import safe_truncate, strip_wrapping_quotes

from ..exceptions import ProviderResponseError
from ..models.response import LLMResponse
from ..models.translation import TranslationRequest, TranslationResult

logger = logging.getLogger(__name__)

MISSING_TRANSLATION_ERROR = "Translation not found in response"

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n(.*?)\n?```\s*$", re.DOTALL)


class OutputProcessor:
    """Processes raw LLM responses into translation results.

    Responsibilities:
    1. Extract the JSON document from the response content
    2. Validate the structured `translations` payload
    3. Match translations back to the requested keys
    """

    def process_batch(
        self,
        response: LLMResponse,
        requests: Sequence[TranslationRequest],
    ) -> List[TranslationResult]:
        """Map a structured batch response onto the chunk's requests.

        Args:
            response: Raw response from LLM
            requests: Requests that were sent in this chunk

        Returns:
            One TranslationResult per request, in request order

        Raises:
            ProviderResponseError: If the content is truncated or not the expected JSON
        """
        if response.was_truncated:
            raise ProviderResponseError(
                f"Response was cut off at the token limit after {response.usage.completion_tokens} tokens"
            )

        translations = self.parse_translations(response.content)

        requested = {r.key for r in requests}
        extra = [k for k in translations if k not in requested]
        if extra:
            logger.debug(f"[Output Processor] Ignoring {len(extra)} unrequested keys in response")

        results: List[TranslationResult] = []
        for request in requests:
            if request.key in translations:
                results.append(TranslationResult.success(request.key, translations[request.key]))
            else:
                results.append(TranslationResult.failure(request.key, MISSING_TRANSLATION_ERROR))
        return results

    def parse_translations(self, content: str) -> Dict[str, str]:
        """Parse `{"translations": [{"key", "translatedText"}, ...]}`.

        Returns:
            Mapping of key to translated text. When a key repeats, the last
            occurrence wins.
        """
        if not content or not content.strip():
            raise ProviderResponseError("No response received from provider")

        document = self._extract_json(content)
        try:
            parsed = json.loads(document)
        except json.JSONDecodeError as e:
            raise ProviderResponseError(
                f"Malformed JSON in response: {e.msg} ({safe_truncate(document, 80)})"
            ) from e

        if not isinstance(parsed, dict) or not isinstance(parsed.get("translations"), list):
            raise ProviderResponseError("Response is missing the 'translations' array")

        translations: Dict[str, str] = {}
        for item in parsed["translations"]:
            if not isinstance(item, dict):
                continue
            key = item.get("key")
            text = item.get("translatedText")
            if isinstance(key, str) and isinstance(text, str):
                translations[key] = text
        return translations

    def process_single(self, response: LLMResponse) -> str:
        """Extract a plain-text translation.

        Raises:
            ProviderResponseError: If the model returned nothing
        """
        text = response.content.strip()
        if not text:
            raise ProviderResponseError("No translation received from provider")
        return strip_wrapping_quotes(text)

    def _extract_json(self, content: str) -> str:
        """Strip a surrounding markdown code fence, if any."""
        content = content.strip()
        match = _CODE_FENCE.match(content)
        if match:
            return match.group(1).strip()
        return content
