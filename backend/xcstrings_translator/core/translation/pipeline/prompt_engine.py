"""Prompt engine for UI string translation.

Builds PromptBundles for the two translation paths: a structured batch
prompt covering one chunk of keys, and a plain-text prompt for one string.
"""

from typing import Any, Dict, Optional, Sequence

from ..models.prompt import Message, PromptBundle
from ..models.translation import TranslationRequest

# JSON schema for the structured batch response
TRANSLATION_BATCH_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "translations": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "key": {
                        "type": "string",
                        "description": "The original key identifier",
                    },
                    "translatedText": {
                        "type": "string",
                        "description": "The translated text",
                    },
                },
                "required": ["key", "translatedText"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["translations"],
    "additionalProperties": False,
}

TRANSLATION_BATCH_RESPONSE_FORMAT: Dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": "translation_batch",
        "schema": TRANSLATION_BATCH_SCHEMA,
        "strict": True,
    },
}

TRANSLATION_GUIDELINES = """Keep the translation:
- Natural and fluent
- Contextually appropriate for the application
- Preserving any special formatting or placeholders (like %@, %d, %lld, %1$@, {name}, etc.)
- Maintaining the original tone and style"""

BATCH_PROMPT_TEMPLATE = """You are a professional translator. Translate the following texts from {source_language} to {target_language}.{context_section}

{guidelines}

Texts to translate:
{texts}

IMPORTANT: Return a JSON object with a "translations" array where each object contains the original "key" and the "translatedText". Match each key with its corresponding translation."""

SINGLE_PROMPT_TEMPLATE = """You are a professional translator. Translate the following text from {source_language} to {target_language}.{context_section}

{guidelines}

Text to translate: {text}

IMPORTANT: Respond with ONLY the translated text. Do not add quotes, explanations, or any additional formatting around the translation."""

SINGLE_MAX_TOKENS = 1000


class PromptEngine:
    """Builds prompt bundles for translation calls."""

    @staticmethod
    def _context_section(app_context: Optional[str]) -> str:
        if not app_context or not app_context.strip():
            return ""
        return (
            f"\n\nApp Context: {app_context.strip()}\n\n"
            "Use this context to make your translation more accurate and "
            "appropriate for the specific application."
        )

    @classmethod
    def build_batch(
        cls,
        requests: Sequence[TranslationRequest],
        source_language: str,
        target_language: str,
        *,
        app_context: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> PromptBundle:
        """Build the structured-output prompt for one chunk.

        Args:
            requests: Chunk of requests to translate
            source_language: Source language code
            target_language: Target language code
            app_context: Optional description of the app being localized
            temperature: Sampling temperature
            max_tokens: Response token limit

        Returns:
            PromptBundle with a json_schema response format
        """
        texts = "\n\n".join(f"Key: {r.key}\nText: {r.text}" for r in requests)
        prompt = BATCH_PROMPT_TEMPLATE.format(
            source_language=source_language,
            target_language=target_language,
            context_section=cls._context_section(app_context),
            guidelines=TRANSLATION_GUIDELINES,
            texts=texts,
        )

        return PromptBundle(
            messages=[Message(role="user", content=prompt)],
            temperature=temperature,
            max_tokens=max_tokens,
            response_format=TRANSLATION_BATCH_RESPONSE_FORMAT,
            purpose="batch",
            source_language=source_language,
            target_language=target_language,
            keys=[r.key for r in requests],
        )

    @classmethod
    def build_single(
        cls,
        text: str,
        source_language: str,
        target_language: str,
        *,
        app_context: Optional[str] = None,
        temperature: float = 0.3,
    ) -> PromptBundle:
        """Build the plain-text prompt for a single string."""
        prompt = SINGLE_PROMPT_TEMPLATE.format(
            source_language=source_language,
            target_language=target_language,
            context_section=cls._context_section(app_context),
            guidelines=TRANSLATION_GUIDELINES,
            text=text,
        )

        return PromptBundle(
            messages=[Message(role="user", content=prompt)],
            temperature=temperature,
            max_tokens=SINGLE_MAX_TOKENS,
            purpose="single",
            source_language=source_language,
            target_language=target_language,
        )
