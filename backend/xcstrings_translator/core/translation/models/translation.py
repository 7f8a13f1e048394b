"""Translation request and result models.

These are the contract between the caller's document model and the
translation core. Field names are snake_case in Python and camelCase on
the wire.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class TranslationRequest(_WireModel):
    """One string to translate."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    key: str = Field(..., description="String key, unique within a batch")
    text: str = Field(..., description="Source text to translate")


class TranslationResult(_WireModel):
    """Verdict for one requested key.

    A failed key carries an error message and an empty translation.
    """

    key: str = Field(..., description="String key this result belongs to")
    translated_text: str = Field(
        default="", alias="translatedText", description="Translated text"
    )
    error: Optional[str] = Field(default=None, description="Per-key error message")

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def success(cls, key: str, translated_text: str) -> "TranslationResult":
        return cls(key=key, translated_text=translated_text)

    @classmethod
    def failure(cls, key: str, error: str) -> "TranslationResult":
        return cls(key=key, translated_text="", error=error)


class TranslationBatchRequest(_WireModel):
    """All requests for one target language."""

    language: str = Field(..., description="Target language code")
    requests: List[TranslationRequest] = Field(default_factory=list)


class TranslationBatchResult(_WireModel):
    """Outcome of translating one language."""

    language: str = Field(..., description="Target language code")
    results: List[TranslationResult] = Field(default_factory=list)
    completed: int = Field(default=0, description="Keys translated without error")
    failed: int = Field(default=0, description="Keys that carry an error")

    @classmethod
    def from_results(
        cls, language: str, results: List[TranslationResult]
    ) -> "TranslationBatchResult":
        failed = sum(1 for r in results if r.is_error)
        return cls(
            language=language,
            results=results,
            completed=len(results) - failed,
            failed=failed,
        )

    @property
    def failed_keys(self) -> List[str]:
        """Keys worth retrying."""
        return [r.key for r in self.results if r.is_error]
