"""Provider-agnostic LLM response records."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class TokenUsage(BaseModel):
    """Token consumption of one call."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_provider(cls, usage: Any) -> "TokenUsage":
        """Read an OpenAI-style usage object, tolerating missing fields."""
        if usage is None:
            return cls()
        prompt = getattr(usage, "prompt_tokens", 0) or 0
        completion = getattr(usage, "completion_tokens", 0) or 0
        total = getattr(usage, "total_tokens", 0) or prompt + completion
        return cls(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total)


class LLMResponse(BaseModel):
    """What came back from one provider call."""

    content: str = Field(..., description="Raw message content")
    provider: str
    model: str
    usage: TokenUsage = Field(default_factory=TokenUsage)
    latency_ms: int = 0
    finish_reason: Optional[str] = Field(
        default=None, description="Why the provider stopped generating"
    )

    @property
    def was_truncated(self) -> bool:
        """True when generation stopped at the token limit."""
        return self.finish_reason == "length"
