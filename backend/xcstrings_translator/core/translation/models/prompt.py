"""Prompt records handed from the PromptEngine to an LLMGateway."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

# Mixed-script UI strings average roughly three characters per token
CHARS_PER_TOKEN = 3


class Message(BaseModel):
    """One chat message."""

    role: str = Field(..., description="'system', 'user' or 'assistant'")
    content: str


class PromptBundle(BaseModel):
    """Everything a gateway needs for one translation call.

    Built either for a chunk of keys (purpose "batch", with a json_schema
    response format) or for a single string (purpose "single", plain text).
    """

    messages: List[Message]
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=4000, gt=0, description="Response token limit")
    response_format: Optional[Dict[str, Any]] = Field(
        default=None, description="Structured output schema, batch calls only"
    )

    purpose: str = Field(default="batch", description="'batch' or 'single'")
    source_language: str = ""
    target_language: str = ""
    keys: List[str] = Field(default_factory=list, description="Keys covered by a batch prompt")

    @property
    def key_count(self) -> int:
        return len(self.keys)

    @property
    def user_prompt(self) -> Optional[str]:
        return next((m.content for m in self.messages if m.role == "user"), None)

    def to_openai_format(self) -> List[Dict[str, str]]:
        """Messages as the list of role/content dicts chat APIs expect."""
        return [m.model_dump() for m in self.messages]

    def estimate_tokens(self) -> int:
        return sum(len(m.content) for m in self.messages) // CHARS_PER_TOKEN

    def describe(self) -> str:
        """Short label for log lines."""
        label = f"{self.purpose} {self.source_language}->{self.target_language}"
        if self.keys:
            label += f" ({self.key_count} keys)"
        return label
