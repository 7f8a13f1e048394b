"""Input validation helpers shared by the HTTP request models."""

import re
from dataclasses import dataclass
from typing import Optional

LANGUAGE_CODE_PATTERN = re.compile(r"^[a-zA-Z]{2,3}(-[a-zA-Z]{2,4})?$")


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of validating a single value."""

    is_valid: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationOutcome":
        return cls(is_valid=True)

    @classmethod
    def invalid(cls, error: str) -> "ValidationOutcome":
        return cls(is_valid=False, error=error)


def validate_language_code(code: Optional[str]) -> ValidationOutcome:
    """Check a language code such as "en", "fr", "zh-Hans" or "pt-BR".

    Args:
        code: Language code to check

    Returns:
        ValidationOutcome with an error message when invalid
    """
    if not code or not code.strip():
        return ValidationOutcome.invalid("Language code is required")
    if not LANGUAGE_CODE_PATTERN.match(code):
        return ValidationOutcome.invalid(f"Invalid language code format: {code}")
    return ValidationOutcome.ok()


def validate_api_key(api_key: Optional[str]) -> ValidationOutcome:
    """Check that an API key was supplied."""
    if not api_key or not api_key.strip():
        return ValidationOutcome.invalid("API key is required")
    return ValidationOutcome.ok()
