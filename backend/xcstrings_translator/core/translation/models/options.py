"""Translation options."""

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Optional

from xcstrings_translator.config import settings

if TYPE_CHECKING:
    from ..cancellation import CancellationToken, ProgressCallback


@dataclass
class TranslationOptions:
    """Per-call translation configuration.

    Defaults come from application settings.
    """

    model: str = field(default_factory=lambda: settings.default_model)
    max_retries: int = field(default_factory=lambda: settings.max_retries)
    temperature: float = field(default_factory=lambda: settings.temperature)
    app_context: Optional[str] = None
    on_progress: Optional["ProgressCallback"] = None
    cancellation_token: Optional["CancellationToken"] = None

    def with_overrides(self, **changes: Any) -> "TranslationOptions":
        """Create a copy with specific fields replaced."""
        return replace(self, **changes)
