"""Abstract base for design providers.

A design provider turns a PromptBundle into untrusted JSON. Callers never
trust the result: designer output is normalized and validated as a
VisualSpec, sprite output as a sprite asset or DSL payload.
"""

from abc import ABC, abstractmethod
from typing import Any

from ..models import PromptBundle


class DesignProviderError(Exception):
    """Raised when a provider request fails or returns unusable content.

    Covers transport errors, timeouts, non-2xx responses, missing assistant
    content and unparseable JSON. Hydration catches it and degrades to
    local generation.
    """


class DesignProvider(ABC):
    """Abstract design provider.

    Subclasses implement ``complete_json``; they must wrap every failure in
    DesignProviderError so callers can handle a single exception type.
    """

    provider_name: str = "unknown"

    def __init__(self, model: str) -> None:
        self.model = model

    @property
    def model_version(self) -> str:
        """Provenance tag recorded on specs and assets this provider authors."""
        return f"{self.provider_name}:{self.model}"

    @abstractmethod
    def complete_json(
        self,
        prompt: PromptBundle,
        *,
        temperature: float = 0.2,
        max_tokens: int | None = None,
        log: bool = True,
    ) -> Any:
        """Send a prompt and return the parsed JSON value of the reply.

        Raises:
            DesignProviderError: On any request or parse failure
        """
        ...

    def close(self) -> None:
        """Release network resources. Default is a no-op."""
