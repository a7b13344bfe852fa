"""Models exchanged with design providers and produced by batch hydration."""

from pydantic import BaseModel


class PromptBundle(BaseModel):
    """Plain-text instructions plus a JSON-shaped output description."""

    system: str
    user: str
    output_schema: str

    def user_message(self) -> str:
        """User turn with the output description appended."""
        return f"{self.user}\n\nSchema:\n{self.output_schema}"


class DesignerHydrationResult(BaseModel):
    """Counters for one designer hydration batch."""

    enabled: bool = True
    provider: str
    model: str
    requested: int = 0
    applied: int = 0
    cached: int = 0
    failed: int = 0


class SpriteHydrationResult(BaseModel):
    """Counters for one sprite hydration batch."""

    enabled: bool
    mode: str
    provider: str
    model: str
    requested: int = 0
    applied: int = 0
    cached: int = 0
    failed: int = 0
    skipped: int = 0
