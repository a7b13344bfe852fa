"""Shared pydantic base for models exchanged as camelCase JSON."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model whose wire format uses camelCase keys.

    Fields are declared in snake_case and accept either spelling on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_payload(self) -> dict:
        """Dump to the camelCase wire format, dropping unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
