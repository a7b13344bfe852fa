"""Sprite definition models.

A SpriteDefinition is a square canvas with a 16-slot palette and an ordered
list of layers. Pixels are palette indices; 0 is transparent. Later layers
draw over earlier ones.
"""

from pydantic import BaseModel, Field

from .base import CamelModel

PALETTE_SIZE = 16
TRANSPARENT = "transparent"


class SpriteLayer(CamelModel):
    name: str
    pixels: list[list[int]]
    offset_x: int = 0
    offset_y: int = 0


class SpriteDefinition(CamelModel):
    width: int
    height: int
    layers: list[SpriteLayer]
    palette: list[str] = Field(min_length=PALETTE_SIZE, max_length=PALETTE_SIZE)

    def composite(self) -> list[list[int]]:
        """Flatten layers into one index grid, later layers on top."""
        grid = [[0] * self.width for _ in range(self.height)]
        for layer in self.layers:
            for y, row in enumerate(layer.pixels):
                gy = y + layer.offset_y
                if not 0 <= gy < self.height:
                    continue
                for x, index in enumerate(row):
                    gx = x + layer.offset_x
                    if index != 0 and 0 <= gx < self.width:
                        grid[gy][gx] = index
        return grid


class SpriteAssetValidation(BaseModel):
    """Outcome of validating an untrusted sprite asset payload."""

    ok: bool
    asset: SpriteDefinition | None = None
    errors: list[str] = Field(default_factory=list)


class SpriteAssetQuality(BaseModel):
    """Heuristic readability metrics for a composited sprite, each in [0, 1]."""

    score: float
    density: float
    isolated_pixel_ratio: float
    largest_component_ratio: float
    asymmetry: float
    issues: list[str] = Field(default_factory=list)


class StoredSpriteAsset(SpriteDefinition):
    """A provider-authored sprite as persisted on a profile or in the cache."""

    model_version: str | None = None
    quality_score: float | None = None
