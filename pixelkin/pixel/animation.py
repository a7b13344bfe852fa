"""Static idle-animation frames for an external animator."""

import math
import time

from ..core.models import SpriteDefinition

IDLE_BOUNCE_PX = 1
DEFAULT_IDLE_FPS = 2


def generate_idle_frames(sprite: SpriteDefinition) -> list[SpriteDefinition]:
    """Three-frame bounce: rest, lifted by one pixel, rest."""
    lifted = sprite.model_copy(
        update={
            "layers": [
                layer.model_copy(update={"offset_y": layer.offset_y - IDLE_BOUNCE_PX})
                for layer in sprite.layers
            ]
        }
    )
    return [sprite, lifted, sprite]


def get_current_frame(
    frame_count: int, fps: float = DEFAULT_IDLE_FPS, now: float | None = None
) -> int:
    """Frame index to show at wall-clock time ``now`` (seconds)."""
    if frame_count <= 0:
        raise ValueError("frame_count must be positive")
    timestamp_ms = (time.time() if now is None else now) * 1000
    return math.floor(timestamp_ms / (1000 / fps)) % frame_count
