from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional


CHANNEL_POLICIES = ("clamp", "wrap")


# Config dataclasses (lightweight & reusable)

@dataclass
class TransformConfig:
    channel_policy: str = "clamp"      # 'clamp' saturates to [0, 255] | 'wrap' keeps the low byte
    vignette_corrected: bool = False   # True -> normalise by the real half-diagonal

    def __post_init__(self) -> None:
        if self.channel_policy not in CHANNEL_POLICIES:
            raise ValueError(
                f"channel_policy must be one of {CHANNEL_POLICIES}, got {self.channel_policy!r}"
            )


@dataclass
class SessionConfig:
    transform: TransformConfig = field(default_factory=TransformConfig)
    preview_dir: Optional[str] = None  # PNG copies of before/after
    show: bool = False
