"""Pipeline configuration loaded from defaults, environment variables and CLI flags."""

import os
from dataclasses import dataclass, fields
from typing import Any, Optional


ENV_PREFIX = "SCAN_ENHANCE_"


@dataclass(frozen=True)
class EnhanceConfig:
    # Long edge of the working image, in pixels.
    max_long_edge: int = 1024
    gamma: float = 0.8
    # Adaptive threshold half-window is max(min_window, width // window_divisor).
    window_divisor: int = 40
    min_window: int = 10
    threshold_bias: float = 8.0
    # Skew search covers -skew_max_angle..skew_max_angle in 1° steps, 0 excluded.
    skew_max_angle: int = 5
    skew_sample_stride: int = 4
    # 0–1 fraction, as a canvas encoder takes it.
    jpeg_quality: float = 0.9

    def __post_init__(self) -> None:
        if self.max_long_edge < 2:
            raise ValueError(f"max_long_edge must be at least 2, got {self.max_long_edge}")
        if self.gamma <= 0:
            raise ValueError(f"gamma must be positive, got {self.gamma}")
        if self.window_divisor < 1 or self.min_window < 1:
            raise ValueError("window_divisor and min_window must be positive")
        if self.threshold_bias < 0:
            raise ValueError(f"threshold_bias must not be negative, got {self.threshold_bias}")
        if self.skew_max_angle < 1:
            raise ValueError(f"skew_max_angle must be at least 1, got {self.skew_max_angle}")
        if self.skew_sample_stride < 1:
            raise ValueError(f"skew_sample_stride must be positive, got {self.skew_sample_stride}")
        if not 0 < self.jpeg_quality <= 1:
            raise ValueError(f"jpeg_quality must be in (0, 1], got {self.jpeg_quality}")

    def window_size(self, width: int) -> int:
        """Adaptive threshold half-window for an image of the given width."""
        return max(self.min_window, width // self.window_divisor)

    @classmethod
    def from_env(cls, **overrides: Optional[Any]) -> "EnhanceConfig":
        """Build a config from ``SCAN_ENHANCE_*`` variables.

        Explicit overrides that are not ``None`` take precedence over the
        environment, which takes precedence over the defaults.
        """
        values: dict[str, Any] = {}
        for field in fields(cls):
            override = overrides.pop(field.name, None)
            if override is not None:
                values[field.name] = override
                continue
            env_key = ENV_PREFIX + field.name.upper()
            raw = os.environ.get(env_key)
            if raw is None or raw.strip() == "":
                continue
            caster = int if field.type in (int, "int") else float
            try:
                values[field.name] = caster(raw)
            except ValueError:
                raise RuntimeError(
                    f"Invalid value {raw!r} for {env_key}; expected {caster.__name__}."
                ) from None
        if overrides:
            raise TypeError(f"Unknown config option(s): {', '.join(sorted(overrides))}")
        return cls(**values)
