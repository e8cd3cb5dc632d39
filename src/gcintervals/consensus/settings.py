"""Settings for consensus interval planning."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    """Thresholds used when deciding which window regions can be called."""

    min_coverage: int = 5  # Reads that must span a called interval
    min_map_qv: int = 10  # Minimum mapping quality for a read to count
    window_span: int = 500  # Reference chunk size processed at a time
    min_length: int = 0  # Shorter covered intervals are treated as holes

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.min_coverage < 0:
            raise ValueError(f"min_coverage cannot be negative: {self.min_coverage}")
        if not 0 <= self.min_map_qv <= 255:
            raise ValueError(f"min_map_qv must be within 0-255: {self.min_map_qv}")
        if self.window_span <= 0:
            raise ValueError(f"window_span must be positive: {self.window_span}")
        if self.min_length < 0:
            raise ValueError(f"min_length cannot be negative: {self.min_length}")
