"""
Interval value types for coverage-aware window planning.

All coordinates are 0-based and half-open (``[start, end)``), matching BED
and pysam conventions. Values are immutable and hashable so they can be
shared freely between threads and used as dictionary keys.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass


@dataclass(slots=True, frozen=True, order=True)
class Interval:
    """
    Half-open integer range ``[start, end)``.

    Ordering is by ``start`` and then ``end``. An interval with
    ``start == end`` is empty but valid.
    """

    start: int  # 0-based, inclusive
    end: int    # 0-based, exclusive

    def __post_init__(self) -> None:
        """Validate interval coordinates."""
        for coord in (self.start, self.end):
            if not isinstance(coord, numbers.Integral) or isinstance(coord, bool):
                raise ValueError(f"Interval coordinates must be integers: {coord!r}")
        if self.start < 0:
            raise ValueError(f"Start position cannot be negative: {self.start}")
        if self.end < self.start:
            raise ValueError(
                f"End position ({self.end}) must not be less than "
                f"start position ({self.start})"
            )

    @property
    def length(self) -> int:
        """Return interval length in base pairs."""
        return self.end - self.start

    def is_empty(self) -> bool:
        return self.start == self.end

    def contains(self, pos: int) -> bool:
        """Check if a single position lies inside the interval."""
        return self.start <= pos < self.end

    def overlaps(self, other: Interval) -> bool:
        """Check if this interval shares at least one position with another."""
        return self.start < other.end and other.start < self.end

    def intersection(self, other: Interval) -> Interval | None:
        """Return the shared sub-interval, or None if they do not overlap."""
        if not self.overlaps(other):
            return None
        return Interval(max(self.start, other.start), min(self.end, other.end))

    def as_tuple(self) -> tuple[int, int]:
        return (self.start, self.end)

    def __repr__(self) -> str:
        return f"[{self.start}, {self.end})"


@dataclass(slots=True, frozen=True)
class CoverageInterval:
    """A run of positions that all share the same read depth."""

    interval: Interval
    coverage: int

    def __post_init__(self) -> None:
        if self.coverage < 0:
            raise ValueError(f"Coverage cannot be negative: {self.coverage}")


@dataclass(slots=True, frozen=True)
class ReferenceWindow:
    """
    Region of interest on a named reference sequence.

    Example:
        >>> window = ReferenceWindow.from_coords("chr1", 1000, 1500)
        >>> window.region
        'chr1:1000-1500'
    """

    ref_name: str
    interval: Interval

    @classmethod
    def from_coords(cls, ref_name: str, start: int, end: int) -> ReferenceWindow:
        return cls(ref_name=ref_name, interval=Interval(start, end))

    @property
    def start(self) -> int:
        return self.interval.start

    @property
    def end(self) -> int:
        return self.interval.end

    @property
    def length(self) -> int:
        return self.interval.length

    @property
    def region(self) -> str:
        """Samtools-style region string, used in log messages."""
        return f"{self.ref_name}:{self.start}-{self.end}"
