"""Positional indexes that supply read intervals."""

from gcintervals.index.bam_source import BamIntervalSource
from gcintervals.index.read_index import (
    AlignedRead,
    IntervalSource,
    ReadIntervalIndex,
    filtered_intervals,
    filtered_window_intervals,
)

__all__ = [
    "AlignedRead",
    "BamIntervalSource",
    "IntervalSource",
    "ReadIntervalIndex",
    "filtered_intervals",
    "filtered_window_intervals",
]
