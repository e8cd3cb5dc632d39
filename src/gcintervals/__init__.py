"""
gcintervals: coverage-aware interval planning for consensus calling

Finds the parts of a reference window that are spanned by enough aligned
reads to be called confidently, and the holes in between.
"""

__version__ = "0.3.0"

from gcintervals.core.chemistry import ChemistryTriple
from gcintervals.core.interval import CoverageInterval, Interval, ReferenceWindow
from gcintervals.core.intervals import (
    clamp,
    coverage_intervals,
    fancy_intervals,
    holes,
    k_spanned_intervals,
    project_into_range,
    split_interval,
)
from gcintervals.index.bam_source import BamIntervalSource
from gcintervals.index.read_index import (
    AlignedRead,
    IntervalSource,
    ReadIntervalIndex,
    filtered_intervals,
    filtered_window_intervals,
)
from gcintervals.consensus.planner import ConsensusIntervalPlanner, PlannedInterval
from gcintervals.consensus.settings import Settings

__all__ = [
    "AlignedRead",
    "BamIntervalSource",
    "ChemistryTriple",
    "ConsensusIntervalPlanner",
    "CoverageInterval",
    "Interval",
    "IntervalSource",
    "PlannedInterval",
    "ReadIntervalIndex",
    "ReferenceWindow",
    "Settings",
    "clamp",
    "coverage_intervals",
    "fancy_intervals",
    "filtered_intervals",
    "filtered_window_intervals",
    "holes",
    "k_spanned_intervals",
    "project_into_range",
    "split_interval",
]
