"""Core data structures and interval algorithms."""

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

__all__ = [
    "ChemistryTriple",
    "CoverageInterval",
    "Interval",
    "ReferenceWindow",
    "clamp",
    "coverage_intervals",
    "fancy_intervals",
    "holes",
    "k_spanned_intervals",
    "project_into_range",
    "split_interval",
]
