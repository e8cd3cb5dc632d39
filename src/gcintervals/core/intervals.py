"""
Coverage and interval algorithms over a reference window.

These functions decide which parts of a window carry enough sequencing
evidence to be called by a consensus caller:

- project_into_range: per-position read depth over a window
- coverage_intervals: piecewise-constant depth profile
- holes: complement of a disjoint interval set within a window
- k_spanned_intervals: greedy search for sub-intervals spanned by k reads
- split_interval: fixed-size partitioning of an interval
- fancy_intervals: k-spanned intervals, optionally gap-filled with holes

All functions are pure. Input sequences are never mutated.
"""

from __future__ import annotations

import heapq
import logging
from functools import singledispatch
from typing import TYPE_CHECKING, Iterable, Optional, Sequence, Union

import numpy as np

from .interval import CoverageInterval, Interval, ReferenceWindow

if TYPE_CHECKING:
    from ..consensus.settings import Settings
    from ..index.read_index import IntervalSource

logger = logging.getLogger(__name__)


def clamp(pos: int, lo: int, hi: int) -> int:
    """Bound ``pos`` into ``[lo, hi]``. ``lo <= hi`` is not checked."""
    if pos < lo:
        return lo
    if pos > hi:
        return hi
    return pos


def _window_offsets(
    intervals: Iterable[Interval], window: Interval
) -> tuple[np.ndarray, np.ndarray]:
    """Clip intervals to the window and shift them so window.start is 0."""
    starts = []
    ends = []
    for interval in intervals:
        starts.append(clamp(interval.start, window.start, window.end) - window.start)
        ends.append(clamp(interval.end, window.start, window.end) - window.start)
    return np.asarray(starts, dtype=np.int64), np.asarray(ends, dtype=np.int64)


def _depth(starts: np.ndarray, ends: np.ndarray, length: int) -> np.ndarray:
    # Difference array: +1 where a read begins, -1 where it stops
    delta = np.zeros(length + 1, dtype=np.int64)
    np.add.at(delta, starts, 1)
    np.add.at(delta, ends, -1)
    return np.cumsum(delta[:-1])


def project_into_range(intervals: Iterable[Interval], window: Interval) -> list[int]:
    """
    Find the coverage in ``window`` implied by ``intervals``.

    Intervals hanging over the window edges are clipped rather than
    rejected, so callers can pass raw read extents.

    Args:
        intervals: Read intervals in any order, overlaps allowed
        window: Window to project into

    Returns:
        One depth value per window position, indexed by
        ``position - window.start``

    Example:
        >>> project_into_range([Interval(0, 5), Interval(3, 8)], Interval(2, 6))
        [1, 2, 2, 1]
    """
    starts, ends = _window_offsets(intervals, window)
    return _depth(starts, ends, window.length).tolist()


def _as_depth(window: Interval, source: Sequence) -> np.ndarray:
    items = list(source)
    if items and all(isinstance(item, Interval) for item in items):
        starts, ends = _window_offsets(items, window)
        return _depth(starts, ends, window.length)

    if not items:
        return np.zeros(window.length, dtype=np.int64)

    depth = np.asarray(items, dtype=np.int64)
    if depth.shape != (window.length,):
        raise ValueError(
            f"Coverage array has {depth.size} entries but window {window!r} "
            f"spans {window.length} positions"
        )
    return depth


def coverage_intervals(
    window: Interval, source: Union[Sequence[int], Sequence[Interval]]
) -> list[CoverageInterval]:
    """
    Collapse per-position depth into maximal runs of constant coverage.

    Args:
        window: Window the depth values describe
        source: Either a depth array with one entry per window position
            (as returned by project_into_range) or the read intervals
            themselves

    Returns:
        CoverageInterval runs in ascending order, partitioning the window
        exactly; neighbouring runs always differ in coverage

    Raises:
        ValueError: If a depth array does not match the window length
    """
    depth = _as_depth(window, source)
    if depth.size == 0:
        return []

    breaks = np.flatnonzero(np.diff(depth)) + 1
    run_starts = np.concatenate(([0], breaks))
    run_ends = np.concatenate((breaks, [depth.size]))

    return [
        CoverageInterval(
            interval=Interval(window.start + int(s), window.start + int(e)),
            coverage=int(depth[s]),
        )
        for s, e in zip(run_starts, run_ends)
    ]


def holes(window: Interval, intervals: Iterable[Interval]) -> list[Interval]:
    """
    Return the parts of ``window`` not covered by ``intervals``.

    Args:
        window: Window under consideration
        intervals: Sorted, disjoint intervals lying within the window

    Returns:
        Sorted, disjoint gaps. Empty input gives the whole window.

    Example:
        >>> holes(Interval(0, 6), [Interval(1, 3)])
        [[0, 1), [3, 6)]
    """
    gaps = []
    last_end = window.start
    for interval in intervals:
        start = clamp(interval.start, window.start, window.end)
        if start > last_end:
            gaps.append(Interval(last_end, start))
        last_end = max(last_end, clamp(interval.end, window.start, window.end))

    if last_end < window.end:
        gaps.append(Interval(last_end, window.end))
    return gaps


def k_spanned_intervals(
    window: Interval,
    read_intervals: Iterable[Interval],
    min_coverage: int,
    min_length: int = 0,
) -> list[Interval]:
    """
    Find a maximal set of maximal disjoint intervals within ``window`` such
    that each interval is spanned by at least ``min_coverage`` reads.

    Note that this is a greedy search procedure and may not always return
    the optimal solution, in some sense. However it will always return the
    optimal solution in the most common cases.

    The sweep works on window offsets. Starting at y = 0:

    1. let x be the first offset >= y whose depth is >= min_coverage
    2. among reads starting at or before x, let y be the
       min_coverage-th largest end; [x, y) is then spanned by those reads
    3. record [x, y) and repeat from y

    Args:
        window: Window under consideration
        read_intervals: Read intervals. A private sorted copy is used, the
            caller's sequence is left untouched.
        min_coverage: Number of reads that must span a returned interval
        min_length: Returned intervals shorter than this are dropped

    Returns:
        Sorted list of disjoint intervals inside the window

    Raises:
        ValueError: If min_coverage or min_length is negative
    """
    if min_coverage < 0:
        raise ValueError(f"min_coverage cannot be negative: {min_coverage}")
    if min_length < 0:
        raise ValueError(f"min_length cannot be negative: {min_length}")

    if window.is_empty():
        return []
    if min_coverage == 0:
        return [window] if window.length >= min_length else []

    starts, ends = _window_offsets(read_intervals, window)
    order = np.argsort(starts, kind="stable")
    starts = starts[order]
    ends = ends[order]

    eligible = np.flatnonzero(_depth(starts, ends, window.length) >= min_coverage)
    starts = starts.tolist()
    ends = ends.tolist()

    # Min-heap of the min_coverage largest ends among reads started so far
    top_ends: list[int] = []
    next_read = 0

    found = []
    y = 0
    while y < window.length:
        # Step 1: first k-covered offset at or after y
        i = int(np.searchsorted(eligible, y))
        if i == eligible.size:
            break
        x = int(eligible[i])

        # Step 2: extend to the k-th largest end among reads starting at or before x
        while next_read < len(starts) and starts[next_read] <= x:
            heapq.heappush(top_ends, ends[next_read])
            if len(top_ends) > min_coverage:
                heapq.heappop(top_ends)
            next_read += 1
        if len(top_ends) < min_coverage:
            break
        y = top_ends[0]

        found.append((x, y))

    return [
        Interval(window.start + s, window.start + e)
        for s, e in found
        if e - s >= min_length
    ]


def split_interval(source: Interval, span: int) -> list[Interval]:
    """
    Split ``source`` into consecutive pieces of ``span`` positions.

    The last piece is shorter when the length is not a multiple of span.

    Raises:
        ValueError: If span is not positive
    """
    if span <= 0:
        raise ValueError(f"span must be positive: {span}")

    return [
        Interval(start, min(start + span, source.end))
        for start in range(source.start, source.end, span)
    ]


@singledispatch
def fancy_intervals(
    source: IntervalSource,
    window: ReferenceWindow,
    min_coverage: Union[int, Settings],
    min_map_qv: Optional[int] = None,
) -> list[Interval]:
    """
    Find a maximal set of maximal disjoint intervals within ``window`` such
    that each interval is spanned by at least ``min_coverage`` reads, then
    fill in the remaining gaps and add them to the output.

    Called with an Interval as the first argument, this instead returns
    k_spanned_intervals over the given read intervals directly.

    Args:
        source: Positional index providing filtered read intervals
        window: Reference window to plan
        min_coverage: Coverage threshold, or a Settings object carrying
            both thresholds
        min_map_qv: Minimum mapping quality for reads to count

    Returns:
        Sorted intervals covering the whole window. Coverage-qualified and
        gap-fill intervals are not distinguished.

    Raises:
        TypeError: If min_map_qv is omitted and min_coverage is not a
            Settings object
    """
    if min_map_qv is None:
        from ..consensus.settings import Settings

        if not isinstance(min_coverage, Settings):
            raise TypeError(
                "min_map_qv is required unless a Settings object is passed, "
                f"got {type(min_coverage).__name__}"
            )
        settings = min_coverage
        min_coverage = settings.min_coverage
        min_map_qv = settings.min_map_qv

    read_intervals = source.lookup_intervals(window, min_map_qv)
    covered = k_spanned_intervals(window.interval, read_intervals, min_coverage)
    gaps = holes(window.interval, covered)

    logger.debug(
        f"{window.region}: {len(read_intervals)} reads, "
        f"{len(covered)} covered intervals, {len(gaps)} holes"
    )
    return sorted(covered + gaps)


@fancy_intervals.register(Interval)
def _(
    window: Interval, read_intervals: Sequence[Interval], min_coverage: int
) -> list[Interval]:
    return k_spanned_intervals(window, read_intervals, min_coverage)
