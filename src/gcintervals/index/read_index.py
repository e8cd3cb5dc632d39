"""
ReadIntervalIndex - in-memory positional index of aligned reads.

The interval algorithms only need sorted read extents for a window. Any
object implementing the IntervalSource protocol can supply them; this
module provides the in-memory implementation plus the generic filtering
helpers shared with the BAM-backed source.

Key Features:
- Safe access (no KeyError for references without reads)
- Overlap queries using intervaltree
- Loading from pandas DataFrames or TSV read tables
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator, Protocol

import pandas as pd
from intervaltree import IntervalTree

from ..core.interval import Interval, ReferenceWindow

logger = logging.getLogger(__name__)

READ_TABLE_COLUMNS = ["ref_name", "start", "end", "map_qv"]


class IntervalSource(Protocol):
    """Anything that can list filtered read extents for a reference window."""

    def lookup_intervals(
        self, window: ReferenceWindow, min_map_qv: int
    ) -> list[Interval]:
        """Return sorted read intervals overlapping ``window``."""
        ...


@dataclass(slots=True, frozen=True, eq=False)
class AlignedRead:
    """
    Reference extent and mapping quality of one aligned read.

    Reads compare by identity: two alignments with the same extent are
    still two reads.
    """

    ref_name: str
    start: int  # 0-based, inclusive
    end: int    # 0-based, exclusive
    map_qv: int = 0
    name: str = ""

    def __post_init__(self) -> None:
        """Validate read coordinates."""
        if self.start < 0:
            raise ValueError(f"Start position cannot be negative: {self.start}")
        if self.end <= self.start:
            raise ValueError(
                f"End position ({self.end}) must be greater than "
                f"start position ({self.start})"
            )

    @property
    def interval(self) -> Interval:
        return Interval(self.start, self.end)


def filtered_intervals(
    index: ReadIntervalIndex, predicate: Callable[[AlignedRead], bool]
) -> list[Interval]:
    """
    Collect the extents of every read passing ``predicate``.

    Args:
        index: Index to scan
        predicate: Filter applied to each read record

    Returns:
        Sorted read intervals
    """
    return sorted(read.interval for read in index.records() if predicate(read))


def filtered_window_intervals(
    index: ReadIntervalIndex, window: ReferenceWindow, min_map_qv: int
) -> list[Interval]:
    """
    Return sorted read intervals overlapping ``window`` with mapping quality
    of at least ``min_map_qv``.

    Equivalent to filtered_intervals with a predicate on reference name,
    read extent and mapping quality, but only visits reads the interval
    tree reports as overlapping. Intervals are not clipped to the window.
    """

    def passes(read: AlignedRead) -> bool:
        return (
            read.ref_name == window.ref_name
            and read.end > window.start
            and read.start < window.end
            and read.map_qv >= min_map_qv
        )

    candidates = index.fetch(window.ref_name, window.start, window.end)
    return sorted(read.interval for read in candidates if passes(read))


class ReadIntervalIndex:
    """
    In-memory positional index of aligned reads.

    Example:
        >>> index = ReadIntervalIndex()
        >>> read = index.add_read("chr1", 100, 600, map_qv=60, name="read1")
        >>> window = ReferenceWindow.from_coords("chr1", 0, 500)
        >>> index.lookup_intervals(window, min_map_qv=20)
        [[100, 600)]
    """

    def __init__(self) -> None:
        # Use defaultdict to avoid KeyError for missing references
        self._reads: defaultdict[str, IntervalTree] = defaultdict(IntervalTree)
        logger.debug("Initialized ReadIntervalIndex")

    def add_read(
        self,
        ref_name: str,
        start: int,
        end: int,
        map_qv: int = 0,
        name: str = "",
    ) -> AlignedRead:
        """
        Add an aligned read to the index.

        Args:
            ref_name: Reference sequence name
            start: Alignment start (0-based, inclusive)
            end: Alignment end (0-based, exclusive)
            map_qv: Mapping quality
            name: Read name

        Returns:
            The stored AlignedRead

        Raises:
            ValueError: If the read extent is empty or negative
        """
        read = AlignedRead(
            ref_name=ref_name, start=start, end=end, map_qv=map_qv, name=name
        )
        self._reads[ref_name].addi(start, end, read)
        return read

    def add_reads(self, reads: Iterable[AlignedRead]) -> None:
        for read in reads:
            self._reads[read.ref_name].addi(read.start, read.end, read)

    def fetch(self, ref_name: str, start: int, end: int) -> list[AlignedRead]:
        """
        Find reads overlapping ``[start, end)`` on a reference.

        Returns:
            Overlapping reads; empty list if the reference is unknown
        """
        tree = self._reads.get(ref_name)
        if not tree:
            logger.debug(f"No reads found for reference '{ref_name}'")
            return []
        return [entry.data for entry in tree.overlap(start, end)]

    def records(self) -> Iterator[AlignedRead]:
        """Iterate over every stored read, reference by reference."""
        for ref_name in sorted(self._reads):
            tree = self._reads[ref_name]
            for entry in sorted(tree, key=lambda iv: (iv.begin, iv.end)):
                yield entry.data

    def lookup_intervals(
        self, window: ReferenceWindow, min_map_qv: int
    ) -> list[Interval]:
        return filtered_window_intervals(self, window, min_map_qv)

    def has_reference(self, ref_name: str) -> bool:
        return ref_name in self._reads and len(self._reads[ref_name]) > 0

    def get_references(self) -> list[tuple[str, int]]:
        """
        List references with reads, paired with the furthest read end.

        An in-memory index has no sequence dictionary, so the extent of the
        reads stands in for the reference length.
        """
        return [
            (ref_name, tree.end())
            for ref_name, tree in sorted(self._reads.items())
            if tree
        ]

    def count_reads(self, ref_name: str | None = None) -> int:
        if ref_name is None:
            return sum(len(tree) for tree in self._reads.values())
        return len(self._reads.get(ref_name, ()))

    def clear(self) -> None:
        self._reads.clear()

    @classmethod
    def from_table(cls, table: pd.DataFrame) -> ReadIntervalIndex:
        """
        Build an index from a read table.

        Args:
            table: DataFrame with ref_name, start, end and map_qv columns
                and an optional name column

        Raises:
            ValueError: If required columns are missing
        """
        missing = [col for col in READ_TABLE_COLUMNS if col not in table.columns]
        if missing:
            raise ValueError(f"Read table is missing columns: {', '.join(missing)}")

        index = cls()
        has_names = "name" in table.columns
        for row in table.itertuples(index=False):
            index.add_read(
                ref_name=str(row.ref_name),
                start=int(row.start),
                end=int(row.end),
                map_qv=int(row.map_qv),
                name=str(row.name) if has_names else "",
            )

        logger.info(
            f"Loaded {index.count_reads():,} reads across "
            f"{len(index.get_references())} references"
        )
        return index

    @classmethod
    def from_tsv(cls, path: Path) -> ReadIntervalIndex:
        """Load a tab-separated read table with a header row."""
        if not Path(path).exists():
            raise FileNotFoundError(f"Read table not found: {path}")

        table = pd.read_csv(path, sep="\t", comment="#")
        return cls.from_table(table)

    def __repr__(self) -> str:
        return (
            f"ReadIntervalIndex(references={len(self.get_references())}, "
            f"reads={self.count_reads()})"
        )
