"""
Consensus interval planning.

Splits references into fixed-size windows and, for each window, separates
the regions with enough spanning reads to be called from the holes that
need filling. The result is a table a consensus caller can walk through.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from ..core.interval import Interval, ReferenceWindow
from ..core.intervals import (
    clamp,
    coverage_intervals,
    holes,
    k_spanned_intervals,
    project_into_range,
    split_interval,
)
from ..index.read_index import IntervalSource
from .settings import Settings

logger = logging.getLogger(__name__)

PLAN_COLUMNS = ["ref_name", "start", "end", "kind", "mean_coverage"]
COVERAGE_COLUMNS = ["ref_name", "start", "end", "coverage"]


@dataclass(slots=True, frozen=True)
class PlannedInterval:
    """One interval of a window plan and where it came from."""

    ref_name: str
    interval: Interval
    kind: str  # 'covered' or 'hole'
    mean_coverage: float


class ConsensusIntervalPlanner:
    """
    Plans covered intervals and holes across reference windows.

    The planned intervals of a window are exactly what fancy_intervals
    returns for it, tagged with whether each one met the coverage threshold.

    Example:
        >>> planner = ConsensusIntervalPlanner(index, Settings(min_coverage=3))
        >>> df = planner.plan([("chr1", 10_000)])
        >>> df[df["kind"] == "covered"]
    """

    def __init__(self, source: IntervalSource, settings: Optional[Settings] = None) -> None:
        """
        Initialize planner.

        Args:
            source: Positional index supplying read intervals
            settings: Planning thresholds (defaults if omitted)
        """
        self.source = source
        self.settings = settings or Settings()

    def reference_windows(
        self, ref_name: str, length: int, region: Optional[Interval] = None
    ) -> list[ReferenceWindow]:
        """
        Split a reference, or a region of it, into consecutive windows.

        Args:
            ref_name: Reference name
            length: Reference length
            region: Optional sub-region; clipped to the reference

        Returns:
            Windows of at most settings.window_span positions
        """
        if region is None:
            extent = Interval(0, length)
        else:
            extent = Interval(
                clamp(region.start, 0, length), clamp(region.end, 0, length)
            )
        return [
            ReferenceWindow(ref_name=ref_name, interval=piece)
            for piece in split_interval(extent, self.settings.window_span)
        ]

    def plan_window(self, window: ReferenceWindow) -> list[PlannedInterval]:
        """
        Plan a single window.

        Returns:
            Covered intervals and holes, sorted, partitioning the window
        """
        reads = self.source.lookup_intervals(window, self.settings.min_map_qv)
        depth = np.asarray(project_into_range(reads, window.interval), dtype=float)

        covered = k_spanned_intervals(
            window.interval,
            reads,
            self.settings.min_coverage,
            self.settings.min_length,
        )
        gaps = holes(window.interval, covered)

        tagged = [(iv, "covered") for iv in covered] + [(iv, "hole") for iv in gaps]
        tagged.sort()

        planned = []
        for interval, kind in tagged:
            offsets = slice(interval.start - window.start, interval.end - window.start)
            planned.append(
                PlannedInterval(
                    ref_name=window.ref_name,
                    interval=interval,
                    kind=kind,
                    mean_coverage=float(depth[offsets].mean()),
                )
            )

        logger.debug(
            f"{window.region}: {len(reads)} reads, "
            f"{len(covered)} covered, {len(gaps)} holes"
        )
        return planned

    def plan(
        self,
        references: Iterable[tuple[str, int]],
        region: Optional[Interval] = None,
    ) -> pd.DataFrame:
        """
        Plan every window of the given references.

        Args:
            references: (name, length) pairs
            region: Optional sub-region applied to each reference

        Returns:
            DataFrame with ref_name, start, end, kind and mean_coverage
        """
        rows = []
        for ref_name, length in references:
            windows = self.reference_windows(ref_name, length, region)
            for window in windows:
                for planned in self.plan_window(window):
                    rows.append(
                        {
                            "ref_name": planned.ref_name,
                            "start": planned.interval.start,
                            "end": planned.interval.end,
                            "kind": planned.kind,
                            "mean_coverage": planned.mean_coverage,
                        }
                    )
            logger.info(f"Planned {len(windows)} windows on {ref_name}")

        return pd.DataFrame(rows, columns=PLAN_COLUMNS)

    def coverage_table(self, window: ReferenceWindow) -> pd.DataFrame:
        """Piecewise-constant coverage profile of a window."""
        reads = self.source.lookup_intervals(window, self.settings.min_map_qv)
        depth = project_into_range(reads, window.interval)
        rows = [
            {
                "ref_name": window.ref_name,
                "start": run.interval.start,
                "end": run.interval.end,
                "coverage": run.coverage,
            }
            for run in coverage_intervals(window.interval, depth)
        ]
        return pd.DataFrame(rows, columns=COVERAGE_COLUMNS)

    def save_results(self, df: pd.DataFrame, output_path: Path) -> None:
        """
        Save a plan or coverage table as TSV.

        Args:
            df: Results DataFrame
            output_path: Output file path
        """
        df.to_csv(output_path, sep="\t", index=False)
        logger.info(f"Saved {len(df):,} rows to {output_path}")
