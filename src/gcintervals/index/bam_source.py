"""
BAM-backed read interval source.

Reads alignments from a coordinate-sorted, indexed BAM file with pysam and
reports their reference extents for a window. Only primary, mapped,
non-duplicate alignments that pass QC and the mapping quality threshold
count as evidence.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pysam

from ..core.chemistry import ChemistryTriple
from ..core.interval import Interval, ReferenceWindow

logger = logging.getLogger(__name__)


def find_bam_index(bam_file: Path) -> Path | None:
    """Return the index next to ``bam_file`` (.bai or .csi), if any."""
    candidates = [
        Path(str(bam_file) + ".bai"),
        bam_file.with_suffix(".bai"),
        Path(str(bam_file) + ".csi"),
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


class BamIntervalSource:
    """
    Interval source over an indexed BAM file.

    Example:
        >>> with BamIntervalSource(Path("sample.bam")) as source:
        ...     window = ReferenceWindow.from_coords("chr1", 0, 500)
        ...     reads = source.lookup_intervals(window, min_map_qv=10)
    """

    def __init__(self, bam_file: Path) -> None:
        """
        Open the BAM file.

        Args:
            bam_file: Coordinate-sorted BAM file

        Raises:
            FileNotFoundError: If the BAM file or its index is missing
        """
        bam_file = Path(bam_file)
        if not bam_file.exists():
            raise FileNotFoundError(f"BAM file not found: {bam_file}")
        if find_bam_index(bam_file) is None:
            raise FileNotFoundError(
                f"BAM index not found for {bam_file}. "
                f"Run: samtools index {bam_file}"
            )

        self.bam_file = bam_file
        self.bam = pysam.AlignmentFile(str(bam_file), "rb")
        logger.info(f"Opened {bam_file} ({len(self.bam.references)} references)")

    def _filter_read(self, read: pysam.AlignedSegment, min_map_qv: int) -> bool:
        """
        Check if an alignment counts as evidence.

        Args:
            read: Aligned read
            min_map_qv: Minimum mapping quality

        Returns:
            True if the read should be used
        """
        if read.is_unmapped or read.is_secondary or read.is_supplementary:
            return False
        if read.is_qcfail or read.is_duplicate:
            return False
        if read.reference_end is None:
            return False
        return read.mapping_quality >= min_map_qv

    def lookup_intervals(
        self, window: ReferenceWindow, min_map_qv: int
    ) -> list[Interval]:
        """
        Return sorted reference extents of reads overlapping ``window``.

        Extents are not clipped to the window. Unknown references yield an
        empty list.
        """
        if window.ref_name not in self.bam.references:
            logger.debug(f"Reference '{window.ref_name}' not in {self.bam_file}")
            return []

        intervals = []
        for read in self.bam.fetch(window.ref_name, window.start, window.end):
            if not self._filter_read(read, min_map_qv):
                continue
            if read.reference_end <= window.start or read.reference_start >= window.end:
                continue
            intervals.append(Interval(read.reference_start, read.reference_end))

        intervals.sort()
        return intervals

    def references(self) -> list[tuple[str, int]]:
        """Reference names and lengths from the BAM header."""
        return list(zip(self.bam.references, self.bam.lengths))

    def chemistries(self) -> dict[str, ChemistryTriple]:
        """
        Chemistry of each read group, keyed by read group ID.

        Read groups whose description lacks chemistry tags map to the null
        triple.
        """
        chemistries = {}
        for read_group in self.bam.header.to_dict().get("RG", []):
            rg_id = read_group.get("ID", "")
            try:
                chemistries[rg_id] = ChemistryTriple.from_read_group(
                    read_group.get("DS", "")
                )
            except ValueError as e:
                logger.debug(f"Read group {rg_id} has no usable chemistry: {e}")
                chemistries[rg_id] = ChemistryTriple.null()
        return chemistries

    def close(self) -> None:
        """Close BAM file."""
        self.bam.close()

    def __enter__(self) -> BamIntervalSource:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
