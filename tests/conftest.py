"""
Pytest configuration and fixtures for gcintervals tests.
"""

import tempfile
from pathlib import Path

import pysam
import pytest

from gcintervals.core.interval import Interval, ReferenceWindow
from gcintervals.index.read_index import ReadIntervalIndex


# ============================================================================
# Path Fixtures
# ============================================================================

@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ============================================================================
# Interval Fixtures
# ============================================================================

@pytest.fixture
def window():
    """Ten-position window starting at zero."""
    return Interval(0, 10)


@pytest.fixture
def staggered_reads():
    """Three reads overlapping in pairs across [0, 10)."""
    return [Interval(0, 5), Interval(3, 8), Interval(6, 10)]


# ============================================================================
# Read Index Fixtures
# ============================================================================

PLANNER_READS = [
    # (ref_name, start, end, map_qv, name)
    ("chr1", 0, 15, 60, "read1"),
    ("chr1", 5, 25, 60, "read2"),
    ("chr1", 8, 12, 60, "read3"),
]


@pytest.fixture
def read_index():
    """In-memory index with three high-quality reads on chr1."""
    index = ReadIntervalIndex()
    for ref_name, start, end, map_qv, name in PLANNER_READS:
        index.add_read(ref_name, start, end, map_qv=map_qv, name=name)
    return index


@pytest.fixture
def read_table_file(temp_dir):
    """Tab-separated read table holding the planner reads."""
    lines = ["ref_name\tstart\tend\tmap_qv\tname"]
    for ref_name, start, end, map_qv, name in PLANNER_READS:
        lines.append(f"{ref_name}\t{start}\t{end}\t{map_qv}\t{name}")
    path = temp_dir / "reads.tsv"
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def chr1_window():
    return ReferenceWindow.from_coords("chr1", 0, 10)


# ============================================================================
# BAM Fixtures
# ============================================================================

BAM_READS = [
    # (reference_id, start, end, mapping_quality, flag)
    (0, 0, 20, 60, 0),
    (0, 5, 25, 60, 0),
    (0, 10, 30, 5, 0),     # low mapping quality
    (0, 12, 40, 60, 256),  # secondary
    (0, 15, 35, 60, 1024), # duplicate
    (1, 0, 10, 60, 0),
]

BAM_HEADER = {
    "HD": {"VN": "1.6", "SO": "coordinate"},
    "SQ": [{"SN": "chr1", "LN": 100}, {"SN": "chr2", "LN": 50}],
    "RG": [
        {
            "ID": "rg1",
            "SM": "sample",
            "PL": "PACBIO",
            "DS": (
                "READTYPE=SUBREAD;BINDINGKIT=100-619-300;"
                "SEQUENCINGKIT=100-620-000;BASECALLERVERSION=2.3.0.1"
            ),
        },
        {"ID": "rg2", "SM": "sample"},
    ],
}


def write_bam(path, reads, header=BAM_HEADER, index=True):
    """Write coordinate-sorted reads to a BAM file and optionally index it."""
    with pysam.AlignmentFile(str(path), "wb", header=header) as out:
        for i, (ref_id, start, end, mapq, flag) in enumerate(sorted(reads)):
            length = end - start
            segment = pysam.AlignedSegment(out.header)
            segment.query_name = f"read{i}"
            segment.query_sequence = "A" * length
            segment.flag = flag
            segment.reference_id = ref_id
            segment.reference_start = start
            segment.mapping_quality = mapq
            segment.cigarstring = f"{length}M"
            segment.query_qualities = pysam.qualitystring_to_array("I" * length)
            segment.set_tag("RG", "rg1")
            out.write(segment)
    if index:
        pysam.index(str(path))
    return path


@pytest.fixture
def create_test_bam(temp_dir):
    """Factory fixture to create test BAM files."""
    def _create_bam(name="test.bam", reads=BAM_READS, index=True):
        return write_bam(temp_dir / name, reads, index=index)
    return _create_bam


@pytest.fixture
def bam_file(create_test_bam):
    """Indexed BAM file with a mix of usable and filtered reads."""
    return create_test_bam("sample.bam")
