"""
Tests for settings and consensus interval planning.

Planner reads (see conftest): [0, 15), [5, 25), [8, 12) on chr1.
"""

import pandas as pd
import pytest

from gcintervals.consensus.planner import PLAN_COLUMNS, ConsensusIntervalPlanner
from gcintervals.consensus.settings import Settings
from gcintervals.core.interval import Interval, ReferenceWindow
from gcintervals.core.intervals import fancy_intervals


@pytest.fixture
def settings():
    return Settings(min_coverage=2, min_map_qv=10, window_span=10)


@pytest.fixture
def planner(read_index, settings):
    return ConsensusIntervalPlanner(read_index, settings)


# ============================================================================
# Tests: Settings
# ============================================================================

class TestSettings:
    """Tests for Settings validation."""

    def test_defaults(self):
        settings = Settings()
        assert settings.min_coverage == 5
        assert settings.min_map_qv == 10
        assert settings.window_span == 500
        assert settings.min_length == 0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"min_coverage": -1},
            {"min_map_qv": 256},
            {"window_span": 0},
            {"min_length": -5},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            Settings(**kwargs)


# ============================================================================
# Tests: Window Planning
# ============================================================================

class TestReferenceWindows:
    """Tests for splitting references into windows."""

    def test_whole_reference(self, planner):
        windows = planner.reference_windows("chr1", 25)
        assert [w.interval for w in windows] == [
            Interval(0, 10),
            Interval(10, 20),
            Interval(20, 25),
        ]
        assert all(w.ref_name == "chr1" for w in windows)

    def test_region_clipped_to_reference(self, planner):
        windows = planner.reference_windows("chr1", 30, Interval(5, 100))
        assert [w.interval for w in windows] == [
            Interval(5, 15),
            Interval(15, 25),
            Interval(25, 30),
        ]


class TestPlanWindow:
    """Tests for ConsensusIntervalPlanner.plan_window."""

    def test_first_window(self, planner, chr1_window):
        """Depth is 1 on [0, 5), 2 on [5, 8) and 3 on [8, 10)."""
        planned = planner.plan_window(chr1_window)
        assert [(p.interval, p.kind) for p in planned] == [
            (Interval(0, 5), "hole"),
            (Interval(5, 10), "covered"),
        ]
        assert planned[0].mean_coverage == pytest.approx(1.0)
        assert planned[1].mean_coverage == pytest.approx(2.4)

    def test_second_window(self, planner):
        window = ReferenceWindow.from_coords("chr1", 10, 20)
        planned = planner.plan_window(window)
        assert [(p.interval, p.kind) for p in planned] == [
            (Interval(10, 15), "covered"),
            (Interval(15, 20), "hole"),
        ]

    def test_matches_fancy_intervals(self, planner, read_index, settings):
        """Planned intervals are the gap-filled fancy intervals."""
        for window in planner.reference_windows("chr1", 30):
            planned = [p.interval for p in planner.plan_window(window)]
            assert planned == fancy_intervals(read_index, window, settings)

    def test_min_length_turns_short_intervals_into_holes(self, read_index, chr1_window):
        settings = Settings(min_coverage=2, min_map_qv=10, window_span=10, min_length=6)
        planned = ConsensusIntervalPlanner(read_index, settings).plan_window(chr1_window)
        assert [(p.interval, p.kind) for p in planned] == [(Interval(0, 10), "hole")]

    def test_low_quality_reads_ignored(self, read_index, chr1_window):
        read_index.add_read("chr1", 0, 10, map_qv=2)
        read_index.add_read("chr1", 0, 10, map_qv=2)
        planned = ConsensusIntervalPlanner(
            read_index, Settings(min_coverage=2, min_map_qv=10, window_span=10)
        ).plan_window(chr1_window)
        assert [p.kind for p in planned] == ["hole", "covered"]


class TestPlan:
    """Tests for ConsensusIntervalPlanner.plan and table output."""

    def test_plan_table(self, planner):
        df = planner.plan([("chr1", 30)])
        assert list(df.columns) == PLAN_COLUMNS
        assert list(zip(df["start"], df["end"], df["kind"])) == [
            (0, 5, "hole"),
            (5, 10, "covered"),
            (10, 15, "covered"),
            (15, 20, "hole"),
            (20, 30, "hole"),
        ]
        assert df["mean_coverage"].iloc[-1] == pytest.approx(0.5)

    def test_plan_with_region(self, planner):
        df = planner.plan([("chr1", 30)], Interval(0, 10))
        assert len(df) == 2

    def test_plan_no_references(self, planner):
        df = planner.plan([])
        assert df.empty
        assert list(df.columns) == PLAN_COLUMNS

    def test_coverage_table(self, planner, chr1_window):
        df = planner.coverage_table(chr1_window)
        assert list(zip(df["start"], df["end"], df["coverage"])) == [
            (0, 5, 1),
            (5, 8, 2),
            (8, 10, 3),
        ]

    def test_save_results(self, planner, temp_dir):
        output = temp_dir / "plan.tsv"
        planner.save_results(planner.plan([("chr1", 30)]), output)
        df = pd.read_csv(output, sep="\t")
        assert len(df) == 5
        assert list(df.columns) == PLAN_COLUMNS
