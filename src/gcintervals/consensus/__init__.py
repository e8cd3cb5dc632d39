"""Settings and window planning for consensus calling."""

from gcintervals.consensus.planner import ConsensusIntervalPlanner, PlannedInterval
from gcintervals.consensus.settings import Settings

__all__ = ["ConsensusIntervalPlanner", "PlannedInterval", "Settings"]
