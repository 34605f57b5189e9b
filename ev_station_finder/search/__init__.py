"""search – candidate ranking and the obstruction-aware fallback search."""

from .ranking import (
    DEFAULT_DISPLAY_CAP,
    DEFAULT_FALLBACK_CAP,
    Candidate,
    CandidateRanking,
    rank_candidates,
)
from .orchestrator import (
    ExhaustedNoObstructionFree,
    InputErrorOutcome,
    NoReachableStation,
    ProbeResult,
    ProbeStatus,
    SearchOutcome,
    SearchState,
    StationSearch,
    Success,
    find_reachable_station,
)

__all__ = [
    "DEFAULT_DISPLAY_CAP", "DEFAULT_FALLBACK_CAP",
    "Candidate", "CandidateRanking", "rank_candidates",
    "ExhaustedNoObstructionFree", "InputErrorOutcome", "NoReachableStation",
    "ProbeResult", "ProbeStatus", "SearchOutcome", "SearchState",
    "StationSearch", "Success", "find_reachable_station",
]
