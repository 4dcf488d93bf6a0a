"""
Scan pipeline for the slip scanner.

The pipeline runs one fixed-length scan:
- Frame sampling from an observation source (FrameSampler)
- Classifier signal and paper heuristic per frame
- Sticky aggregation into a Verdict with evidence (VerdictAggregator)
"""

from .sampler import FrameSampler
from .aggregator import AggregatorState, VerdictAggregator
from .session import ScanSession, create_session_from_config

__all__ = [
    "FrameSampler",
    "AggregatorState",
    "VerdictAggregator",
    "ScanSession",
    "create_session_from_config",
]
