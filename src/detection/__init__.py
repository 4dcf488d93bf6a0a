"""
Per-frame signals for the slip scanner.

- ClassifierSignal: object detector + class allow-list
- PaperHeuristic: bright-sheet image statistic
- annotate: operator overlays and PNG evidence
"""

from .classifier import ClassifierSignal, ClassifierResult
from .paper import PaperHeuristic, PaperAssessment
from .annotate import annotate, encode_evidence

__all__ = [
    "ClassifierSignal",
    "ClassifierResult",
    "PaperHeuristic",
    "PaperAssessment",
    "annotate",
    "encode_evidence",
]
