"""
Subject identity and verdict models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class SubjectIdentity:
    """The person being scanned. Frozen so a verdict keeps its own snapshot."""
    name: str = UNKNOWN
    roll_number: str = UNKNOWN

    @classmethod
    def from_input(cls, name: Optional[str], roll_number: Optional[str]) -> "SubjectIdentity":
        """Build from operator input: trims whitespace, blanks become Unknown."""
        return cls(
            name=(name or "").strip() or UNKNOWN,
            roll_number=(roll_number or "").strip() or UNKNOWN,
        )

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "roll_number": self.roll_number}


@dataclass(frozen=True)
class Verdict:
    """
    Outcome of one scan session.
    
    Attributes:
        has_unauthorized_material: True if any sampled frame tripped a signal.
        evidence_image: PNG bytes, present if and only if the verdict is positive.
        subject: Identity snapshot taken when the verdict was produced.
        timestamp: UTC instant the verdict was produced.
        frames_scanned: Number of frames evaluated.
        flagged_frames: 1-based indices of frames that tripped a signal.
    """
    has_unauthorized_material: bool
    evidence_image: Optional[bytes] = None
    subject: SubjectIdentity = field(default_factory=SubjectIdentity)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    frames_scanned: int = 0
    flagged_frames: tuple = ()

    def __post_init__(self):
        if self.has_unauthorized_material and not self.evidence_image:
            raise ValueError("A positive verdict requires a non-empty evidence image")
        if not self.has_unauthorized_material and self.evidence_image is not None:
            raise ValueError("A negative verdict must not carry evidence")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_unauthorized_material": self.has_unauthorized_material,
            "has_evidence": self.evidence_image is not None,
            "subject": self.subject.to_dict(),
            "timestamp": self.timestamp.isoformat(),
            "frames_scanned": self.frames_scanned,
            "flagged_frames": list(self.flagged_frames),
        }
