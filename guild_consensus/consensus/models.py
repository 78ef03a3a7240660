"""Data models for consensus computation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Outcome(StrEnum):
    APPROVED = "approved"
    REJECTED = "rejected"

    def reversed(self) -> Outcome:
        return Outcome.REJECTED if self == Outcome.APPROVED else Outcome.APPROVED


@dataclass(frozen=True)
class ConsensusConfig:
    """Configuration for consensus aggregation."""

    approval_threshold: float = 70.0
    """Consensus score at or above this approves the application."""

    min_votes_for_outlier_filter: int = 3
    """Below this many votes, consensus is the plain mean."""

    iqr_multiplier: float = 1.5
    """Outlier fences sit this many IQRs outside Q1 and Q3."""


@dataclass(frozen=True)
class IqrSummary:
    """Interquartile statistics behind an outlier-filtered consensus."""

    median: float
    q1: float
    q3: float
    iqr: float
    lower_bound: float
    upper_bound: float
    included_count: int
    excluded_count: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "median": round(self.median, 6),
            "q1": round(self.q1, 6),
            "q3": round(self.q3, 6),
            "iqr": round(self.iqr, 6),
            "lower_bound": round(self.lower_bound, 6),
            "upper_bound": round(self.upper_bound, 6),
            "included_count": self.included_count,
            "excluded_count": self.excluded_count,
        }


@dataclass(frozen=True)
class ConsensusResult:
    """
    Consensus for one application.

    Created exactly once, at finalization, and never mutated.
    """

    application_id: str
    consensus_score: float
    outcome: Outcome
    outlier_vote_ids: tuple[str, ...]
    """Votes excluded from the mean but kept for audit and alignment."""

    participation_count: int
    approval_threshold: float
    finalized_at: datetime
    iqr: IqrSummary | None = None
    """None when too few votes for outlier filtering."""

    def is_outlier(self, vote_id: str) -> bool:
        return vote_id in self.outlier_vote_ids

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "application_id": self.application_id,
            "consensus_score": round(self.consensus_score, 6),
            "outcome": self.outcome.value,
            "outlier_vote_ids": list(self.outlier_vote_ids),
            "participation_count": self.participation_count,
            "approval_threshold": self.approval_threshold,
            "finalized_at": self.finalized_at.isoformat(),
            "iqr": self.iqr.to_dict() if self.iqr else None,
        }


@dataclass(frozen=True)
class TallyResult(Generic[T]):
    """Result of a simple majority tally."""

    winner: T
    counts: tuple[tuple[T, int], ...]
    total: int
    decided_by_default: bool
    """True on a tie or an empty tally."""

    def count(self, decision: T) -> int:
        return dict(self.counts).get(decision, 0)
