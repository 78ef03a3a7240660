"""Data models for alignment scoring and reputation events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import StrEnum
from typing import Any


class ReputationReason(StrEnum):
    ALIGNED = "aligned"
    MILD_DEVIATION = "mild_deviation"
    MODERATE_DEVIATION = "moderate_deviation"
    SEVERE_DEVIATION = "severe_deviation"
    VOTE_WITH_MAJORITY = "vote_with_majority"
    APPEAL_OVERTURNED = "appeal_overturned"
    APPEAL_UPHELD = "appeal_upheld"
    INACTIVITY_DECAY = "inactivity_decay"
    OPENING_BALANCE = "opening_balance"
    """Balance carried over from before event tracking."""

    @property
    def is_deviation(self) -> bool:
        return self in (
            ReputationReason.MILD_DEVIATION,
            ReputationReason.MODERATE_DEVIATION,
            ReputationReason.SEVERE_DEVIATION,
        )


@dataclass(frozen=True)
class AlignmentConfig:
    """
    Guild-level alignment boundaries, reputation deltas and slash percents.

    These are product defaults, not fixed law; guilds override them.
    """

    aligned_below: float = 10.0
    """Distance strictly below this is aligned."""

    mild_below: float = 20.0
    """Distance strictly below this (and not aligned) is a mild deviation."""

    moderate_up_to: float = 30.0
    """Distance up to and including this is moderate; beyond is severe."""

    aligned_delta: int = 10
    mild_delta: int = -5
    moderate_delta: int = -10
    severe_delta: int = -20

    aligned_slash_percent: int = 0
    mild_slash_percent: int = 5
    moderate_slash_percent: int = 10
    severe_slash_percent: int = 25
    """Share of the vote's stake slashed per tier (0-100)."""

    def classify(self, distance: float) -> ReputationReason:
        if distance < self.aligned_below:
            return ReputationReason.ALIGNED
        if distance < self.mild_below:
            return ReputationReason.MILD_DEVIATION
        if distance <= self.moderate_up_to:
            return ReputationReason.MODERATE_DEVIATION
        return ReputationReason.SEVERE_DEVIATION

    def delta_for(self, reason: ReputationReason) -> int:
        return {
            ReputationReason.ALIGNED: self.aligned_delta,
            ReputationReason.MILD_DEVIATION: self.mild_delta,
            ReputationReason.MODERATE_DEVIATION: self.moderate_delta,
            ReputationReason.SEVERE_DEVIATION: self.severe_delta,
        }[reason]

    def slash_percent_for(self, reason: ReputationReason) -> int:
        return {
            ReputationReason.ALIGNED: self.aligned_slash_percent,
            ReputationReason.MILD_DEVIATION: self.mild_slash_percent,
            ReputationReason.MODERATE_DEVIATION: self.moderate_slash_percent,
            ReputationReason.SEVERE_DEVIATION: self.severe_slash_percent,
        }[reason]


@dataclass(frozen=True)
class AlignmentRecord:
    """How one vote compared to consensus."""

    vote_id: str
    reviewer_id: str
    score: float
    alignment_distance: float
    reason: ReputationReason
    is_outlier: bool
    reputation_delta: int
    stake_amount: int
    slash_percent: int
    slash_amount: int

    @property
    def is_aligned(self) -> bool:
        return self.reason == ReputationReason.ALIGNED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "vote_id": self.vote_id,
            "reviewer_id": self.reviewer_id,
            "score": round(self.score, 6),
            "alignment_distance": round(self.alignment_distance, 6),
            "slashing_tier": self.reason.value,
            "is_outlier": self.is_outlier,
            "reputation_change": self.reputation_delta,
            "slash_percent": self.slash_percent,
            "slash_amount": self.slash_amount,
        }


@dataclass(frozen=True)
class ReputationEvent:
    """
    Immutable reputation ledger entry.

    A reviewer's reputation is the sum of their events; it is never stored
    as a separately mutated counter.
    """

    event_id: str
    reviewer_id: str
    change_amount: int
    reason: ReputationReason
    created_at: datetime
    application_id: str | None = None
    alignment_distance: float | None = None
    reward_amount: int = 0
    slash_amount: int = 0
    reference: str | None = None
    """Related appeal id, decay cycle, etc."""

    @classmethod
    def for_alignment(
        cls,
        application_id: str,
        record: AlignmentRecord,
        reward_amount: int,
        created_at: datetime,
    ) -> ReputationEvent:
        return cls(
            event_id=f"{application_id}:{record.reviewer_id}:alignment",
            reviewer_id=record.reviewer_id,
            change_amount=record.reputation_delta,
            reason=record.reason,
            created_at=created_at,
            application_id=application_id,
            alignment_distance=record.alignment_distance,
            reward_amount=reward_amount,
            slash_amount=record.slash_amount,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "event_id": self.event_id,
            "reviewer_id": self.reviewer_id,
            "change_amount": self.change_amount,
            "reason": self.reason.value,
            "application_id": self.application_id,
            "alignment_distance": (
                round(self.alignment_distance, 6)
                if self.alignment_distance is not None
                else None
            ),
            "reward_amount": self.reward_amount,
            "slash_amount": self.slash_amount,
            "reference": self.reference,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class RewardTier:
    """Reputation bracket scaling a reviewer's reward share."""

    name: str
    min_reputation: int
    max_reputation: int | None
    """Inclusive upper bound; None for the top tier."""

    reward_weight: Decimal

    def contains(self, reputation: int) -> bool:
        if reputation < self.min_reputation:
            return False
        return self.max_reputation is None or reputation <= self.max_reputation


@dataclass(frozen=True)
class RewardTierProgress:
    """Position of a reputation value within its tier."""

    reputation: int
    tier: RewardTier
    next_tier: RewardTier | None
    progress: int
    """Percent (0-100) of the way to the next tier; 100 at the top tier."""


@dataclass(frozen=True)
class DecayConfig:
    """Configuration for the periodic inactivity decay job."""

    amount: int = 10
    """Reputation removed per idle cycle."""

    idle_period: timedelta = timedelta(days=30)
    """Inactivity required before (and between) decays."""
