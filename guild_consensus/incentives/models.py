"""Data models for incentives module."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from ..reputation.models import RewardTier
from ..reputation.tiers import DEFAULT_REWARD_TIERS


@dataclass(frozen=True)
class DistributorConfig:
    """Configuration for reward distribution."""

    tiers: tuple[RewardTier, ...] = DEFAULT_REWARD_TIERS
    """Reputation brackets and their reward weights."""


@dataclass(frozen=True)
class RewardShare:
    """One aligned reviewer's slice of the reward pool."""

    reviewer_id: str
    amount: int
    """Token base units."""

    weight: Decimal
    tier_name: str
    reputation: int
    """Reputation the tier was looked up from (at finalization)."""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "reviewer_id": self.reviewer_id,
            "amount": self.amount,
            "weight": str(self.weight),
            "tier": self.tier_name,
            "reputation": self.reputation,
        }


@dataclass(frozen=True)
class RewardDistribution:
    """
    Split of a fixed reward pool among aligned reviewers.

    `total_distributed + returned_to_treasury == reward_pool` always holds.
    """

    application_id: str
    reward_pool: int
    shares: tuple[RewardShare, ...] = field(default_factory=tuple)
    returned_to_treasury: int = 0

    @property
    def total_distributed(self) -> int:
        return sum(s.amount for s in self.shares)

    @property
    def reviewer_ids(self) -> list[str]:
        return [s.reviewer_id for s in self.shares]

    def get_amount(self, reviewer_id: str) -> int:
        """Amount for a reviewer (0 if not rewarded)."""
        for share in self.shares:
            if share.reviewer_id == reviewer_id:
                return share.amount
        return 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "application_id": self.application_id,
            "reward_pool": self.reward_pool,
            "total_distributed": self.total_distributed,
            "returned_to_treasury": self.returned_to_treasury,
            "shares": [s.to_dict() for s in self.shares],
        }
