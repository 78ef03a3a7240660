"""
Incentives module for releasing an application's reward pool.

This module handles:
- Tier-weighted split of a fixed pool among aligned reviewers
- Exact integer shares (no rounding leakage)
- Returning the pool to the treasury when nobody is aligned

Usage:
    from guild_consensus.incentives import RewardDistributor

    distributor = RewardDistributor()
    distribution = distributor.distribute(
        application_id="app-1",
        reward_pool=1_000_000,
        aligned_reputations={"alice": 1200, "bob": 300},
    )
"""

from .distributor import RewardDistributor
from .errors import IncentiveError, InvalidRewardPoolError, RewardInvariantError
from .models import DistributorConfig, RewardDistribution, RewardShare

__all__ = [
    # Main components
    "RewardDistributor",
    # Configuration
    "DistributorConfig",
    # Result models
    "RewardDistribution",
    "RewardShare",
    # Errors
    "IncentiveError",
    "InvalidRewardPoolError",
    "RewardInvariantError",
]
