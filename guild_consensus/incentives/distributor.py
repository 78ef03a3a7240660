"""Reward distribution weighted by reputation tier."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from fractions import Fraction

from ..reputation.tiers import get_reward_tier, validate_reward_tiers
from .errors import InvalidRewardPoolError, RewardInvariantError
from .models import DistributorConfig, RewardDistribution, RewardShare

logger = logging.getLogger(__name__)


class RewardDistributor:
    """
    Split a fixed pool among aligned reviewers by tier weight.

        share(r) = pool * weight(r) / sum(weight(aligned))

    Weights come from each reviewer's reputation at finalization time. Tier
    weighting only changes how the pool is split, never its size. Shares are
    whole token units: floors first, then the leftover units go one each to the
    largest fractional remainders (ties by reviewer id), so the shares add up
    to the pool exactly. With no aligned reviewers the whole pool is returned
    to the treasury.

    Usage:
        distributor = RewardDistributor()
        distribution = distributor.distribute(
            application_id="app-1",
            reward_pool=1_000_000,
            aligned_reputations={"alice": 1200, "bob": 300},
        )
    """

    def __init__(self, config: DistributorConfig | None = None):
        """
        Initialize distributor.

        Args:
            config: Configuration for reward distribution. Uses defaults if None.
        """
        self._config = config or DistributorConfig()
        validate_reward_tiers(self._config.tiers)

    def distribute(
        self,
        application_id: str,
        reward_pool: int,
        aligned_reputations: Mapping[str, int],
    ) -> RewardDistribution:
        """
        Calculate reward shares.

        Args:
            application_id: Application the pool belongs to
            reward_pool: Pool size in token base units
            aligned_reputations: Aligned reviewer id -> reputation at finalization

        Returns:
            RewardDistribution whose shares sum to the pool (or to 0 with the
            pool returned when nobody is aligned)

        Raises:
            InvalidRewardPoolError: If the pool is negative
            RewardInvariantError: If shares do not sum to the pool
        """
        if reward_pool < 0:
            raise InvalidRewardPoolError(f"Reward pool must be >= 0, got {reward_pool}")

        if not aligned_reputations:
            logger.info(
                f"No aligned reviewers for {application_id}; "
                f"returning {reward_pool} to treasury"
            )
            return RewardDistribution(
                application_id=application_id,
                reward_pool=reward_pool,
                returned_to_treasury=reward_pool,
            )

        reviewer_ids = sorted(aligned_reputations)
        tiers = {
            r: get_reward_tier(aligned_reputations[r], self._config.tiers)
            for r in reviewer_ids
        }
        total_weight = sum(Fraction(tiers[r].reward_weight) for r in reviewer_ids)

        exact = {
            r: Fraction(reward_pool) * Fraction(tiers[r].reward_weight) / total_weight
            for r in reviewer_ids
        }
        amounts = {r: int(exact[r]) for r in reviewer_ids}

        leftover = reward_pool - sum(amounts.values())
        by_remainder = sorted(reviewer_ids, key=lambda r: (-(exact[r] - amounts[r]), r))
        for reviewer_id in by_remainder[:leftover]:
            amounts[reviewer_id] += 1

        shares = tuple(
            RewardShare(
                reviewer_id=r,
                amount=amounts[r],
                weight=tiers[r].reward_weight,
                tier_name=tiers[r].name,
                reputation=aligned_reputations[r],
            )
            for r in reviewer_ids
        )
        distribution = RewardDistribution(
            application_id=application_id,
            reward_pool=reward_pool,
            shares=shares,
        )
        if distribution.total_distributed != reward_pool:
            raise RewardInvariantError(
                f"Shares for {application_id} sum to {distribution.total_distributed}, "
                f"pool is {reward_pool}"
            )

        logger.info(
            f"Distributed {reward_pool} for {application_id} "
            f"across {len(shares)} aligned reviewers"
        )

        # Log detailed share distribution
        logger.debug("Reward distribution (aligned reviewers):")
        for share in sorted(shares, key=lambda s: -s.amount):
            logger.debug(f"  {share.reviewer_id}: {share.amount} ({share.tier_name})")

        return distribution
