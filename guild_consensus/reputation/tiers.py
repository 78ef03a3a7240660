"""Reward tier lookup."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from .errors import RewardTierConfigError
from .models import RewardTier, RewardTierProgress

DEFAULT_REWARD_TIERS: tuple[RewardTier, ...] = (
    RewardTier("Foundation", 0, 999, Decimal("1.0")),
    RewardTier("Established", 1000, 1999, Decimal("1.25")),
    RewardTier("Authority", 2000, None, Decimal("1.5")),
)


def validate_reward_tiers(tiers: Sequence[RewardTier]) -> None:
    """
    Check the tier table is contiguous, starts at 0 and ends open-ended.

    Raises:
        RewardTierConfigError: If the table is malformed
    """
    if not tiers:
        raise RewardTierConfigError("Reward tier table is empty")
    if tiers[0].min_reputation != 0:
        raise RewardTierConfigError("First reward tier must start at 0")
    if tiers[-1].max_reputation is not None:
        raise RewardTierConfigError("Last reward tier must be open-ended")
    for prev, curr in zip(tiers, tiers[1:], strict=False):
        if prev.max_reputation is None or curr.min_reputation != prev.max_reputation + 1:
            raise RewardTierConfigError(
                f"Reward tiers {prev.name} and {curr.name} are not contiguous"
            )
    for tier in tiers:
        if tier.reward_weight <= 0:
            raise RewardTierConfigError(f"Reward tier {tier.name} needs a positive weight")


def get_reward_tier(
    reputation: int, tiers: Sequence[RewardTier] = DEFAULT_REWARD_TIERS
) -> RewardTier:
    """Tier for a reputation value; negative values fall back to the first tier."""
    for tier in tiers:
        if tier.contains(reputation):
            return tier
    return tiers[0]


def get_reward_tier_progress(
    reputation: int, tiers: Sequence[RewardTier] = DEFAULT_REWARD_TIERS
) -> RewardTierProgress:
    """Progress through the current tier towards the next one."""
    tier = get_reward_tier(reputation, tiers)
    index = list(tiers).index(tier)
    next_tier = tiers[index + 1] if index + 1 < len(tiers) else None

    if next_tier is None:
        progress = 100
    else:
        span = next_tier.min_reputation - tier.min_reputation
        progress = round(max(reputation - tier.min_reputation, 0) / span * 100)

    return RewardTierProgress(
        reputation=reputation,
        tier=tier,
        next_tier=next_tier,
        progress=progress,
    )
