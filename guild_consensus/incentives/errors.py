"""Exceptions for incentives module."""


class IncentiveError(Exception):
    """Base exception for reward distribution errors."""

    pass


class RewardInvariantError(IncentiveError):
    """
    Raised when distributed shares do not add up to the pool.

    This indicates a bug; finalization is aborted rather than recording a
    leaky distribution.
    """

    pass


class InvalidRewardPoolError(IncentiveError):
    """Raised when the reward pool is negative."""

    pass
