"""Exceptions for reputation tracking."""


class ReputationError(Exception):
    """Base exception for reputation errors."""

    pass


class DuplicateReputationEventError(ReputationError):
    """
    Raised when a batch contains an event id that is already recorded.

    The whole batch is rejected; nothing from it is appended.
    """

    pass


class RewardTierConfigError(ReputationError):
    """Raised when a reward tier table has gaps, overlaps or bad weights."""

    pass
