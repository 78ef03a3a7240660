"""Exceptions for consensus computation."""


class ConsensusError(Exception):
    """Base exception for consensus errors."""

    pass


class NoVotesError(ConsensusError):
    """Raised when there are no valid votes to aggregate."""

    pass
