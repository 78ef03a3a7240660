"""Exceptions raised while collecting votes."""


class VotingError(Exception):
    """Base exception for voting errors."""

    pass


class UnknownApplicationError(VotingError):
    """Raised when an application id has not been opened."""

    pass


class DuplicateApplicationError(VotingError):
    """Raised when an application id is opened twice."""

    pass


class NotAssignedReviewerError(VotingError):
    """Raised when a reviewer not assigned to the application tries to vote."""

    pass


class VotingClosedError(VotingError):
    """
    Raised when a submission arrives after the accepting state has ended.

    This can happen when:
    - The submission timestamp is past the voting (or commit/reveal) deadline
    - The application has already been finalized
    """

    pass


class WrongPhaseError(VotingClosedError):
    """
    Raised when a submission does not match the application's current phase.

    This can happen when:
    - A direct vote is sent to an application that requires commit-reveal
    - A reveal is sent while the commit phase is still running
    """

    pass


class InsufficientStakeError(VotingError):
    """Raised when the reviewer's current stake is below the required stake."""

    pass


class DuplicateVoteError(VotingError):
    """Raised when a reviewer already has a vote (or commit) for the application."""

    pass


class InvalidScoreError(VotingError):
    """Raised when a vote score falls outside the 0-100 scale."""

    pass


class MissingCommitError(VotingError):
    """Raised when a reviewer reveals without a recorded commit."""

    pass


class RevealMismatchError(VotingError):
    """
    Raised when a reveal does not hash to its stored commit.

    The reviewer is recorded as abstaining before this is raised, so the
    mismatch never blocks finalization for everyone else.
    """

    pass


class ApplicationCancelledError(VotingError):
    """Raised when the application was administratively cancelled."""

    pass


class AlreadyFinalizedError(VotingError):
    """Raised when an operation would mutate an already finalized application."""

    pass


class FinalizationNotReadyError(VotingError):
    """Raised when finalize is requested before deadline or quorum."""

    pass


class PhaseConfigurationError(VotingError):
    """Raised when deadlines cannot produce a valid phase schedule."""

    pass
