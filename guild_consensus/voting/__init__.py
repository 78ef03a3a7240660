"""
Voting module: phase state machine, commit-reveal hashing and the vote ledger.

Main components:
- PhaseController: decides whether an application accepts direct votes,
  commits or reveals at a given instant, and when it is ready to finalize
- VoteLedger: append-only store enforcing one vote per reviewer
- compute_commit_hash / verify_commit: commitment scheme for hidden scores
"""

from .assignment import assign_reviewers
from .commitments import (
    canonical_score,
    compute_commit_hash,
    generate_salt,
    verify_commit,
)
from .errors import (
    AlreadyFinalizedError,
    ApplicationCancelledError,
    DuplicateApplicationError,
    DuplicateVoteError,
    FinalizationNotReadyError,
    InsufficientStakeError,
    InvalidScoreError,
    MissingCommitError,
    NotAssignedReviewerError,
    PhaseConfigurationError,
    RevealMismatchError,
    UnknownApplicationError,
    VotingClosedError,
    VotingError,
    WrongPhaseError,
)
from .ledger import VoteLedger
from .models import (
    Application,
    ApplicationState,
    ApplicationStatus,
    CommitRecord,
    PhaseConfig,
    PhaseSnapshot,
    ReviewerAssignment,
    Vote,
    VotingPhase,
)
from .phase import PhaseController

__all__ = [
    # Main components
    "PhaseController",
    "VoteLedger",
    "assign_reviewers",
    # Commitments
    "canonical_score",
    "compute_commit_hash",
    "generate_salt",
    "verify_commit",
    # Models
    "Application",
    "ApplicationState",
    "ApplicationStatus",
    "CommitRecord",
    "PhaseConfig",
    "PhaseSnapshot",
    "ReviewerAssignment",
    "Vote",
    "VotingPhase",
    # Errors
    "AlreadyFinalizedError",
    "ApplicationCancelledError",
    "DuplicateApplicationError",
    "DuplicateVoteError",
    "FinalizationNotReadyError",
    "InsufficientStakeError",
    "InvalidScoreError",
    "MissingCommitError",
    "NotAssignedReviewerError",
    "PhaseConfigurationError",
    "RevealMismatchError",
    "UnknownApplicationError",
    "VotingClosedError",
    "VotingError",
    "WrongPhaseError",
]
