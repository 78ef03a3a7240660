"""
Appeals module: panel arbitration over finalized outcomes.

Usage:
    from guild_consensus.appeals import AppealArbitrator, AppealDecision

    arbitrator = AppealArbitrator()
    appeal = arbitrator.file(state, "candidate-1", "New evidence", 50, candidates, now)
    arbitrator.cast_vote(appeal, "panelist-1", AppealDecision.APPROVE_APPEAL, "...", now)
    resolution = arbitrator.resolve(appeal, state, now)
"""

from .arbitrator import AppealArbitrator, treasury_account
from .errors import (
    AppealClosedError,
    AppealError,
    AppealNotAllowedError,
    AppealWindowClosedError,
    DuplicateAppealVoteError,
    InsufficientPanelSizeError,
    NotPanelMemberError,
    UnknownAppealError,
)
from .models import (
    Appeal,
    AppealConfig,
    AppealDecision,
    AppealOutcome,
    AppealResolution,
    AppealStatus,
    AppealVote,
)

__all__ = [
    # Main components
    "AppealArbitrator",
    "treasury_account",
    # Configuration
    "AppealConfig",
    # Models
    "Appeal",
    "AppealDecision",
    "AppealOutcome",
    "AppealResolution",
    "AppealStatus",
    "AppealVote",
    # Errors
    "AppealClosedError",
    "AppealError",
    "AppealNotAllowedError",
    "AppealWindowClosedError",
    "DuplicateAppealVoteError",
    "InsufficientPanelSizeError",
    "NotPanelMemberError",
    "UnknownAppealError",
]
