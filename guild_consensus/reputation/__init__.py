"""
Reputation module: alignment scoring, event-sourced reputation and reward tiers.

Main components:
- AlignmentEngine: classifies each vote's distance from consensus
- ReputationLedger: append-only events; reputation is their clamped sum
- get_reward_tier: reputation bracket -> reward weight
- InactivityDecay: periodic decay for idle reviewers
"""

from .alignment import AlignmentEngine
from .decay import InactivityDecay
from .errors import (
    DuplicateReputationEventError,
    ReputationError,
    RewardTierConfigError,
)
from .ledger import ReputationLedger
from .models import (
    AlignmentConfig,
    AlignmentRecord,
    DecayConfig,
    ReputationEvent,
    ReputationReason,
    RewardTier,
    RewardTierProgress,
)
from .tiers import (
    DEFAULT_REWARD_TIERS,
    get_reward_tier,
    get_reward_tier_progress,
    validate_reward_tiers,
)

__all__ = [
    # Main components
    "AlignmentEngine",
    "InactivityDecay",
    "ReputationLedger",
    # Tiers
    "DEFAULT_REWARD_TIERS",
    "get_reward_tier",
    "get_reward_tier_progress",
    "validate_reward_tiers",
    # Configuration
    "AlignmentConfig",
    "DecayConfig",
    # Models
    "AlignmentRecord",
    "ReputationEvent",
    "ReputationReason",
    "RewardTier",
    "RewardTierProgress",
    # Errors
    "DuplicateReputationEventError",
    "ReputationError",
    "RewardTierConfigError",
]
