"""
Consensus module: outlier-filtered mean of reviewer scores and majority tallies.

Usage:
    from guild_consensus.consensus import ConsensusAggregator, ConsensusConfig

    aggregator = ConsensusAggregator(ConsensusConfig(approval_threshold=70))
    result = aggregator.aggregate(application_id, votes, finalized_at)
"""

from .aggregator import ConsensusAggregator
from .errors import ConsensusError, NoVotesError
from .models import ConsensusConfig, ConsensusResult, IqrSummary, Outcome, TallyResult
from .tally import tally_decisions

__all__ = [
    # Main components
    "ConsensusAggregator",
    "tally_decisions",
    # Configuration
    "ConsensusConfig",
    # Result models
    "ConsensusResult",
    "IqrSummary",
    "Outcome",
    "TallyResult",
    # Errors
    "ConsensusError",
    "NoVotesError",
]
