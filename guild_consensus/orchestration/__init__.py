"""
Orchestration: the engine that wires voting, consensus, reputation,
rewards and appeals together behind per-application locks.

Usage:
    from guild_consensus.orchestration import ConsensusEngine

    engine = ConsensusEngine.create(guild_config_path=Path("guilds.yaml"))
    await engine.open_application(application, candidate_stakes)
    await engine.submit_vote(application.application_id, "alice", scores, stake_amount=100)
    result = await engine.finalize(application.application_id)
"""

from .engine import ConsensusEngine
from .models import FinalizationResult

__all__ = [
    "ConsensusEngine",
    "FinalizationResult",
]
