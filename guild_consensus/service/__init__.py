"""
Service infrastructure layer.

This package contains:
- ConsensusService: scheduling of deadline sweeps and decay, effect dispatch
- Config: CLI argument parsing and configuration

The consensus business logic is in guild_consensus.orchestration.
"""

from .config import (
    add_args,
    check_config,
    config_to_dict,
    get_config,
    setup_logging,
)
from .service import ConsensusService

__all__ = [
    "ConsensusService",
    "add_args",
    "check_config",
    "config_to_dict",
    "get_config",
    "setup_logging",
]
