"""Load guild configuration from YAML."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from ..appeals.models import AppealConfig
from ..consensus.models import ConsensusConfig
from ..incentives.models import DistributorConfig
from ..reputation.errors import RewardTierConfigError
from ..reputation.models import AlignmentConfig, RewardTier
from ..reputation.tiers import validate_reward_tiers
from ..rubric.errors import RubricTemplateError
from ..rubric.models import RubricTemplate
from ..voting.models import PhaseConfig
from .errors import GuildConfigError
from .models import GuildConfig

logger = logging.getLogger(__name__)


def _hours(value: Any) -> timedelta:
    return timedelta(hours=float(value))


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, Mapping):
        raise GuildConfigError(f"'{key}' must be a mapping")
    return section


def _parse_tiers(raw: list[Mapping[str, Any]]) -> tuple[RewardTier, ...]:
    tiers = tuple(
        RewardTier(
            name=str(t["name"]),
            min_reputation=int(t["min_reputation"]),
            max_reputation=(
                int(t["max_reputation"]) if t.get("max_reputation") is not None else None
            ),
            reward_weight=Decimal(str(t["reward_weight"])),
        )
        for t in raw
    )
    validate_reward_tiers(tiers)
    return tiers


def guild_config_from_dict(data: Mapping[str, Any]) -> GuildConfig:
    """
    Build a GuildConfig from a parsed document.

    Expected format (all sections optional except guild_id):
        guild_id: solidity
        name: Solidity Experts
        voting:
          requires_commit_reveal: true
          reveal_hours: 24
        consensus:
          approval_threshold: 70
          min_votes_for_outlier_filter: 3
          iqr_multiplier: 1.5
        alignment:
          aligned_below: 10
          mild_below: 20
          moderate_up_to: 30
          deltas: {aligned: 10, mild: -5, moderate: -10, severe: -20}
          slash_percents: {aligned: 0, mild: 5, moderate: 10, severe: 25}
        reward_tiers:
          - {name: Foundation, min_reputation: 0, max_reputation: 999, reward_weight: "1.0"}
        appeals:
          window_hours: 168
          voting_hours: 72
          panel_size: 5
          min_panel_size: 3
          min_stake: 0
          overturn_credit: 3
          upheld_penalty: -5
          majority_vote_credit: 5
        rubrics:
          experienced: {id: ..., criteria: [...], red_flags: [...]}

    Raises:
        GuildConfigError: If the document is invalid
    """
    try:
        guild_id = str(data["guild_id"])

        voting = _section(data, "voting")
        phase = PhaseConfig(
            requires_commit_reveal=bool(voting.get("requires_commit_reveal", False)),
            reveal_duration=_hours(voting.get("reveal_hours", 24)),
        )

        consensus_data = _section(data, "consensus")
        defaults = ConsensusConfig()
        consensus = ConsensusConfig(
            approval_threshold=float(
                consensus_data.get("approval_threshold", defaults.approval_threshold)
            ),
            min_votes_for_outlier_filter=int(
                consensus_data.get(
                    "min_votes_for_outlier_filter", defaults.min_votes_for_outlier_filter
                )
            ),
            iqr_multiplier=float(
                consensus_data.get("iqr_multiplier", defaults.iqr_multiplier)
            ),
        )

        alignment_data = _section(data, "alignment")
        deltas = _section(alignment_data, "deltas")
        slashes = _section(alignment_data, "slash_percents")
        base = AlignmentConfig()
        alignment = AlignmentConfig(
            aligned_below=float(alignment_data.get("aligned_below", base.aligned_below)),
            mild_below=float(alignment_data.get("mild_below", base.mild_below)),
            moderate_up_to=float(
                alignment_data.get("moderate_up_to", base.moderate_up_to)
            ),
            aligned_delta=int(deltas.get("aligned", base.aligned_delta)),
            mild_delta=int(deltas.get("mild", base.mild_delta)),
            moderate_delta=int(deltas.get("moderate", base.moderate_delta)),
            severe_delta=int(deltas.get("severe", base.severe_delta)),
            aligned_slash_percent=int(slashes.get("aligned", base.aligned_slash_percent)),
            mild_slash_percent=int(slashes.get("mild", base.mild_slash_percent)),
            moderate_slash_percent=int(
                slashes.get("moderate", base.moderate_slash_percent)
            ),
            severe_slash_percent=int(slashes.get("severe", base.severe_slash_percent)),
        )
        if not (
            0 < alignment.aligned_below <= alignment.mild_below <= alignment.moderate_up_to
        ):
            raise GuildConfigError("Alignment boundaries must be positive and increasing")

        distributor = DistributorConfig()
        if data.get("reward_tiers"):
            distributor = DistributorConfig(tiers=_parse_tiers(data["reward_tiers"]))

        appeals_data = _section(data, "appeals")
        appeal_defaults = AppealConfig()
        appeals = AppealConfig(
            appeal_window=(
                _hours(appeals_data["window_hours"])
                if "window_hours" in appeals_data
                else appeal_defaults.appeal_window
            ),
            voting_period=(
                _hours(appeals_data["voting_hours"])
                if "voting_hours" in appeals_data
                else appeal_defaults.voting_period
            ),
            panel_size=int(appeals_data.get("panel_size", appeal_defaults.panel_size)),
            min_panel_size=int(
                appeals_data.get("min_panel_size", appeal_defaults.min_panel_size)
            ),
            min_appeal_stake=int(
                appeals_data.get("min_stake", appeal_defaults.min_appeal_stake)
            ),
            overturn_credit=int(
                appeals_data.get("overturn_credit", appeal_defaults.overturn_credit)
            ),
            upheld_penalty=int(
                appeals_data.get("upheld_penalty", appeal_defaults.upheld_penalty)
            ),
            majority_vote_credit=int(
                appeals_data.get(
                    "majority_vote_credit", appeal_defaults.majority_vote_credit
                )
            ),
        )
        if appeals.min_panel_size > appeals.panel_size:
            raise GuildConfigError("appeals.min_panel_size cannot exceed panel_size")

        rubrics = {
            str(level): RubricTemplate.from_dict(template)
            for level, template in _section(data, "rubrics").items()
        }

    except (RubricTemplateError, RewardTierConfigError) as e:
        raise GuildConfigError(f"Invalid guild config: {e}") from e
    except (KeyError, TypeError, ValueError, InvalidOperation) as e:
        raise GuildConfigError(f"Invalid guild config: {e}") from e

    return GuildConfig(
        guild_id=guild_id,
        name=str(data.get("name", guild_id)),
        phase=phase,
        consensus=consensus,
        alignment=alignment,
        distributor=distributor,
        appeals=appeals,
        rubric_templates=rubrics,
    )


def load_guild_config(path: Path) -> GuildConfig:
    """Load a single guild configuration from a YAML file."""
    configs = load_guild_configs(path)
    if len(configs) != 1:
        raise GuildConfigError(f"Expected one guild in {path}, found {len(configs)}")
    return configs[0]


def load_guild_configs(path: Path) -> list[GuildConfig]:
    """
    Load guild configurations from a YAML file.

    The file holds either one guild mapping or a `guilds:` list of them.
    """
    if not path.exists():
        raise GuildConfigError(f"Guild config not found: {path}")
    try:
        with open(path) as f:
            document = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise GuildConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(document, Mapping):
        raise GuildConfigError(f"Guild config {path} must be a mapping")

    entries = document.get("guilds", [document])
    configs = [guild_config_from_dict(entry) for entry in entries]
    logger.info(f"Loaded {len(configs)} guild configs from {path}")
    return configs
