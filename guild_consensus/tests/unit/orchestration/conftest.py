"""Shared fixtures for orchestration unit tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from guild_consensus.guilds import GuildConfig
from guild_consensus.orchestration import ConsensusEngine
from guild_consensus.rubric import RubricCriterion, RubricTemplate
from guild_consensus.utils import set_clock
from guild_consensus.voting import Application, PhaseConfig

OPENED = datetime(2025, 3, 1, 12, tzinfo=UTC)
VOTING_WINDOW = timedelta(days=3)


@pytest.fixture
def opened_at() -> datetime:
    """Pin the engine clock to the opening time."""
    set_clock(lambda: OPENED)
    return OPENED


@pytest.fixture
def rubric_template() -> RubricTemplate:
    """Single 0-100 criterion, so rubric points equal the vote score."""
    return RubricTemplate(
        template_id="engineering-senior",
        version=1,
        criteria=(RubricCriterion(id="quality", label="Overall quality", max_points=100),),
    )


@pytest.fixture
def direct_guild(rubric_template) -> GuildConfig:
    return GuildConfig(
        guild_id="engineering",
        name="Engineering",
        rubric_templates={"senior": rubric_template},
    )


@pytest.fixture
def commit_reveal_guild(rubric_template) -> GuildConfig:
    return GuildConfig(
        guild_id="solidity",
        name="Solidity",
        rubric_templates={"senior": rubric_template},
        phase=PhaseConfig(requires_commit_reveal=True, reveal_duration=timedelta(hours=24)),
    )


@pytest.fixture
def engine(direct_guild, commit_reveal_guild) -> ConsensusEngine:
    return ConsensusEngine([direct_guild, commit_reveal_guild])


@pytest.fixture
def make_application(opened_at):
    """
    Factory for applications opening at OPENED with a three-day window.

    Usage:
        application = make_application("app-1", guild_id="solidity", reward_pool=900)
    """

    def _make(
        application_id: str = "app-1",
        *,
        guild_id: str = "engineering",
        reward_pool: int = 1000,
        required_stake: int = 100,
    ) -> Application:
        return Application(
            application_id=application_id,
            guild_id=guild_id,
            applicant_id="candidate",
            expertise_level="senior",
            required_stake=required_stake,
            voting_deadline=opened_at + VOTING_WINDOW,
            reward_pool=reward_pool,
            created_at=opened_at,
        )

    return _make
