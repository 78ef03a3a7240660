"""Guild-level configuration consumed as plain data."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..appeals.models import AppealConfig
from ..consensus.models import ConsensusConfig
from ..incentives.models import DistributorConfig
from ..reputation.models import AlignmentConfig
from ..rubric.errors import RubricTemplateNotFoundError
from ..rubric.models import RubricTemplate
from ..voting.models import PhaseConfig


@dataclass(frozen=True)
class GuildConfig:
    """
    Everything the engine needs to know about one guild.

    All numeric thresholds are defaults to confirm per guild, not fixed rules.
    """

    guild_id: str
    name: str = ""
    phase: PhaseConfig = field(default_factory=PhaseConfig)
    consensus: ConsensusConfig = field(default_factory=ConsensusConfig)
    alignment: AlignmentConfig = field(default_factory=AlignmentConfig)
    distributor: DistributorConfig = field(default_factory=DistributorConfig)
    appeals: AppealConfig = field(default_factory=AppealConfig)
    rubric_templates: dict[str, RubricTemplate] = field(default_factory=dict)
    """Expertise level -> rubric template."""

    @property
    def requires_commit_reveal(self) -> bool:
        return self.phase.requires_commit_reveal

    def rubric_for(self, expertise_level: str) -> RubricTemplate:
        """
        Raises:
            RubricTemplateNotFoundError: No template for the level
        """
        template = self.rubric_templates.get(expertise_level)
        if template is None:
            raise RubricTemplateNotFoundError(
                f"Guild {self.guild_id} has no rubric for level '{expertise_level}'"
            )
        return template
