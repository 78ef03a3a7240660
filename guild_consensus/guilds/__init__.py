"""Guild configuration: thresholds, tiers, appeal rules and rubric templates."""

from .errors import GuildConfigError, UnknownGuildError
from .loader import guild_config_from_dict, load_guild_config, load_guild_configs
from .models import GuildConfig

__all__ = [
    "GuildConfig",
    "guild_config_from_dict",
    "load_guild_config",
    "load_guild_configs",
    "GuildConfigError",
    "UnknownGuildError",
]
