"""Exceptions for guild configuration."""


class GuildConfigError(Exception):
    """
    Raised when a guild configuration cannot be loaded.

    This can happen when:
    - The YAML file does not exist or is not valid YAML
    - Required keys are missing or have the wrong type
    - Rubric templates or reward tiers are malformed
    """

    pass


class UnknownGuildError(GuildConfigError):
    """Raised when no configuration is registered for a guild id."""

    pass
