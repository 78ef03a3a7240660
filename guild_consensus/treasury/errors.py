"""Custom exceptions for treasury interactions."""


class TreasuryError(Exception):
    """Base exception for treasury-related errors."""

    pass


class TreasuryConnectionError(TreasuryError):
    """
    Raised when connection to the treasury service fails.

    This can happen when:
    - The treasury service is not running
    - Network connectivity issues
    - The service returns a 5xx error
    """

    pass


class AuthenticationError(TreasuryError):
    """
    Raised when treasury authentication fails.

    This can happen when:
    - Invalid or expired token
    - Token not configured
    """

    pass


class EffectRejectedError(TreasuryError):
    """
    Raised when the treasury refuses a batch of effects.

    This can happen when:
    - An effect references an unknown account
    - An effect id was already applied with different content
    - Amounts are invalid
    """

    pass
