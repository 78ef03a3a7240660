"""Treasury collaborator: ledger effects and the HTTP client that applies them."""

from .client import TreasuryClient, TreasuryConfig
from .errors import (
    AuthenticationError,
    EffectRejectedError,
    TreasuryConnectionError,
    TreasuryError,
)
from .models import EffectKind, LedgerEffect

__all__ = [
    # Client
    "TreasuryClient",
    "TreasuryConfig",
    # Errors
    "AuthenticationError",
    "EffectRejectedError",
    "TreasuryConnectionError",
    "TreasuryError",
    # Models
    "EffectKind",
    "LedgerEffect",
]
