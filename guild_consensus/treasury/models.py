"""Ledger effects queued for the treasury collaborator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class EffectKind(StrEnum):
    REWARD_TRANSFER = "reward_transfer"
    """Pay an aligned reviewer their reward share."""

    TREASURY_RETURN = "treasury_return"
    """Return an undistributed pool to the guild treasury."""

    STAKE_SLASH = "stake_slash"
    """Slash part of a deviating reviewer's stake."""

    APPEAL_STAKE_RETURN = "appeal_stake_return"
    APPEAL_STAKE_FORFEIT = "appeal_stake_forfeit"


@dataclass(frozen=True)
class LedgerEffect:
    """
    A token movement for the external ledger to apply.

    Effects are produced under the application lock but only dispatched after
    it is released. `effect_id` is deterministic so the ledger can deduplicate
    retried dispatches.
    """

    effect_id: str
    kind: EffectKind
    application_id: str
    account_id: str
    """Reviewer, appellant, or guild treasury account."""

    amount: int
    reference: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "effect_id": self.effect_id,
            "kind": self.kind.value,
            "application_id": self.application_id,
            "account_id": self.account_id,
            "amount": self.amount,
            "reference": self.reference,
        }
