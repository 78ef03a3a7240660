"""Commit-reveal hashing: sha256(score|stake|salt)."""

from __future__ import annotations

import hashlib
import hmac
import secrets

SALT_BYTES = 16


def canonical_score(score: float) -> str:
    """Fixed six-decimal rendering so 80 and 80.0 commit identically."""
    return f"{float(score):.6f}"


def compute_commit_hash(score: float, stake: int, salt: str) -> str:
    """
    Hash binding a score to a stake and a random salt.

    Args:
        score: Vote score on the 0-100 scale
        stake: Stake amount in token base units
        salt: Random salt kept secret until reveal

    Returns:
        Lowercase hex SHA-256 digest
    """
    payload = f"{canonical_score(score)}|{int(stake)}|{salt}".encode()
    return hashlib.sha256(payload).hexdigest()


def generate_salt() -> str:
    """Random hex salt for a new commitment."""
    return secrets.token_hex(SALT_BYTES)


def verify_commit(commit_hash: str, score: float, stake: int, salt: str) -> bool:
    """Recompute the hash and compare in constant time."""
    expected = compute_commit_hash(score, stake, salt)
    return hmac.compare_digest(expected, commit_hash.lower())
