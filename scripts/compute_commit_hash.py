"""Compute the commit hash for a hidden score (commit-reveal guilds)."""

import sys

from guild_consensus.voting import compute_commit_hash, generate_salt

if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: uv run python scripts/compute_commit_hash.py <score> <stake> [salt]")
        sys.exit(1)

    score = float(sys.argv[1])
    stake = int(sys.argv[2])
    salt = sys.argv[3] if len(sys.argv) > 3 else generate_salt()

    print(f"salt: {salt}")
    print(f"hash: {compute_commit_hash(score, stake, salt)}")
