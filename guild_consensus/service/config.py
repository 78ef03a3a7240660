"""
Consensus service configuration management.
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Any


def add_args(parser: argparse.ArgumentParser) -> None:
    """
    Add service arguments to the parser.

    Arguments can be overridden by environment variables.
    """

    parser.add_argument(
        "--guild_config",
        dest="guild_config_path",
        type=str,
        help="Path to the guild configuration YAML file.",
        default=os.environ.get("GUILD_CONFIG_PATH", "./guilds.yaml"),
    )

    parser.add_argument(
        "--treasury.url",
        dest="treasury_url",
        type=str,
        help="URL of the treasury ledger service.",
        default=os.environ.get("TREASURY_URL", "http://localhost:8100"),
    )

    parser.add_argument(
        "--treasury.token",
        dest="treasury_token",
        type=str,
        help="Authentication token for the treasury.",
        default=os.environ.get("TREASURY_TOKEN", ""),
    )

    parser.add_argument(
        "--sweep_interval",
        dest="sweep_interval_seconds",
        type=int,
        help="Seconds between deadline sweeps.",
        default=int(os.environ.get("SWEEP_INTERVAL_SECONDS", "60")),
    )

    parser.add_argument(
        "--decay_interval",
        dest="decay_interval_hours",
        type=int,
        help="Hours between inactivity decay cycles.",
        default=int(os.environ.get("DECAY_INTERVAL_HOURS", "24")),
    )

    parser.add_argument(
        "--disable_effect_dispatch",
        action="store_true",
        help="Keep ledger effects queued instead of sending them to the treasury.",
        default=os.environ.get("DISABLE_EFFECT_DISPATCH", "false").lower() == "true",
    )

    parser.add_argument(
        "--log_level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level.",
        default=os.environ.get("LOG_LEVEL", "INFO"),
    )


def get_config(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse arguments and return configuration."""
    parser = argparse.ArgumentParser(
        description="Guild Consensus Service",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    add_args(parser)
    config = parser.parse_args(argv)

    # Convert paths to Path objects
    config.guild_config_path = Path(config.guild_config_path)

    return config


def check_config(config: argparse.Namespace) -> None:
    """
    Validate configuration.

    Raises:
        ValueError: If configuration is invalid.
    """
    if not config.guild_config_path.is_file():
        raise ValueError(
            f"Guild config {config.guild_config_path} not found "
            f"(set --guild_config or GUILD_CONFIG_PATH env var)"
        )

    if not config.disable_effect_dispatch and not config.treasury_token:
        raise ValueError("--treasury.token is required (or set TREASURY_TOKEN env var)")

    if config.sweep_interval_seconds <= 0:
        raise ValueError("--sweep_interval must be positive")

    if config.decay_interval_hours <= 0:
        raise ValueError("--decay_interval must be positive")


def config_to_dict(config: argparse.Namespace) -> dict[str, Any]:
    """Convert config to dictionary for logging."""
    return {
        "guild_config_path": str(config.guild_config_path),
        "treasury_url": config.treasury_url,
        "treasury_token": "***" if config.treasury_token else "",
        "sweep_interval_seconds": config.sweep_interval_seconds,
        "decay_interval_hours": config.decay_interval_hours,
        "disable_effect_dispatch": config.disable_effect_dispatch,
        "log_level": config.log_level,
    }


def setup_logging(level: str) -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
