"""
Long-running consensus service.

Runs the deadline sweep and inactivity decay on a schedule and forwards the
engine's ledger effects to the treasury.
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..orchestration import ConsensusEngine
from ..treasury import (
    AuthenticationError,
    EffectRejectedError,
    TreasuryClient,
    TreasuryConfig,
    TreasuryError,
)
from .config import check_config, config_to_dict, get_config, setup_logging

logger = logging.getLogger(__name__)


class ConsensusService:
    """
    Infrastructure around ConsensusEngine: scheduling and effect dispatch.

    The consensus business logic lives in guild_consensus.orchestration.
    """

    def __init__(
        self,
        config: argparse.Namespace,
        engine: ConsensusEngine | None = None,
        treasury: TreasuryClient | None = None,
    ):
        self.config = config
        logger.info(f"Config: {config_to_dict(config)}")

        self.engine = engine or ConsensusEngine.create(
            guild_config_path=config.guild_config_path
        )
        self.treasury = treasury or TreasuryClient(
            TreasuryConfig(url=config.treasury_url, token=config.treasury_token)
        )
        self._stopped: asyncio.Event = asyncio.Event()

    async def dispatch_effects(self) -> int:
        """
        Send queued ledger effects to the treasury.

        On a transient failure the batch is put back and retried after the
        next sweep. Rejected batches are logged and dropped.

        Returns:
            Number of effects the treasury applied
        """
        if self.config.disable_effect_dispatch:
            return 0

        effects = self.engine.drain_effects()
        if not effects:
            return 0

        try:
            return await self.treasury.apply_effects(effects)
        except EffectRejectedError as e:
            logger.error(
                f"Treasury rejected {len(effects)} effects: {e}; "
                f"ids: {', '.join(eff.effect_id for eff in effects)}"
            )
            return 0
        except AuthenticationError:
            self.engine.requeue_effects(effects)
            raise
        except TreasuryError as e:
            logger.warning(f"Effect dispatch failed, requeueing {len(effects)}: {e}")
            self.engine.requeue_effects(effects)
            return 0

    async def run_sweep(self) -> None:
        """Scheduled job: finalize due applications, then dispatch effects."""
        logger.debug("Running deadline sweep...")
        await self.engine.sweep()
        await self.dispatch_effects()

    async def run_decay(self) -> None:
        """Scheduled job: one inactivity decay cycle."""
        events = self.engine.run_decay()
        logger.info(f"Decay cycle applied to {len(events)} reviewers")

    def create_scheduler(self) -> AsyncIOScheduler:
        """Build the scheduler with the sweep and decay jobs."""
        scheduler = AsyncIOScheduler(timezone="UTC")

        async def _scheduled_sweep():
            try:
                await self.run_sweep()
            except AuthenticationError as e:
                logger.error(f"Treasury authentication failed: {e}")

        scheduler.add_job(
            _scheduled_sweep,
            IntervalTrigger(seconds=self.config.sweep_interval_seconds, timezone="UTC"),
            id="deadline_sweep",
            name="Finalize applications past their deadline",
            max_instances=1,
            coalesce=True,
        )
        scheduler.add_job(
            self.run_decay,
            IntervalTrigger(hours=self.config.decay_interval_hours, timezone="UTC"),
            id="inactivity_decay",
            name="Inactivity reputation decay",
            max_instances=1,
            coalesce=True,
        )
        return scheduler

    def stop(self) -> None:
        self._stopped.set()

    async def run(self) -> None:
        """
        Main entry point.

        Checks the treasury, starts the scheduler and runs until stopped.
        """
        if not self.config.disable_effect_dispatch:
            try:
                healthy = await self.treasury.health_check()
            except TreasuryError as e:
                logger.warning(f"Treasury health check failed: {e}")
                healthy = False
            if not healthy:
                logger.warning("Treasury not reachable; effects will queue until it is")

        scheduler = self.create_scheduler()
        scheduler.start()
        logger.info(
            f"Consensus service started: sweep every {self.config.sweep_interval_seconds}s, "
            f"decay every {self.config.decay_interval_hours}h"
        )

        try:
            await self._stopped.wait()
        except asyncio.CancelledError:
            logger.info("Consensus service stopped")
        finally:
            scheduler.shutdown()
            # Flush effects queued since the last sweep
            await self.dispatch_effects()


async def main() -> None:
    """CLI entry point."""
    config = get_config()
    setup_logging(config.log_level)
    check_config(config)

    service = ConsensusService(config)
    await service.run()


if __name__ == "__main__":
    asyncio.run(main())
