"""HTTP client for the guild treasury / token ledger service."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from .errors import AuthenticationError, EffectRejectedError, TreasuryConnectionError
from .models import LedgerEffect

logger = logging.getLogger(__name__)

# Only unreachable-treasury failures are retried; rejections surface at once
_retry_unreachable = retry(
    wait=wait_exponential_jitter(initial=0.1, jitter=0.2),
    stop=stop_after_attempt(3),
    retry=retry_if_exception_type(TreasuryConnectionError),
    reraise=True,
)


@dataclass(frozen=True)
class TreasuryConfig:
    """Configuration for the treasury client."""

    url: str
    token: str
    timeout: float = 30.0
    """Seconds per request."""


class TreasuryClient:
    """
    Async HTTP client that applies ledger effects.

    Effect ids are deterministic, so retrying a batch after a connection error
    is safe: the treasury deduplicates by id.
    A fresh AsyncClient is opened per call so the service never holds a stale
    connection between sweeps.
    """

    def __init__(
        self,
        config: TreasuryConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize treasury client.

        Args:
            config: Treasury connection configuration
            transport: Optional custom transport (tests use httpx.MockTransport)
        """
        self._config = config
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._config.url,
            headers={
                "Authorization": f"Bearer {self._config.token}",
                "Content-Type": "application/json",
            },
            timeout=self._config.timeout,
            transport=self._transport,
        )

    @_retry_unreachable
    async def apply_effects(self, effects: Sequence[LedgerEffect]) -> int:
        """
        Apply a batch of effects.

        Args:
            effects: Effects to apply, in order

        Returns:
            Number of effects the treasury reports as applied

        Raises:
            AuthenticationError: If the token is invalid
            EffectRejectedError: If the treasury refuses the batch
            TreasuryConnectionError: If the treasury cannot be reached (after retries)
        """
        if not effects:
            return 0

        async with self._client() as client:
            try:
                response = await client.post(
                    "/api/v1/ledger/effects",
                    json={"effects": [e.to_dict() for e in effects]},
                )
                response.raise_for_status()
                data = response.json()
                applied = int(data.get("applied", len(effects)))
                logger.info(f"Treasury applied {applied}/{len(effects)} effects")
                return applied

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status == 401:
                    raise AuthenticationError("Invalid treasury token") from e
                if status in (409, 422):
                    raise EffectRejectedError(
                        f"Treasury rejected effects: {e.response.text}"
                    ) from e
                raise TreasuryConnectionError(f"Failed to apply effects: {e}") from e
            except httpx.RequestError as e:
                raise TreasuryConnectionError(f"Connection error: {e}") from e

    @_retry_unreachable
    async def health_check(self) -> bool:
        """
        Whether the treasury answers its health endpoint with 200.

        Raises TreasuryConnectionError when it stays unreachable after retries.
        """
        async with self._client() as client:
            try:
                response = await client.get("/health")
                return response.status_code == 200
            except httpx.RequestError as e:
                raise TreasuryConnectionError(f"Health check failed: {e}") from e
