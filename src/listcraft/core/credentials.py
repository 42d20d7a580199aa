"""Credential availability checks.

A provider is usable when some credential source can serve it.  Sources are
modelled as strategies evaluated in a fixed order; the resolver only answers
yes or no and never reveals which strategy said yes.

Strategies
----------
- :class:`TrustedIntermediaryStrategy` asks the intermediary whether it holds a
  server-side key (``POST /api/check-api-key``).  Every failure mode degrades
  to ``False``.
- :class:`LocalCredentialStrategy` looks at caller-supplied keys.

Usage
-----
::

    async with httpx.AsyncClient() as client:
        resolver = CredentialResolver.default(client, "http://localhost:8000", creds)
        availability = await resolver.check_all_availability()
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from types import MappingProxyType

import httpx

from .models import LocalCredentials, Provider

logger = logging.getLogger(__name__)

CHECK_KEY_PATH = "/api/check-api-key"


class CredentialStrategy(ABC):
    """One source of provider credentials."""

    name: str = "strategy"

    @abstractmethod
    async def has_credential(self, provider: Provider) -> bool:
        """Return whether this source can serve *provider*.  Must not raise."""


class TrustedIntermediaryStrategy(CredentialStrategy):
    """Ask the trusted intermediary whether it holds a key for a provider."""

    name = "intermediary"

    def __init__(self, client: httpx.AsyncClient, base_url: str) -> None:
        self.client = client
        self.base_url = base_url.rstrip("/")

    async def has_credential(self, provider: Provider) -> bool:
        url = f"{self.base_url}{CHECK_KEY_PATH}"
        try:
            response = await self.client.post(url, json={"provider": provider.value})
        except httpx.HTTPError as e:
            logger.warning(f"Credential check for {provider.value} failed: {e}")
            return False

        if not response.is_success:
            logger.warning(
                f"Credential check for {provider.value} returned HTTP {response.status_code}"
            )
            return False

        try:
            payload = response.json()
        except ValueError:
            logger.warning(f"Credential check for {provider.value} returned a non-JSON body")
            return False

        value = payload.get("hasCredential") if isinstance(payload, dict) else None
        if not isinstance(value, bool):
            logger.warning(f"Credential check for {provider.value} returned no boolean answer")
            return False
        return value


class LocalCredentialStrategy(CredentialStrategy):
    """Check caller-supplied keys."""

    name = "local"

    def __init__(self, credentials: LocalCredentials) -> None:
        self.credentials = credentials

    async def has_credential(self, provider: Provider) -> bool:
        return self.credentials.has(provider)


class CredentialResolver:
    """Answer "is this provider usable?" across an ordered strategy list.

    ``availability`` is the last published result of
    :meth:`check_all_availability`.  A refresh builds a complete new mapping and
    swaps it in with one assignment, so readers never see a half-updated map.
    """

    def __init__(self, strategies: Sequence[CredentialStrategy]) -> None:
        self.strategies = list(strategies)
        self._availability: Mapping[Provider, bool] = MappingProxyType({})

    @classmethod
    def default(
        cls,
        client: httpx.AsyncClient,
        intermediary_url: str,
        credentials: LocalCredentials,
    ) -> CredentialResolver:
        """Build the standard intermediary-then-local resolver."""
        return cls(
            [
                TrustedIntermediaryStrategy(client, intermediary_url),
                LocalCredentialStrategy(credentials),
            ]
        )

    @property
    def availability(self) -> Mapping[Provider, bool]:
        return self._availability

    async def check_availability(self, provider: Provider) -> bool:
        """Return True if any strategy can serve *provider*.  Never raises."""
        for strategy in self.strategies:
            try:
                if await strategy.has_credential(provider):
                    return True
            except Exception as e:
                # A misbehaving strategy counts as "no" for this provider only.
                logger.warning(f"{strategy.name} strategy failed for {provider.value}: {e}")
        return False

    async def check_all_availability(self) -> Mapping[Provider, bool]:
        """Check every provider concurrently and publish the result."""
        providers = list(Provider)
        results = await asyncio.gather(*(self.check_availability(p) for p in providers))
        snapshot = MappingProxyType(dict(zip(providers, results)))
        self._availability = snapshot

        available = [p.value for p, ok in snapshot.items() if ok]
        logger.info(f"Credential availability refreshed: {available or 'none'}")
        return snapshot
