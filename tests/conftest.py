"""Pytest configuration and fixtures."""

import asyncio
import os
from decimal import Decimal

import pytest

# Set test environment
os.environ["SWAPFLOW_ENVIRONMENT"] = "test"
os.environ["SWAPFLOW_DEBUG"] = "true"

from swapflow.config import Settings
from swapflow.routing.base import Asset, QuoteRequest
from swapflow.routing.discovery import RouteDiscoveryService

ETH = Asset(symbol="ETH", chain="Ethereum", price=Decimal("3450.20"), balance=Decimal("250"))
USDC = Asset(symbol="USDC", chain="Ethereum", price=Decimal("1.00"), balance=Decimal("5000"))
SOL = Asset(symbol="SOL", chain="Solana", price=Decimal("145.80"), balance=Decimal("140"))
SOL_USDC = Asset(symbol="USDC", chain="Solana", price=Decimal("1.00"), balance=Decimal("0"))


def make_request(
    amount="100",
    from_asset: Asset = ETH,
    to_asset: Asset = USDC,
    from_chain: str = None,
    to_chain: str = None,
) -> QuoteRequest:
    """Build a quote request; chains default to the assets' chains."""
    return QuoteRequest(
        from_chain=from_chain or from_asset.chain,
        to_chain=to_chain or to_asset.chain,
        from_asset=from_asset,
        to_asset=to_asset,
        amount=Decimal(amount),
    )


class GatedDiscovery:
    """Discovery wrapper whose calls complete only when released by the test."""

    def __init__(self, inner: RouteDiscoveryService):
        self.inner = inner
        self.calls: list[tuple[QuoteRequest, asyncio.Event]] = []

    async def discover(self, request: QuoteRequest):
        gate = asyncio.Event()
        self.calls.append((request, gate))
        await gate.wait()
        return await self.inner.discover(request)

    def release(self, index: int) -> None:
        self.calls[index][1].set()


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays without waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


@pytest.fixture
def fast_settings() -> Settings:
    """Settings with every simulated wait disabled."""
    return Settings(
        discovery_latency_seconds=0,
        debounce_seconds=0.05,
        exchange_step_seconds=0,
        bridge_step_seconds=0,
        time_jitter_enabled=False,
    )


@pytest.fixture
def discovery(fast_settings) -> RouteDiscoveryService:
    return RouteDiscoveryService(settings=fast_settings)


@pytest.fixture
def gated_discovery(discovery) -> GatedDiscovery:
    return GatedDiscovery(discovery)
