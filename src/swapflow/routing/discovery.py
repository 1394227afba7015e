"""Route discovery: turns a quote request into a tagged route set."""

import asyncio
import logging
import random
import uuid
from decimal import ROUND_DOWN, Decimal
from typing import Optional

from swapflow.config import Settings, get_settings
from swapflow.errors import QuoteError
from swapflow.routing.base import QuoteRequest, Route
from swapflow.routing.ranking import DEFAULT_STRATEGIES, RankingStrategy, assign_tags
from swapflow.routing.registry import ProviderProfile, ProviderRegistry

logger = logging.getLogger(__name__)

AMOUNT_QUANT = Decimal("0.00000001")
USD_QUANT = Decimal("0.0001")


class RouteDiscoveryService:
    """Computes candidate routes from the provider registry.

    An empty list means "no routes available"; provider failures are logged
    and degraded rather than raised.
    """

    def __init__(
        self,
        registry: Optional[ProviderRegistry] = None,
        settings: Optional[Settings] = None,
        strategies: tuple[RankingStrategy, ...] = DEFAULT_STRATEGIES,
        rng: Optional[random.Random] = None,
    ):
        self.registry = registry or ProviderRegistry()
        self.settings = settings or get_settings()
        self.strategies = strategies
        if rng is None and self.settings.time_jitter_enabled:
            rng = random.Random()
        self._rng = rng

    async def discover(self, request: QuoteRequest) -> list[Route]:
        """Get all candidate routes for a request, tagged and in generation order."""
        if request.amount <= 0:
            logger.debug(f"Skipping discovery for non-positive amount: {request.describe()}")
            return []

        logger.info(f"Discovering routes: {request.describe()}")

        # Stand-in for the provider network round trip
        if self.settings.discovery_latency_seconds > 0:
            await asyncio.sleep(self.settings.discovery_latency_seconds)

        try:
            candidates = self._build_candidates(request)
        except QuoteError as e:
            logger.warning(f"No routes for {request.describe()}: {e}")
            return []

        routes = assign_tags(candidates, self.strategies)

        if routes:
            best = max(routes, key=lambda r: r.output_amount)
            logger.info(
                f"Got {len(routes)} route(s) for {request.describe()}. "
                f"Best: {best.provider_name} ({best.output_amount} {best.to_symbol})"
            )
        else:
            logger.warning(f"No providers serve {request.from_chain}->{request.to_chain}")
        return routes

    def _build_candidates(self, request: QuoteRequest) -> list[Route]:
        if request.to_asset.price <= 0:
            raise QuoteError(f"Invalid price for {request.to_asset.symbol}: {request.to_asset.price}")
        if request.from_asset.price < 0:
            raise QuoteError(f"Invalid price for {request.from_asset.symbol}: {request.from_asset.price}")

        base_output = request.amount * request.base_rate
        batch_id = uuid.uuid4().hex[:8]
        candidates = []
        errors = []

        for position, provider in enumerate(
            self.registry.providers_for(request.from_chain, request.to_chain)
        ):
            try:
                route = self._quote_provider(provider, request, base_output, f"{batch_id}-{position}")
            except (ArithmeticError, KeyError, ValueError, QuoteError) as e:
                error_msg = f"{provider.name} quote failed: {type(e).__name__}: {e}"
                logger.warning(error_msg)
                errors.append(error_msg)
                continue

            logger.debug(
                f"Quote from {provider.name}: {route.input_amount} {route.from_symbol} -> "
                f"{route.output_amount} {route.to_symbol} (fee ${route.fee_usd}, "
                f"{route.estimated_time_seconds}s)"
            )
            candidates.append(route)

        if not candidates and errors:
            raise QuoteError(f"All providers failed: {'; '.join(errors)}")
        return candidates

    def _quote_provider(
        self,
        provider: ProviderProfile,
        request: QuoteRequest,
        base_output: Decimal,
        route_id: str,
    ) -> Route:
        slippage = provider.slippage_for(request.notional_usd)
        if not Decimal("0") <= slippage < Decimal("1"):
            raise QuoteError(f"slippage out of range: {slippage}", provider=provider.name)

        output = (base_output * (Decimal("1") - slippage)).quantize(AMOUNT_QUANT, rounding=ROUND_DOWN)
        tolerance = request.slippage_tolerance / Decimal("100")
        minimum = (output * (Decimal("1") - tolerance)).quantize(AMOUNT_QUANT, rounding=ROUND_DOWN)

        fee = provider.fee_for(request.from_chain, request.notional_usd)
        if fee < 0:
            raise QuoteError(f"negative fee: {fee}", provider=provider.name)

        return Route(
            id=f"route_{route_id}",
            provider_name=provider.name,
            provider_icon=provider.icon,
            type=provider.kind,
            from_symbol=request.from_asset.symbol,
            to_symbol=request.to_asset.symbol,
            from_chain=request.from_chain,
            to_chain=request.to_chain,
            input_amount=request.amount,
            output_amount=output,
            fee_usd=fee.quantize(USD_QUANT),
            estimated_time_seconds=provider.settle_seconds(self._rng),
            steps=provider.render_steps(request),
            minimum_received=minimum,
        )
