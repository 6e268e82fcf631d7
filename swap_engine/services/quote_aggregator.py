import logging
from decimal import Decimal, ROUND_DOWN
from typing import List, Optional, Set, FrozenSet
from swap_engine.models import RouteCandidate, SwapPair, SwapQuote, TokenContract
from swap_engine.errors import NoRouteError
from swap_engine.services.quote_executor import Amount, QuoteExecutor, to_decimal
from swap_engine.config import settings

logger = logging.getLogger(__name__)


class QuoteAggregator:
    """Public entry point for routes, quotes, token contracts and pairs"""

    def __init__(self, executor: QuoteExecutor):
        self.executor = executor
        self.pool_cache = executor.pool_cache
        self.route_finder = executor.route_finder
        self.resolver = executor.resolver

    async def find_route(self, from_symbol: str, to_symbol: str) -> RouteCandidate:
        return await self.route_finder.find_route(from_symbol, to_symbol)

    async def get_token_contract(self, symbol: str) -> Optional[TokenContract]:
        return await self.executor.get_token_contract(symbol)

    async def get_swap_quote(
            self,
            from_symbol: str,
            to_symbol: str,
            amount: Amount,
            slippage_tolerance: float = settings.DEFAULT_SLIPPAGE_TOLERANCE
    ) -> SwapQuote:
        """
        Quote a swap for callers.

        Args:
            from_symbol: Symbol to sell
            to_symbol: Symbol to buy
            amount: Human-readable input amount
            slippage_tolerance: Percent used for minimum_received (0.5 = 0.5%)
        """
        amount = to_decimal(amount)
        result = await self.executor.get_swap_quote(from_symbol, to_symbol, amount)

        output = Decimal(result.output_amount)
        minimum_received = (output * (1 - Decimal(str(slippage_tolerance)) / 100)).quantize(
            Decimal("0.00000001"), rounding=ROUND_DOWN
        )

        return SwapQuote(
            from_symbol=result.route[0],
            to_symbol=result.route[-1],
            input_amount=str(amount),
            output_amount=result.output_amount,
            minimum_received=f"{minimum_received:f}",
            route=result.route,
            hops=len(result.route) - 1,
            exchange_rate=result.exchange_rate,
            price_impact=result.price_impact_estimate,
            slippage_tolerance=slippage_tolerance
        )

    async def get_available_pairs(self) -> List[SwapPair]:
        """Both directions of every pool whose tokens have display symbols"""
        registry = await self.pool_cache.get_data()
        pairs: List[SwapPair] = []
        seen: Set[FrozenSet[str]] = set()

        for pool in registry.pools:
            if not (self.resolver.is_known_id(pool.token_x) and self.resolver.is_known_id(pool.token_y)):
                continue

            key = frozenset((pool.token_x, pool.token_y))
            if key in seen:
                continue
            seen.add(key)

            symbol_x = self.resolver.to_display_symbol(pool.token_x)
            symbol_y = self.resolver.to_display_symbol(pool.token_y)
            pairs.append(SwapPair(from_symbol=symbol_x, to_symbol=symbol_y))
            pairs.append(SwapPair(from_symbol=symbol_y, to_symbol=symbol_x))

        return pairs

    async def is_pair_supported(self, from_symbol: str, to_symbol: str) -> bool:
        if self.resolver.to_canonical_id(from_symbol) == self.resolver.to_canonical_id(to_symbol):
            return False
        try:
            await self.find_route(from_symbol, to_symbol)
        except NoRouteError:
            return False
        return True
