from typing import List, Optional
from decimal import Decimal
import strawberry
from strawberry.types import Info
from swap_engine.models import RouteCandidate, SwapQuote as SwapQuoteModel


@strawberry.type
class TokenContract:
    """GraphQL token contract type"""
    address: str
    name: str
    decimals: int


@strawberry.type
class SwapRoute:
    path: List[str]
    token_ids: List[str] = strawberry.field(name="tokenIds")
    pools: List[str]
    hops: int

    @classmethod
    def from_model(cls, route: RouteCandidate, info: Info) -> "SwapRoute":
        resolver = info.context["aggregator"].resolver
        return cls(
            path=[resolver.to_display_symbol(token_id) for token_id in route.hop_tokens],
            token_ids=list(route.hop_tokens),
            pools=[str(pool.pool_id) for pool in route.hops],
            hops=route.hop_count
        )


@strawberry.type
class SwapQuote:
    from_symbol: str = strawberry.field(name="fromSymbol")
    to_symbol: str = strawberry.field(name="toSymbol")
    input_amount: str = strawberry.field(name="inputAmount")
    output_amount: str = strawberry.field(name="outputAmount")
    minimum_received: str = strawberry.field(name="minimumReceived")
    route: List[str]
    hops: int
    exchange_rate: float = strawberry.field(name="exchangeRate")
    price_impact: float = strawberry.field(name="priceImpact")
    slippage_tolerance: float = strawberry.field(name="slippageTolerance")

    @classmethod
    def from_model(cls, quote: SwapQuoteModel) -> "SwapQuote":
        return cls(**quote.model_dump())


@strawberry.type
class SwapPair:
    from_symbol: str = strawberry.field(name="fromSymbol")
    to_symbol: str = strawberry.field(name="toSymbol")


@strawberry.type
class Query:
    @strawberry.field
    async def swap_route(self, info: Info, from_symbol: str, to_symbol: str) -> SwapRoute:
        aggregator = info.context["aggregator"]
        route = await aggregator.find_route(from_symbol, to_symbol)
        return SwapRoute.from_model(route, info)

    @strawberry.field
    async def swap_quote(
            self,
            info: Info,
            from_symbol: str,
            to_symbol: str,
            amount: float,
            slippage_tolerance: Optional[float] = None
    ) -> SwapQuote:
        aggregator = info.context["aggregator"]
        kwargs = {}
        if slippage_tolerance is not None:
            kwargs["slippage_tolerance"] = slippage_tolerance
        quote = await aggregator.get_swap_quote(
            from_symbol,
            to_symbol,
            Decimal(str(amount)),
            **kwargs
        )
        return SwapQuote.from_model(quote)

    @strawberry.field
    async def token_contract(self, info: Info, symbol: str) -> Optional[TokenContract]:
        contract = await info.context["aggregator"].get_token_contract(symbol)
        if contract is None:
            return None
        return TokenContract(address=contract.address, name=contract.name, decimals=contract.decimals)

    @strawberry.field
    async def available_pairs(self, info: Info) -> List[SwapPair]:
        pairs = await info.context["aggregator"].get_available_pairs()
        return [SwapPair(from_symbol=p.from_symbol, to_symbol=p.to_symbol) for p in pairs]

    @strawberry.field
    async def is_pair_supported(self, info: Info, from_symbol: str, to_symbol: str) -> bool:
        return await info.context["aggregator"].is_pair_supported(from_symbol, to_symbol)


# Create the schema
schema = strawberry.Schema(query=Query)
