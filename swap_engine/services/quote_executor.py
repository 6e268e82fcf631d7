import logging
from decimal import Decimal, InvalidOperation, ROUND_FLOOR
from typing import Any, List, Optional, Union
from swap_engine.clarity import ClarityValue, contract_principal_cv, cv_to_json, uint_cv
from swap_engine.models import FIXED_SCALE, FIXED_SCALE_DECIMALS, QuoteResult, Registry, TokenContract
from swap_engine.errors import (
    ContractExecutionError,
    MalformedResponseError,
    TokenNotFoundError,
    ZeroOutputError,
)
from swap_engine.services.pool_cache import PoolDataCache
from swap_engine.services.price_impact import FixedHopPriceImpact, PriceImpactEstimator
from swap_engine.services.read_only import ReadOnlyCallProvider
from swap_engine.services.route_finder import RouteFinder
from swap_engine.services.symbols import SymbolResolver
from swap_engine.config import settings

logger = logging.getLogger(__name__)

# Same factor for every hop, at the same 1e8 scale as amounts
POOL_FACTOR = FIXED_SCALE

SINGLE_HOP_HELPER = "get-helper"
MULTI_HOP_HELPER = "get-helper-a"

Amount = Union[Decimal, str, int, float]


def to_decimal(amount: Amount) -> Decimal:
    try:
        return Decimal(str(amount))
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {amount!r}") from None


def to_base_units(amount: Decimal) -> int:
    """Human amount -> integer base units at the fixed 1e8 scale, rounded down"""
    return int((amount * FIXED_SCALE).to_integral_value(rounding=ROUND_FLOOR))


def format_base_units(value: int) -> str:
    """Integer base units -> decimal string with exactly 8 fractional digits"""
    sign = "-" if value < 0 else ""
    whole, fraction = divmod(abs(value), FIXED_SCALE)
    return f"{sign}{whole}.{fraction:0{FIXED_SCALE_DECIMALS}d}"


def parse_output_amount(result: Any) -> int:
    """
    Pull the output amount out of a normalized read-only call result.

    Accepts both {"value": "123"} and {"value": {"value": "123"}}.

    Raises:
        ContractExecutionError: if the result is an error response
        MalformedResponseError: if no integer amount can be found
    """
    if not isinstance(result, dict) or "value" not in result:
        raise MalformedResponseError(f"Unrecognized quote result: {result!r}")
    if result.get("success") is False:
        raise ContractExecutionError(result["value"])

    value = result["value"]
    if isinstance(value, dict):
        value = value.get("value")
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise MalformedResponseError(f"Unrecognized quote result: {result!r}")

    try:
        return int(value)
    except ValueError:
        raise MalformedResponseError(f"Non-integer quote amount: {value!r}") from None


class QuoteExecutor:
    def __init__(
            self,
            pool_cache: PoolDataCache,
            read_only: ReadOnlyCallProvider,
            route_finder: Optional[RouteFinder] = None,
            resolver: Optional[SymbolResolver] = None,
            price_impact: Optional[PriceImpactEstimator] = None,
            contract_address: str = settings.AMM_CONTRACT_ADDRESS,
            contract_name: str = settings.AMM_CONTRACT_NAME,
            network: str = settings.NETWORK,
            sender_address: Optional[str] = None
    ):
        self.pool_cache = pool_cache
        self.read_only = read_only
        self.resolver = resolver or SymbolResolver()
        self.route_finder = route_finder or RouteFinder(pool_cache, self.resolver)
        self.price_impact = price_impact or FixedHopPriceImpact()
        self.contract_address = contract_address
        self.contract_name = contract_name
        self.network = network
        self.sender_address = sender_address or contract_address

    async def get_token_contract(self, symbol: str) -> Optional[TokenContract]:
        """Get the contract of a token by symbol or token id"""
        registry = await self.pool_cache.get_data()
        return self._token_contract(registry, self.resolver.to_canonical_id(symbol))

    @staticmethod
    def _token_contract(registry: Registry, canonical_id: str) -> Optional[TokenContract]:
        token = registry.find_token(canonical_id)
        if token is None:
            return None

        try:
            ref = token.contract()
        except ValueError as e:
            logger.warning(f"Unusable contract reference for {canonical_id}: {str(e)}")
            return None

        return TokenContract(
            address=ref.address,
            name=ref.contract_name,
            decimals=token.declared_decimals
        )

    async def get_swap_quote(self, from_symbol: str, to_symbol: str, amount: Amount) -> QuoteResult:
        """
        Price a swap with the AMM's read-only helper.

        Args:
            from_symbol: Symbol or token id to sell
            to_symbol: Symbol or token id to buy
            amount: Human-readable input amount

        Returns:
            QuoteResult with the output amount at 8 decimals
        """
        amount = to_decimal(amount)
        logger.info(f"Getting quote: {amount} {from_symbol} -> {to_symbol}")

        # One snapshot for both the route and the contract lookups
        registry = await self.pool_cache.get_data()
        route = self.route_finder.route_in(registry, from_symbol, to_symbol)

        contracts: List[TokenContract] = []
        for token_id in route.hop_tokens:
            contract = self._token_contract(registry, token_id)
            if contract is None:
                raise TokenNotFoundError(
                    f"Token contract not found for {self.resolver.to_display_symbol(token_id)}"
                )
            contracts.append(contract)

        amount_base = to_base_units(amount)
        function_args: List[ClarityValue] = [
            contract_principal_cv(contract.address, contract.name) for contract in contracts
        ]
        if route.is_multi_hop:
            function_name = MULTI_HOP_HELPER
            function_args += [uint_cv(POOL_FACTOR), uint_cv(POOL_FACTOR), uint_cv(amount_base)]
        else:
            function_name = SINGLE_HOP_HELPER
            function_args += [uint_cv(POOL_FACTOR), uint_cv(amount_base)]

        path = " -> ".join(f"{c.address}.{c.name}" for c in contracts)
        logger.info(f"Calling {function_name}: {path}")

        result = await self.read_only.call_read_only(
            contract_address=self.contract_address,
            contract_name=self.contract_name,
            function_name=function_name,
            function_args=function_args,
            network=self.network,
            sender_address=self.sender_address
        )
        result_json = cv_to_json(result)
        logger.debug(f"{function_name} result: {result_json}")

        output_base = parse_output_amount(result_json)
        if output_base == 0:
            raise ZeroOutputError("Got zero output from quote")

        output_amount = format_base_units(output_base)
        exchange_rate = float(Decimal(output_amount) / amount) if amount else 0.0

        return QuoteResult(
            output_amount=output_amount,
            route=[self.resolver.to_display_symbol(token_id) for token_id in route.hop_tokens],
            exchange_rate=exchange_rate,
            price_impact_estimate=self.price_impact.estimate(route, registry)
        )
