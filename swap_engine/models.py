from typing import List, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator

# ALEX quotes every token at 1e8 base units, whatever its own decimals
FIXED_SCALE_DECIMALS = 8
FIXED_SCALE = 10 ** FIXED_SCALE_DECIMALS


class ContractRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str
    contract_name: str
    asset_name: Optional[str] = None

    @classmethod
    def parse(cls, ref: str) -> "ContractRef":
        """Parse "ADDRESS.CONTRACT_NAME::ASSET_NAME" """
        contract_part, _, asset_name = ref.partition("::")
        address, dot, contract_name = contract_part.partition(".")
        if not dot or not address or not contract_name:
            raise ValueError(f"Invalid contract reference: {ref!r}")
        return cls(address=address, contract_name=contract_name, asset_name=asset_name or None)


class TokenDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    canonical_id: str = Field(alias="id")
    display_symbol: str = Field(default="", alias="name")
    contract_ref: str = Field(alias="wrapToken")
    declared_decimals: int = Field(default=FIXED_SCALE_DECIMALS, alias="wrapTokenDecimals")
    underlying_token: Optional[str] = Field(default=None, alias="underlyingToken")
    underlying_decimals: Optional[int] = Field(default=None, alias="underlyingTokenDecimals")

    def contract(self) -> ContractRef:
        return ContractRef.parse(self.contract_ref)


class PoolDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    pool_id: Union[int, str] = Field(alias="poolId")
    token_x: str = Field(alias="tokenX")
    token_y: str = Field(alias="tokenY")
    factor: Optional[int] = None


class Registry(BaseModel):
    model_config = ConfigDict(frozen=True)

    tokens: Tuple[TokenDescriptor, ...] = ()
    pools: Tuple[PoolDescriptor, ...] = ()
    last_fetched: float

    def find_token(self, canonical_id: str) -> Optional[TokenDescriptor]:
        return next((t for t in self.tokens if t.canonical_id == canonical_id), None)


class RouteCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    hop_tokens: Tuple[str, ...]  # Canonical ids, source first
    hops: Tuple[PoolDescriptor, ...]  # Pools traversed, in order

    @model_validator(mode="after")
    def _check_shape(self) -> "RouteCandidate":
        if len(self.hops) not in (1, 2):
            raise ValueError(f"Route must have 1 or 2 hops, got {len(self.hops)}")
        if len(self.hops) != len(self.hop_tokens) - 1:
            raise ValueError("Route needs exactly one more token than hops")
        return self

    @property
    def source(self) -> str:
        return self.hop_tokens[0]

    @property
    def destination(self) -> str:
        return self.hop_tokens[-1]

    @property
    def hop_count(self) -> int:
        return len(self.hops)

    @property
    def is_multi_hop(self) -> bool:
        return self.hop_count > 1


class TokenContract(BaseModel):
    address: str
    name: str
    decimals: int


class QuoteResult(BaseModel):
    output_amount: str  # Exactly 8 fractional digits
    route: List[str]  # Display symbols
    exchange_rate: float
    price_impact_estimate: float  # Percent


class SwapQuote(BaseModel):
    from_symbol: str
    to_symbol: str
    input_amount: str
    output_amount: str
    minimum_received: str
    route: List[str]
    hops: int
    exchange_rate: float
    price_impact: float
    slippage_tolerance: float


class SwapPair(BaseModel):
    from_symbol: str
    to_symbol: str
