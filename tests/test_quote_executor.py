"""Tests for quote execution against the read-only pricing helper."""

from decimal import Decimal

import pytest

from swap_engine.clarity import (
    contract_principal_cv,
    response_err_cv,
    response_ok_cv,
    string_ascii_cv,
    tuple_cv,
    uint_cv,
)
from swap_engine.errors import (
    ContractExecutionError,
    MalformedResponseError,
    NoRouteError,
    TokenNotFoundError,
    ZeroOutputError,
)
from swap_engine.services.quote_executor import (
    format_base_units,
    parse_output_amount,
    to_base_units,
)

from tests.conftest import (
    ABTC,
    ALEX,
    AMM_ADDRESS,
    DEFAULT_TOKENS,
    SUSDT,
    TOKEN_DEPLOYER,
    WSTX,
    pool_entry,
)

DIRECT = [pool_entry(1, WSTX, ALEX)]
TWO_HOP = [pool_entry(1, WSTX, ABTC), pool_entry(2, ABTC, SUSDT)]


class TestAmountConversion:
    """Tests for the fixed 1e8 scale helpers."""

    def test_to_base_units_rounds_down(self):
        assert to_base_units(Decimal("10")) == 1_000_000_000
        assert to_base_units(Decimal("0.123456789")) == 12_345_678

    def test_format_base_units(self):
        assert format_base_units(500_000_000) == "5.00000000"
        assert format_base_units(1) == "0.00000001"
        assert format_base_units(123_456_789_012) == "1234.56789012"


class TestParseOutputAmount:
    """Tests for result shape handling."""

    def test_nested_wrapper(self):
        assert parse_output_amount({"type": "response", "value": {"type": "uint", "value": "42"}, "success": True}) == 42

    def test_direct_scalar(self):
        assert parse_output_amount({"type": "uint", "value": "42"}) == 42
        assert parse_output_amount({"value": 42}) == 42

    def test_failure_carries_payload(self):
        with pytest.raises(ContractExecutionError) as exc_info:
            parse_output_amount({"value": {"type": "uint", "value": "2001"}, "success": False})

        assert exc_info.value.payload == {"type": "uint", "value": "2001"}

    @pytest.mark.parametrize(
        "result",
        [None, "42", {}, {"value": None}, {"value": True}, {"value": {"type": "tuple", "value": {}}}, {"value": "abc"}],
    )
    def test_unrecognized_shapes(self, result):
        with pytest.raises(MalformedResponseError):
            parse_output_amount(result)


class TestQuoteExecutor:
    """Tests for QuoteExecutor.get_swap_quote."""

    @pytest.mark.asyncio
    async def test_direct_quote(self, make_engine):
        """10 STX -> ALEX returning 5e8 base units quotes 5 ALEX at rate 0.5."""
        aggregator, read_only, _ = make_engine(DIRECT, result=response_ok_cv(uint_cv(500_000_000)))

        quote = await aggregator.executor.get_swap_quote("STX", "ALEX", 10)

        assert quote.output_amount == "5.00000000"
        assert quote.exchange_rate == 0.5
        assert quote.route == ["STX", "ALEX"]
        assert quote.price_impact_estimate == 0.3

    @pytest.mark.asyncio
    async def test_direct_call_shape(self, make_engine):
        aggregator, read_only, _ = make_engine(DIRECT, result=response_ok_cv(uint_cv(500_000_000)))

        await aggregator.executor.get_swap_quote("STX", "ALEX", "10")

        assert len(read_only.calls) == 1
        call = read_only.calls[0]
        assert call["contract_address"] == AMM_ADDRESS
        assert call["contract_name"] == "amm-pool-v2-01"
        assert call["function_name"] == "get-helper"
        assert call["network"] == "mainnet"
        assert call["sender_address"] == AMM_ADDRESS
        assert call["function_args"] == [
            contract_principal_cv(TOKEN_DEPLOYER, WSTX),
            contract_principal_cv(TOKEN_DEPLOYER, ALEX),
            uint_cv(100_000_000),
            uint_cv(1_000_000_000),
        ]

    @pytest.mark.asyncio
    async def test_two_hop_call_shape(self, make_engine):
        aggregator, read_only, _ = make_engine(TWO_HOP, result=response_ok_cv(uint_cv(1_234_500_000)))

        quote = await aggregator.executor.get_swap_quote("STX", "aUSD", Decimal("2.5"))

        assert quote.route == ["STX", "aBTC", "aUSD"]
        assert quote.output_amount == "12.34500000"
        assert quote.exchange_rate == pytest.approx(12.345 / 2.5)
        assert quote.price_impact_estimate == 0.5
        call = read_only.calls[0]
        assert call["function_name"] == "get-helper-a"
        assert call["function_args"] == [
            contract_principal_cv(TOKEN_DEPLOYER, WSTX),
            contract_principal_cv(TOKEN_DEPLOYER, ABTC),
            contract_principal_cv(TOKEN_DEPLOYER, SUSDT),
            uint_cv(100_000_000),
            uint_cv(100_000_000),
            uint_cv(250_000_000),
        ]

    @pytest.mark.asyncio
    async def test_fixed_scale_ignores_declared_decimals(self, make_engine):
        """STX declares 6 decimals but is still sent at 1e8."""
        aggregator, read_only, _ = make_engine(DIRECT, result=response_ok_cv(uint_cv(1)))

        await aggregator.executor.get_swap_quote("STX", "ALEX", 1)

        assert read_only.calls[0]["function_args"][-1] == uint_cv(100_000_000)

    @pytest.mark.asyncio
    async def test_scalar_result(self, make_engine):
        aggregator, _, _ = make_engine(DIRECT, result=uint_cv(250_000_000))

        quote = await aggregator.executor.get_swap_quote("STX", "ALEX", 1)

        assert quote.output_amount == "2.50000000"

    @pytest.mark.asyncio
    async def test_rate_matches_output_over_input(self, make_engine):
        aggregator, _, _ = make_engine(DIRECT, result=response_ok_cv(uint_cv(100_000_000)))

        quote = await aggregator.executor.get_swap_quote("STX", "ALEX", 3)

        assert len(quote.output_amount.split(".")[1]) == 8
        assert quote.exchange_rate == pytest.approx(float(Decimal(quote.output_amount) / 3))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("pools,to_symbol", [(DIRECT, "ALEX"), (TWO_HOP, "aUSD")])
    async def test_zero_output(self, make_engine, pools, to_symbol):
        aggregator, _, _ = make_engine(pools, result=response_ok_cv(uint_cv(0)))

        with pytest.raises(ZeroOutputError):
            await aggregator.executor.get_swap_quote("STX", to_symbol, 1)

    @pytest.mark.asyncio
    async def test_contract_error(self, make_engine):
        aggregator, _, _ = make_engine(DIRECT, result=response_err_cv(uint_cv(2001)))

        with pytest.raises(ContractExecutionError) as exc_info:
            await aggregator.executor.get_swap_quote("STX", "ALEX", 1)

        assert exc_info.value.payload == {"type": "uint", "value": "2001"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("result", [tuple_cv({"dy": uint_cv(1)}), string_ascii_cv("oops")])
    async def test_malformed_result(self, make_engine, result):
        aggregator, _, _ = make_engine(DIRECT, result=result)

        with pytest.raises(MalformedResponseError):
            await aggregator.executor.get_swap_quote("STX", "ALEX", 1)

    @pytest.mark.asyncio
    async def test_missing_token_contract(self, make_engine):
        """A route token absent from the registry fails before any call."""
        tokens = [t for t in DEFAULT_TOKENS if t["id"] != ABTC]
        aggregator, read_only, _ = make_engine(TWO_HOP, result=response_ok_cv(uint_cv(1)), tokens=tokens)

        with pytest.raises(TokenNotFoundError):
            await aggregator.executor.get_swap_quote("STX", "aUSD", 1)
        assert read_only.calls == []

    @pytest.mark.asyncio
    async def test_no_route(self, make_engine):
        aggregator, read_only, _ = make_engine(DIRECT, result=response_ok_cv(uint_cv(1)))

        with pytest.raises(NoRouteError):
            await aggregator.executor.get_swap_quote("STX", "aUSD", 1)
        assert read_only.calls == []

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, make_engine):
        aggregator, _, _ = make_engine(DIRECT, error=ConnectionError("node down"))

        with pytest.raises(ConnectionError):
            await aggregator.executor.get_swap_quote("STX", "ALEX", 1)

    @pytest.mark.asyncio
    async def test_custom_price_impact(self, make_engine):
        class ReserveBased:
            def estimate(self, route, registry):
                return 1.25

        aggregator, _, _ = make_engine(
            DIRECT, result=response_ok_cv(uint_cv(100)), price_impact=ReserveBased()
        )

        quote = await aggregator.executor.get_swap_quote("STX", "ALEX", 1)

        assert quote.price_impact_estimate == 1.25


class TestTokenContract:
    """Tests for QuoteExecutor.get_token_contract."""

    @pytest.mark.asyncio
    async def test_known_symbol(self, make_engine):
        aggregator, _, _ = make_engine(DIRECT)

        contract = await aggregator.executor.get_token_contract("stx")

        assert contract.address == TOKEN_DEPLOYER
        assert contract.name == WSTX
        assert contract.decimals == 6

    @pytest.mark.asyncio
    async def test_unknown_symbol(self, make_engine):
        aggregator, _, _ = make_engine(DIRECT)

        assert await aggregator.executor.get_token_contract("DOGE") is None

    @pytest.mark.asyncio
    async def test_unparseable_reference(self, make_engine):
        tokens = [{"id": WSTX, "name": "STX", "wrapToken": "not-a-contract", "wrapTokenDecimals": 8}]
        aggregator, _, _ = make_engine(DIRECT, tokens=tokens)

        assert await aggregator.executor.get_token_contract("STX") is None
