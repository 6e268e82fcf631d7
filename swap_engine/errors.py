from typing import Any


class SwapEngineError(Exception):
    """Base class for route and quote failures"""


class FetchError(SwapEngineError):
    """Pool/token registry feed unreachable or returned a bad status"""


class TokenNotFoundError(SwapEngineError):
    """A route token has no contract mapping in the registry"""


class NoRouteError(SwapEngineError):
    """No 1-hop or 2-hop path between two tokens"""


class ContractExecutionError(SwapEngineError):
    """The read-only contract call reported a failure"""

    def __init__(self, payload: Any):
        self.payload = payload
        super().__init__(f"Contract error: {payload!r}")


class ZeroOutputError(SwapEngineError):
    """The quote call succeeded but returned zero output (no liquidity)"""


class MalformedResponseError(SwapEngineError):
    """The read-only call result has an unrecognized shape"""
