from typing import Protocol
from swap_engine.models import Registry, RouteCandidate


class PriceImpactEstimator(Protocol):
    def estimate(self, route: RouteCandidate, registry: Registry) -> float:
        """Expected price impact of a swap along the route, in percent"""
        ...


class FixedHopPriceImpact:
    """
    Flat per-route-length placeholder, not derived from pool reserves.

    A reserve-based estimator can replace this without changing the
    quote's output type.
    """

    def __init__(self, single_hop: float = 0.3, multi_hop: float = 0.5):
        self.single_hop = single_hop
        self.multi_hop = multi_hop

    def estimate(self, route: RouteCandidate, registry: Registry) -> float:
        return self.multi_hop if route.is_multi_hop else self.single_hop
