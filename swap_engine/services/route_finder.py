import logging
import networkx as nx
from typing import Optional, Sequence, Tuple
from swap_engine.models import PoolDescriptor, Registry, RouteCandidate
from swap_engine.errors import NoRouteError
from swap_engine.services.pool_cache import PoolDataCache
from swap_engine.services.symbols import SymbolResolver

logger = logging.getLogger(__name__)

# Tried in this order; the first one that connects both sides wins
INTERMEDIATE_TOKENS: Tuple[str, ...] = (
    'token-wstx',
    'age000-governance-token',
    'token-abtc',
)


class RouteFinder:
    def __init__(
            self,
            pool_cache: PoolDataCache,
            resolver: Optional[SymbolResolver] = None,
            intermediates: Sequence[str] = INTERMEDIATE_TOKENS
    ):
        self.pool_cache = pool_cache
        self.resolver = resolver or SymbolResolver()
        self.intermediates = tuple(intermediates)
        self.graph = nx.Graph()
        self._graph_registry: Optional[Registry] = None

    def update_graph(self, registry: Registry):
        """Rebuild the pool graph from a registry snapshot"""
        graph = nx.Graph()
        for pool in registry.pools:
            # Keep the first pool seen for a pair so lookups follow registry order
            if not graph.has_edge(pool.token_x, pool.token_y):
                graph.add_edge(pool.token_x, pool.token_y, pool=pool)

        self.graph = graph
        self._graph_registry = registry
        logger.debug(f"Pool graph rebuilt: {graph.number_of_nodes()} tokens, {graph.number_of_edges()} pairs")

    def _graph_for(self, registry: Registry) -> nx.Graph:
        if registry is not self._graph_registry:
            self.update_graph(registry)
        return self.graph

    def find_direct_pool(self, registry: Registry, token_a: str, token_b: str) -> Optional[PoolDescriptor]:
        edge_data = self._graph_for(registry).get_edge_data(token_a, token_b)
        return edge_data["pool"] if edge_data else None

    async def find_route(self, from_symbol: str, to_symbol: str) -> RouteCandidate:
        """
        Find a 1-hop or 2-hop route between two symbols.

        Args:
            from_symbol: Ticker or token id to sell
            to_symbol: Ticker or token id to buy

        Returns:
            RouteCandidate over the current registry

        Raises:
            NoRouteError: if neither a direct pool nor a known intermediate connects them
        """
        registry = await self.pool_cache.get_data()
        return self.route_in(registry, from_symbol, to_symbol)

    def route_in(self, registry: Registry, from_symbol: str, to_symbol: str) -> RouteCandidate:
        from_id = self.resolver.to_canonical_id(from_symbol)
        to_id = self.resolver.to_canonical_id(to_symbol)
        logger.info(f"Finding route: {from_symbol} ({from_id}) -> {to_symbol} ({to_id})")

        direct_pool = self.find_direct_pool(registry, from_id, to_id)
        if direct_pool:
            logger.info(f"Found direct pool: {direct_pool.pool_id}")
            return RouteCandidate(hop_tokens=(from_id, to_id), hops=(direct_pool,))

        for intermediate in self.intermediates:
            if intermediate in (from_id, to_id):
                continue

            first_hop = self.find_direct_pool(registry, from_id, intermediate)
            second_hop = self.find_direct_pool(registry, intermediate, to_id)
            if first_hop and second_hop:
                logger.info(f"Found 2-hop route via {self.resolver.to_display_symbol(intermediate)}")
                return RouteCandidate(
                    hop_tokens=(from_id, intermediate, to_id),
                    hops=(first_hop, second_hop)
                )

        raise NoRouteError(f"No route found for {from_symbol} -> {to_symbol}")
