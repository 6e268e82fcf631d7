import asyncio
import time
import httpx
import logging
from typing import Callable, List, Optional, Type, TypeVar
from pydantic import BaseModel, ValidationError
from swap_engine.models import PoolDescriptor, Registry, TokenDescriptor
from swap_engine.errors import FetchError
from swap_engine.config import settings

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class PoolDataCache:
    """Pool/token registry from the ALEX API, memoized for a fixed TTL.

    The registry is a frozen snapshot replaced in one assignment, so readers
    never see a half-updated registry. Refreshes are single-flight: callers
    arriving while a fetch is running share its outcome instead of fetching
    again, whether it succeeds or fails.
    """

    def __init__(
            self,
            client: Optional[httpx.AsyncClient] = None,
            url: str = settings.ALEX_API_URL,
            ttl: float = settings.CACHE_TTL_SECONDS,
            clock: Callable[[], float] = time.monotonic
    ):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=settings.HTTP_TIMEOUT,
            headers={
                "Accept": "application/json",
                "User-Agent": "SwapEngine/1.0"
            }
        )
        self.url = url
        self.ttl = ttl
        self._clock = clock
        self._registry: Optional[Registry] = None
        # Bumped by invalidate(); a registry is fresh only for the generation it was fetched in
        self._generation = 0
        self._registry_generation = 0
        self._refresh: Optional[asyncio.Task] = None
        self._refresh_generation = 0

    def _is_fresh(self, registry: Optional[Registry]) -> bool:
        if registry is None or self._registry_generation != self._generation:
            return False
        return self._clock() - registry.last_fetched < self.ttl

    async def get_data(self) -> Registry:
        """Return the cached registry, fetching it first if missing or expired.

        Concurrent stale callers all await the same refresh task and get its
        registry or its FetchError. A refresh started before the last
        invalidate() is not joined.
        """
        registry = self._registry
        if self._is_fresh(registry):
            return registry

        if self._refresh is None or self._refresh_generation != self._generation:
            self._refresh_generation = self._generation
            self._refresh = asyncio.ensure_future(self._refresh_registry(self._generation))
        # A cancelled caller must not cancel the fetch the others are waiting on
        return await asyncio.shield(self._refresh)

    async def _refresh_registry(self, generation: int) -> Registry:
        task = asyncio.current_task()
        try:
            registry = await self._fetch()
        finally:
            if self._refresh is task:
                self._refresh = None

        # An older refresh finishing late must not replace a newer registry
        if generation >= self._registry_generation:
            self._registry = registry
            self._registry_generation = generation
        return registry

    def invalidate(self):
        """Force the next get_data() to refetch; the old registry stays until then"""
        self._generation += 1

    async def _fetch(self) -> Registry:
        logger.info(f"Fetching pool and token data from {self.url}")
        try:
            response = await self.client.get(self.url)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise FetchError(f"ALEX API error: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FetchError(f"ALEX API unreachable: {str(e)}") from e
        except ValueError as e:
            raise FetchError("ALEX API returned invalid JSON") from e

        if not isinstance(data, dict):
            raise FetchError(f"Unexpected ALEX API payload: {type(data).__name__}")

        tokens = self._parse_items(data.get("tokens") or [], TokenDescriptor, "token")
        pools = self._parse_items(data.get("pools") or [], PoolDescriptor, "pool")

        registry = Registry(
            tokens=tuple(tokens),
            pools=tuple(pools),
            last_fetched=self._clock()
        )
        logger.info(f"Loaded {len(pools)} pools, {len(tokens)} tokens")
        return registry

    @staticmethod
    def _parse_items(items, model: Type[ModelT], kind: str) -> List[ModelT]:
        if not isinstance(items, list):
            raise FetchError(f"Expected a list of {kind}s, got {type(items).__name__}")

        parsed: List[ModelT] = []
        for item in items:
            try:
                parsed.append(model.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed {kind} entry: {str(e)}")
                continue
        return parsed

    async def close(self):
        if self._owns_client:
            await self.client.aclose()
