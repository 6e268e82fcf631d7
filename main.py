import logging
from contextlib import asynccontextmanager
from typing import Any, Dict
from fastapi import FastAPI
from strawberry.fastapi import GraphQLRouter
from swap_engine.schema import schema
from swap_engine.errors import FetchError
from swap_engine.services.pool_cache import PoolDataCache
from swap_engine.services.read_only import StacksReadOnlyClient
from swap_engine.services.quote_executor import QuoteExecutor
from swap_engine.services.quote_aggregator import QuoteAggregator

logger = logging.getLogger(__name__)

# Initialize services
pool_cache = PoolDataCache()
read_only_client = StacksReadOnlyClient()
quote_executor = QuoteExecutor(pool_cache, read_only_client)
aggregator = QuoteAggregator(quote_executor)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        # Warm the registry so the first quote skips the fetch
        await pool_cache.get_data()
        logger.info("Pool registry loaded")
    except FetchError as e:
        logger.warning(f"Registry warm-up failed, will retry on first request: {str(e)}")

    yield

    logger.info("Closing HTTP clients...")
    await pool_cache.close()
    await read_only_client.close()


# Create context for GraphQL
async def get_context() -> Dict[str, Any]:
    return {
        "aggregator": aggregator
    }


# Create FastAPI app
app = FastAPI(lifespan=lifespan)

# Add GraphQL route with context
graphql_app = GraphQLRouter(
    schema,
    context_getter=get_context,
)
app.include_router(graphql_app, prefix="/graphql")

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
