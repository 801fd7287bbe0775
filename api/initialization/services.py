"""
API Initialization - Services Module.

Builds the service graph (database, RPC pool, indexer, progression)
from settings.
"""

from dataclasses import dataclass

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.config.database import create_engine, create_session_maker, init_models
from app.config.settings import Settings
from app.services.blockchain import (
    EndpointPool,
    EventLogReader,
    FailoverExecutor,
    RetryPolicy,
)
from app.services.ownership_indexer import CheckpointStore, OwnershipIndexer
from app.services.ownership_service import OwnershipService
from app.services.progression import ProgressionService

# Executor timeout margin over the HTTP timeout of a single RPC request
EXECUTOR_TIMEOUT_MARGIN = 5.0


@dataclass
class ServiceContainer:
    """Wired services shared by request handlers."""

    engine: AsyncEngine
    session_maker: async_sessionmaker[AsyncSession]
    executor: FailoverExecutor
    indexer: OwnershipIndexer
    ownership: OwnershipService
    progression: ProgressionService

    async def close(self) -> None:
        """Release thread pool and database connections."""
        self.executor.close()
        await self.engine.dispose()
        logger.info("Services shut down")


def build_services(
    settings: Settings,
    engine: AsyncEngine,
    pool: EndpointPool | None = None,
) -> ServiceContainer:
    """
    Wire services on top of an engine.

    Args:
        settings: Application settings
        engine: Async database engine
        pool: Endpoint pool override (defaults to BASE_RPC_URLS)

    Returns:
        ServiceContainer
    """
    session_maker = create_session_maker(engine)

    pool = pool or EndpointPool(
        settings.rpc_url_list, request_timeout=settings.rpc_timeout
    )
    executor = FailoverExecutor(
        pool,
        RetryPolicy(
            attempts_per_endpoint=settings.rpc_attempts_per_endpoint,
            backoff=settings.rpc_retry_backoff,
        ),
        call_timeout=settings.rpc_timeout + EXECUTOR_TIMEOUT_MARGIN,
    )

    store = CheckpointStore(session_maker)
    indexer = OwnershipIndexer(
        reader=EventLogReader(executor, settings.betta_contract_address),
        store=store,
        genesis_block=settings.betta_start_block,
        chunk_size=settings.betta_log_chunk,
    )
    ownership = OwnershipService(indexer, store)
    progression = ProgressionService(
        session_maker,
        ownership=ownership,
        exp_per_feed=settings.exp_per_feed,
        cooldown_ms=settings.feed_cooldown_ms,
    )

    return ServiceContainer(
        engine=engine,
        session_maker=session_maker,
        executor=executor,
        indexer=indexer,
        ownership=ownership,
        progression=progression,
    )


async def initialize_all_services(settings: Settings) -> ServiceContainer:
    """Create engine, ensure tables exist and wire services."""
    engine = create_engine(settings.database_url, echo=settings.database_echo)
    await init_models(engine)

    services = build_services(settings, engine)
    logger.info(
        f"Services initialized: contract={settings.betta_contract_address}, "
        f"start_block={settings.betta_start_block}, chunk={settings.betta_log_chunk}"
    )
    return services
