"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for Settings() before any app import
os.environ.setdefault("BETTA_CONTRACT_ADDRESS", "0x48A8443f006729729439f9bC529f905c05380BB7")
os.environ.setdefault("BASE_RPC_URLS", "https://rpc-a.example,https://rpc-b.example")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FILE", "")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from app.config.database import (  # noqa: E402
    create_engine,
    create_session_maker,
    init_models,
)
from app.services.blockchain import EventLogReader  # noqa: E402
from app.services.ownership_indexer import (  # noqa: E402
    CheckpointStore,
    OwnershipIndexer,
)
from fakes import (  # noqa: E402
    CONTRACT,
    WALLET,
    FakeChain,
    FakeWeb3,
    fake_client,
    make_executor,
    make_pool,
)


@pytest.fixture
def sample_wallet_address() -> str:
    """Sample wallet address for testing."""
    return WALLET


@pytest.fixture
def chain() -> FakeChain:
    """Fake chain with head at block 120."""
    return FakeChain(head=120)


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite engine with all tables created."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'betta.db'}")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return create_session_maker(engine)


@pytest.fixture
def store(session_maker) -> CheckpointStore:
    return CheckpointStore(session_maker)


@pytest.fixture
def make_indexer(chain, store):
    """
    Factory for indexers over fake endpoints.

    Defaults: genesis block 100, chunk size 50, one healthy endpoint
    serving the chain fixture.
    """
    executors = []

    def factory(
        genesis_block: int = 100,
        chunk_size: int = 50,
        contract: str | None = CONTRACT,
        clients: dict[str, FakeWeb3] | None = None,
    ) -> OwnershipIndexer:
        clients = clients or {"https://rpc-a.example": fake_client(chain)}
        executor = make_executor(make_pool(clients))
        executors.append(executor)
        return OwnershipIndexer(
            reader=EventLogReader(executor, contract),
            store=store,
            genesis_block=genesis_block,
            chunk_size=chunk_size,
        )

    yield factory

    for executor in executors:
        executor.close()
