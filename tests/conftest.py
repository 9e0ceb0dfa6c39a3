"""
Pytest Configuration and Fixtures
"""

from typing import AsyncGenerator

import pytest

from kiwi_crm.domain.models.crm import Identity, UserView
from kiwi_crm.infrastructure.config import Settings
from kiwi_crm.infrastructure.database.gateway import PersistenceGateway
from kiwi_crm.infrastructure.database.session import create_engine, create_session_factory, create_tables

from token_factory import JWT_SECRET


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file"""
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'kiwi-test.db'}",
        jwt_secret=JWT_SECRET,
        log_format="console",
        log_level="WARNING",
    )


@pytest.fixture
async def gateway(settings: Settings) -> AsyncGenerator[PersistenceGateway, None]:
    """Gateway over a fresh database"""
    engine = create_engine(settings.database_url)
    await create_tables(engine)
    yield PersistenceGateway(create_session_factory(engine))
    await engine.dispose()


@pytest.fixture
def identity() -> Identity:
    return Identity(subject="user_ada", email="ada@example.com", name="Ada Lovelace")


@pytest.fixture
async def user(gateway: PersistenceGateway, identity: Identity) -> UserView:
    """A user who has logged in once (and so owns the Personal lead)"""
    return await gateway.get_or_create_user(identity)

