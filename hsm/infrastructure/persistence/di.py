from typing import AsyncIterable

from dishka import provide
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from hsm.config import Config
from hsm.domain.auth.port.repository import AccountRepository, LinkedIdentityRepository
from hsm.domain.shared.uow import UnitOfWork
from hsm.infrastructure.persistence.database import create_db_engine, create_session_factory
from hsm.infrastructure.persistence.repository.account import SqlAccountRepository
from hsm.infrastructure.persistence.repository.linked_identity import (
    SqlLinkedIdentityRepository,
)
from hsm.infrastructure.persistence.uow import SqlUnitOfWork
from hsm.util.di.base import Provider
from hsm.util.di.scope import Scope


class PersistenceProvider(Provider):
    # APP-scoped factories
    @provide(scope=Scope.APP)
    async def get_engine(self, config: Config) -> AsyncIterable[AsyncEngine]:
        engine = create_db_engine(config)
        yield engine
        await engine.dispose()

    @provide(scope=Scope.APP)
    def get_session_factory(self, engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
        return create_session_factory(engine)

    # UOW-scoped session (one per unit of work)
    @provide(scope=Scope.UOW)
    async def get_session(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> AsyncIterable[AsyncSession]:
        async with session_factory() as session:
            # Closing rolls back whatever the handler did not commit
            yield session

    uow = provide(SqlUnitOfWork, scope=Scope.UOW, provides=UnitOfWork)

    # UOW-scoped repositories
    account_repo = provide(SqlAccountRepository, scope=Scope.UOW, provides=AccountRepository)
    linked_identity_repo = provide(
        SqlLinkedIdentityRepository,
        scope=Scope.UOW,
        provides=LinkedIdentityRepository,
    )
