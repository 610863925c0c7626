from sqlalchemy.ext.asyncio import AsyncSession

from hsm.domain.shared.uow import UnitOfWork


class SqlUnitOfWork(UnitOfWork):
    """Commits the request-scoped session the repositories write through."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def commit(self) -> None:
        await self.session.commit()
