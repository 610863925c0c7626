"""Unit of work port."""

from abc import abstractmethod
from typing import Protocol

from hsm.domain.shared.port import Port


class UnitOfWork(Port, Protocol):
    """Transaction boundary shared by the repositories of one request.

    Handlers commit before returning so the caller only sees a result once
    the writes behind it are durable. Anything left uncommitted is rolled
    back when the request scope closes.
    """

    @abstractmethod
    async def commit(self) -> None: ...
