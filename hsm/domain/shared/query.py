"""Read-only requests against accounts and providers."""

from abc import abstractmethod
from typing import ClassVar, Generic, TypeVar

from pydantic import BaseModel

from hsm.domain.shared.authorization.gate import Gate
from hsm.domain.shared.handler import GuardedHandlerMeta, Result

__all__ = ["Query", "QueryHandler", "Result"]


class Query(BaseModel):
    __public__: ClassVar[bool] = False


Q = TypeVar("Q", bound=Query)
R = TypeVar("R", bound=Result)


class QueryHandler(Generic[Q, R], metaclass=GuardedHandlerMeta):
    __auth__: ClassVar[Gate]

    @abstractmethod
    async def run(self, query: Q) -> R: ...
