"""Commands change account or identity state; their handlers are gated by ``__auth__``."""

from abc import abstractmethod
from typing import ClassVar, Generic, TypeVar

from pydantic import BaseModel

from hsm.domain.shared.authorization.gate import Gate
from hsm.domain.shared.handler import GuardedHandlerMeta, Result

__all__ = ["Command", "CommandHandler", "Result"]


class Command(BaseModel):
    # Anonymous callers may run public commands (login, callback)
    __public__: ClassVar[bool] = False


C = TypeVar("C", bound=Command)
R = TypeVar("R", bound=Result)


class CommandHandler(Generic[C, R], metaclass=GuardedHandlerMeta):
    """Runs one command type.

    Fields are injected by keyword. A handler for a non-public command
    declares its gate and receives the caller's principal::

        class LinkAccountHandler(CommandHandler[LinkAccount, LinkAccountResult]):
            __auth__ = authenticated()
            principal: Principal
            auth_service: AuthService
    """

    __auth__: ClassVar[Gate]

    @abstractmethod
    async def run(self, cmd: C) -> R: ...
