"""Gates a handler declares as ``__auth__``."""

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class Gate:
    requires_principal: ClassVar[bool]


@dataclass(frozen=True)
class Public(Gate):
    """Anyone may run the handler."""

    requires_principal: ClassVar[bool] = False


@dataclass(frozen=True)
class Authenticated(Gate):
    """The handler needs a signed-in account, injected as ``principal``."""

    requires_principal: ClassVar[bool] = True


PUBLIC = Public()
AUTHENTICATED = Authenticated()


def public() -> Public:
    return PUBLIC


def authenticated() -> Authenticated:
    return AUTHENTICATED
