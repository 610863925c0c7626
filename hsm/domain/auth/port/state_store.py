"""State store port for OAuth correlation tokens."""

from abc import abstractmethod
from typing import Protocol

from hsm.domain.auth.model.state import CorrelationState
from hsm.domain.auth.model.value import OAuthProvider
from hsm.domain.shared.port import Port


class StateStore(Port, Protocol):
    """Short-lived, single-use correlation tokens.

    Implementations must make consume() an atomic check-and-delete so that two
    concurrent callbacks can never both succeed with one token.
    """

    @abstractmethod
    async def issue(self, provider: OAuthProvider, return_url: str | None = None) -> str:
        """Generate and store a new URL-safe token (>= 256 bits of entropy)."""
        ...

    @abstractmethod
    async def consume(self, token: str) -> CorrelationState:
        """Remove and return the state for a token.

        Raises:
            InvalidStateError: If the token is unknown, already consumed or expired.
        """
        ...

    @abstractmethod
    async def sweep(self) -> int:
        """Delete expired entries. Returns the number removed."""
        ...
