"""Repository ports for the auth domain."""

from abc import abstractmethod
from typing import Protocol

from hsm.domain.auth.model.account import Account
from hsm.domain.auth.model.linked_identity import LinkedIdentity
from hsm.domain.auth.model.value import AccountId, LinkedIdentityId, OAuthProvider
from hsm.domain.shared.port import Port


class AccountRepository(Port, Protocol):
    """Port onto the marketplace account store."""

    @abstractmethod
    async def get(self, account_id: AccountId, *, for_update: bool = False) -> Account | None:
        """Get an account by ID.

        ``for_update`` locks the account row until the unit of work ends, so
        changes to its sign-in methods are applied one at a time.
        """
        ...

    @abstractmethod
    async def get_by_email(self, email: str) -> Account | None:
        """Get an account by email (compared normalized)."""
        ...

    @abstractmethod
    async def create_with_identity(self, account: Account, identity: LinkedIdentity) -> None:
        """Insert an account and its first linked identity atomically.

        Raises:
            DuplicateAccountError: If the email or the provider identity is
                already taken. Nothing is persisted in that case.
        """
        ...


class LinkedIdentityRepository(Port, Protocol):
    """Repository for LinkedIdentity entity persistence."""

    @abstractmethod
    async def get(self, identity_id: LinkedIdentityId) -> LinkedIdentity | None:
        """Get a linked identity by ID."""
        ...

    @abstractmethod
    async def get_by_provider_and_external_id(
        self, provider: OAuthProvider, external_id: str
    ) -> LinkedIdentity | None:
        """Get a linked identity by provider and external ID."""
        ...

    @abstractmethod
    async def get_by_account_and_provider(
        self, account_id: AccountId, provider: OAuthProvider
    ) -> LinkedIdentity | None:
        """Get the identity an account has linked for a provider."""
        ...

    @abstractmethod
    async def list_by_account(self, account_id: AccountId) -> list[LinkedIdentity]:
        """Get all linked identities for an account, oldest first."""
        ...

    @abstractmethod
    async def save(self, identity: LinkedIdentity) -> None:
        """Save a linked identity (create or update).

        Raises:
            DuplicateAccountError: If a unique constraint is violated.
        """
        ...

    @abstractmethod
    async def delete(self, identity_id: LinkedIdentityId) -> bool:
        """Delete a linked identity. Returns True if deleted."""
        ...
