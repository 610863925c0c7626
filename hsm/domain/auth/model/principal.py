"""Authenticated account, resolved per request from the access token."""

from dataclasses import dataclass

from hsm.domain.auth.model.value import AccountId, AccountRole


@dataclass(frozen=True)
class Principal:
    """The authenticated identity of the current requester. Immutable."""

    account_id: AccountId
    email: str
    role: AccountRole
