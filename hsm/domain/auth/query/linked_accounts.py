"""ListLinkedAccounts query and handler."""

from datetime import datetime

from pydantic import BaseModel

from hsm.domain.auth.model.principal import Principal
from hsm.domain.auth.service.auth import AuthService
from hsm.domain.shared.authorization.gate import authenticated
from hsm.domain.shared.query import Query, QueryHandler
from hsm.domain.shared.query import Result as QueryResult


class ListLinkedAccounts(Query):
    """Query for the identities linked to the current account."""


class LinkedAccountDTO(BaseModel):
    provider: str
    email: str | None
    display_name: str | None
    avatar_url: str | None
    profile_url: str | None
    created_at: datetime


class ListLinkedAccountsResult(QueryResult):
    accounts: list[LinkedAccountDTO]


class ListLinkedAccountsHandler(QueryHandler[ListLinkedAccounts, ListLinkedAccountsResult]):
    __auth__ = authenticated()
    principal: Principal
    auth_service: AuthService

    async def run(self, cmd: ListLinkedAccounts) -> ListLinkedAccountsResult:
        identities = await self.auth_service.linked_accounts(self.principal.account_id)

        return ListLinkedAccountsResult(
            accounts=[
                LinkedAccountDTO(
                    provider=i.provider.value,
                    email=i.email,
                    display_name=i.display_name,
                    avatar_url=i.avatar_url,
                    profile_url=i.profile_url,
                    created_at=i.created_at,
                )
                for i in identities
            ]
        )
