"""ListProviders query and handler."""

from typing import ClassVar

from pydantic import BaseModel

from hsm.domain.auth.service.auth import AuthService
from hsm.domain.shared.query import Query, QueryHandler
from hsm.domain.shared.query import Result as QueryResult


class ListProviders(Query):
    """Query for the login options shown on sign-in screens."""

    __public__: ClassVar[bool] = True


class ProviderDTO(BaseModel):
    id: str
    name: str
    icon: str
    color: str
    enabled: bool


class ListProvidersResult(QueryResult):
    providers: list[ProviderDTO]


class ListProvidersHandler(QueryHandler[ListProviders, ListProvidersResult]):
    auth_service: AuthService

    async def run(self, cmd: ListProviders) -> ListProvidersResult:
        return ListProvidersResult(
            providers=[
                ProviderDTO(id=c.id, name=c.name, icon=c.icon, color=c.color, enabled=c.enabled)
                for c in self.auth_service.providers()
            ]
        )
