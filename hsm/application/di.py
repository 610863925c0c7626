from dishka import AsyncContainer, from_context, make_async_container

from hsm.config import Config
from hsm.domain.auth.util.di import AuthProvider
from hsm.infrastructure.auth import AuthInfraProvider
from hsm.infrastructure.persistence import PersistenceProvider
from hsm.util.di.base import Provider
from hsm.util.di.scope import Scope


class ConfigProvider(Provider):
    """Exposes the Config passed in as container context."""

    config = from_context(provides=Config, scope=Scope.APP)


def create_container(config: Config | None = None) -> AsyncContainer:
    # Pydantic Settings populates from env vars at runtime
    config = config or Config()  # type: ignore[call-arg]

    return make_async_container(
        ConfigProvider(),
        PersistenceProvider(),
        AuthProvider(),
        AuthInfraProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
