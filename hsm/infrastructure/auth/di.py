"""DI provider for auth infrastructure."""

import logging
from datetime import timedelta
from typing import AsyncIterable

import httpx
from dishka import provide
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hsm.config import Config
from hsm.domain.auth.port.oauth_client import ProfileFetcher, TokenExchangeClient
from hsm.domain.auth.port.provider_registry import ProviderRegistry
from hsm.domain.auth.port.state_store import StateStore
from hsm.infrastructure.auth.id_token import IdentityTokenVerifier
from hsm.infrastructure.auth.profile import HttpProfileFetcher
from hsm.infrastructure.auth.provider_registry import StaticProviderRegistry
from hsm.infrastructure.auth.state_store import InMemoryStateStore, SqlStateStore
from hsm.infrastructure.auth.sweeper import StateSweeper
from hsm.infrastructure.auth.token_exchange import HttpTokenExchangeClient
from hsm.util.di.base import Provider
from hsm.util.di.scope import Scope

logger = logging.getLogger(__name__)


def http_timeout(read_seconds: float) -> httpx.Timeout:
    """Timeout for provider endpoints: configurable read, short connect/write/pool."""
    return httpx.Timeout(connect=5.0, read=read_seconds, write=5.0, pool=5.0)


class AuthInfraProvider(Provider):
    """DI provider for auth infrastructure adapters."""

    @provide(scope=Scope.APP)
    async def get_auth_http_client(self, config: Config) -> AsyncIterable[httpx.AsyncClient]:
        """Shared HTTP client for provider calls (connection pooling)."""
        async with httpx.AsyncClient(timeout=http_timeout(config.auth.http_timeout_seconds)) as client:
            yield client

    @provide(scope=Scope.APP)
    def get_provider_registry(self, config: Config) -> ProviderRegistry:
        """Provide ProviderRegistry built from configured credentials."""
        registry = StaticProviderRegistry.from_config(config.auth)
        enabled = [c.id for c in registry.capabilities() if c.enabled]
        logger.info("OAuth providers enabled: %s", ", ".join(enabled) or "none")
        return registry

    @provide(scope=Scope.APP)
    def get_state_store(
        self,
        config: Config,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> StateStore:
        """Provide the StateStore selected by auth.state.backend."""
        ttl = timedelta(seconds=config.auth.state.ttl_seconds)
        if config.auth.state.backend == "database":
            return SqlStateStore(session_factory, ttl)
        return InMemoryStateStore(ttl)

    @provide(scope=Scope.APP)
    def get_state_sweeper(self, config: Config, state_store: StateStore) -> StateSweeper:
        return StateSweeper(state_store, config.auth.state.sweep_interval_seconds)

    @provide(scope=Scope.APP)
    def get_token_exchange_client(self, http_client: httpx.AsyncClient) -> TokenExchangeClient:
        return HttpTokenExchangeClient(http_client)

    @provide(scope=Scope.APP)
    def get_identity_token_verifier(self, config: Config) -> IdentityTokenVerifier:
        return IdentityTokenVerifier(timeout=config.auth.http_timeout_seconds)

    @provide(scope=Scope.APP)
    def get_profile_fetcher(
        self, http_client: httpx.AsyncClient, verifier: IdentityTokenVerifier
    ) -> ProfileFetcher:
        return HttpProfileFetcher(http_client, verifier)
