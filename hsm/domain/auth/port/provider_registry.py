"""Provider registry port for the auth domain."""

from abc import abstractmethod
from typing import Protocol

from hsm.domain.auth.model.provider import ProviderCapability, ProviderConfig
from hsm.domain.auth.model.value import OAuthProvider
from hsm.domain.shared.port import Port


class ProviderRegistry(Port, Protocol):
    """Static per-provider configuration. Read-only, no side effects."""

    @abstractmethod
    def get(self, provider: OAuthProvider) -> ProviderConfig:
        """Get the configuration for a provider.

        Raises:
            InvalidProviderError: If the provider has no credentials configured
        """
        ...

    @abstractmethod
    def capabilities(self) -> list[ProviderCapability]:
        """Describe every supported provider, with an enabled flag."""
        ...

    def resolve(self, name: str) -> ProviderConfig:
        """Parse a provider name and get its configuration.

        Raises:
            InvalidProviderError: If the name is unknown or the provider is not configured
        """
        return self.get(OAuthProvider.parse(name))
