"""Ports for the outbound halves of the OAuth round-trip."""

from abc import abstractmethod
from typing import Any, Protocol

from hsm.domain.auth.model.profile import ExternalProfile, ProviderTokens
from hsm.domain.auth.model.provider import ProviderConfig
from hsm.domain.shared.port import Port


class TokenExchangeClient(Port, Protocol):
    """Swaps an authorization code for provider tokens."""

    @abstractmethod
    async def exchange(
        self,
        config: ProviderConfig,
        code: str,
        state_token: str | None = None,
    ) -> ProviderTokens:
        """Exchange an authorization code.

        Args:
            config: The provider to exchange against
            code: Authorization code from the callback
            state_token: Correlation token, sent as PKCE code_verifier when required

        Raises:
            TokenExchangeError: On any non-success response or transport failure
        """
        ...


class ProfileFetcher(Port, Protocol):
    """Produces the canonical profile for the user behind a set of tokens."""

    @abstractmethod
    async def fetch(
        self,
        config: ProviderConfig,
        tokens: ProviderTokens,
        user_hint: dict[str, Any] | None = None,
    ) -> ExternalProfile:
        """Fetch and normalize the provider profile.

        Args:
            config: The provider the tokens came from
            tokens: Tokens from the exchange
            user_hint: Extra user data the provider posted with the callback (Apple)

        Raises:
            ProfileFetchError: If the profile cannot be fetched or has no external ID
        """
        ...
