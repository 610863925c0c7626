"""Auth service for orchestrating identity federation flows."""

import logging
from dataclasses import dataclass
from typing import Any

from hsm.domain.auth.error import InvalidStateError
from hsm.domain.auth.model.account import Account
from hsm.domain.auth.model.linked_identity import LinkedIdentity
from hsm.domain.auth.model.profile import ExternalProfile, ProviderTokens
from hsm.domain.auth.model.provider import ProviderCapability, ProviderConfig
from hsm.domain.auth.model.session import SessionTokens
from hsm.domain.auth.model.state import CorrelationState
from hsm.domain.auth.model.value import AccountId, OAuthProvider
from hsm.domain.auth.port.oauth_client import ProfileFetcher, TokenExchangeClient
from hsm.domain.auth.port.provider_registry import ProviderRegistry
from hsm.domain.auth.port.state_store import StateStore
from hsm.domain.auth.service.reconciler import IdentityReconciler
from hsm.domain.auth.service.session import SessionIssuer
from hsm.domain.shared.service import Service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OAuthLogin:
    """Everything a completed login hands back to the caller."""

    account: Account
    identity: LinkedIdentity
    is_new_account: bool
    session: SessionTokens
    return_url: str | None


class AuthService(Service):
    """Orchestrates identity federation flows.

    - initiate_login: Issue a correlation token, build the authorization URL
    - complete_oauth: Consume state, exchange code, fetch profile, reconcile, issue session
    - link_account / unlink_account: Manage identities of an authenticated account
    - linked_accounts / providers: Read-only views
    """

    _registry: ProviderRegistry
    _state_store: StateStore
    _token_client: TokenExchangeClient
    _profile_fetcher: ProfileFetcher
    _reconciler: IdentityReconciler
    _session_issuer: SessionIssuer

    async def initiate_login(self, provider_name: str, return_url: str | None = None) -> str:
        """Generate the authorization URL for a provider.

        Raises:
            InvalidProviderError: Unknown or unconfigured provider. No state is issued.
        """
        config = self._registry.resolve(provider_name)
        state = await self._state_store.issue(config.provider, return_url)
        return config.authorization_url(state)

    async def complete_oauth(
        self,
        provider_name: str,
        code: str,
        state: str,
        user_payload: dict[str, Any] | None = None,
    ) -> OAuthLogin:
        """Complete the callback leg of a login.

        The state is consumed before anything else touches the network, so a
        replayed callback can never reach the token endpoint.
        """
        config = self._registry.resolve(provider_name)
        correlation = await self._consume_state(config.provider, state)

        profile, tokens = await self._fetch_identity(config, code, state, user_payload)
        result = await self._reconciler.find_or_create_account(config.provider, profile, tokens)
        session = self._session_issuer.issue(result.account)

        logger.info(
            "Account authenticated: account_id=%s, provider=%s, new=%s",
            result.account.id,
            config.provider,
            result.is_new_account,
        )

        return OAuthLogin(
            account=result.account,
            identity=result.identity,
            is_new_account=result.is_new_account,
            session=session,
            return_url=correlation.return_url,
        )

    async def link_account(
        self,
        account_id: AccountId,
        provider_name: str,
        code: str,
        state: str,
    ) -> LinkedIdentity:
        """Link a provider identity to an already authenticated account."""
        config = self._registry.resolve(provider_name)
        await self._consume_state(config.provider, state)

        profile, tokens = await self._fetch_identity(config, code, state)
        return await self._reconciler.link(account_id, config.provider, profile, tokens)

    async def unlink_account(self, account_id: AccountId, provider_name: str) -> None:
        provider = OAuthProvider.parse(provider_name)
        await self._reconciler.unlink(account_id, provider)

    async def linked_accounts(self, account_id: AccountId) -> list[LinkedIdentity]:
        return await self._reconciler.list_linked(account_id)

    def providers(self) -> list[ProviderCapability]:
        return self._registry.capabilities()

    async def _consume_state(self, provider: OAuthProvider, token: str) -> CorrelationState:
        try:
            correlation = await self._state_store.consume(token)
        except InvalidStateError:
            logger.warning("Rejected OAuth state: provider=%s", provider)
            raise

        if correlation.provider != provider:
            logger.warning(
                "OAuth state provider mismatch: expected=%s, got=%s",
                correlation.provider,
                provider,
            )
            raise InvalidStateError("State was issued for a different provider")

        return correlation

    async def _fetch_identity(
        self,
        config: ProviderConfig,
        code: str,
        state: str,
        user_payload: dict[str, Any] | None = None,
    ) -> tuple[ExternalProfile, ProviderTokens]:
        tokens = await self._token_client.exchange(config, code, state_token=state)
        profile = await self._profile_fetcher.fetch(config, tokens, user_hint=user_payload)
        return profile, tokens
