"""Wires auth handlers, services and the request Principal."""

import logging
from uuid import UUID

import jwt
from dishka import from_context, provide
from starlette.requests import Request

from hsm.config import Config
from hsm.domain.auth.command.link import LinkAccountHandler, UnlinkAccountHandler
from hsm.domain.auth.command.login import CompleteOAuthHandler, InitiateLoginHandler
from hsm.domain.auth.model.principal import Principal
from hsm.domain.auth.model.value import AccountId, AccountRole
from hsm.domain.auth.port.oauth_client import ProfileFetcher, TokenExchangeClient
from hsm.domain.auth.port.provider_registry import ProviderRegistry
from hsm.domain.auth.port.repository import AccountRepository, LinkedIdentityRepository
from hsm.domain.auth.port.state_store import StateStore
from hsm.domain.auth.query.linked_accounts import ListLinkedAccountsHandler
from hsm.domain.auth.query.providers import ListProvidersHandler
from hsm.domain.auth.service.auth import AuthService
from hsm.domain.auth.service.reconciler import IdentityReconciler
from hsm.domain.auth.service.session import SessionIssuer
from hsm.domain.shared.error import AuthorizationError
from hsm.util.di.base import Provider
from hsm.util.di.scope import Scope

logger = logging.getLogger(__name__)


class AuthProvider(Provider):
    request = from_context(provides=Request, scope=Scope.UOW)

    # Handlers (per request)
    initiate_login_handler = provide(InitiateLoginHandler, scope=Scope.UOW)
    complete_oauth_handler = provide(CompleteOAuthHandler, scope=Scope.UOW)
    link_account_handler = provide(LinkAccountHandler, scope=Scope.UOW)
    unlink_account_handler = provide(UnlinkAccountHandler, scope=Scope.UOW)

    list_linked_accounts_handler = provide(ListLinkedAccountsHandler, scope=Scope.UOW)
    list_providers_handler = provide(ListProvidersHandler, scope=Scope.UOW)

    @provide(scope=Scope.APP)
    def get_session_issuer(self, config: Config) -> SessionIssuer:
        return SessionIssuer(_config=config.auth.jwt)

    @provide(scope=Scope.UOW)
    def get_identity_reconciler(
        self,
        config: Config,
        accounts: AccountRepository,
        identities: LinkedIdentityRepository,
    ) -> IdentityReconciler:
        return IdentityReconciler(
            _accounts=accounts,
            _identities=identities,
            _default_role=AccountRole(config.auth.default_role.upper()),
        )

    @provide(scope=Scope.UOW)
    def get_auth_service(
        self,
        registry: ProviderRegistry,
        state_store: StateStore,
        token_client: TokenExchangeClient,
        profile_fetcher: ProfileFetcher,
        reconciler: IdentityReconciler,
        session_issuer: SessionIssuer,
    ) -> AuthService:
        return AuthService(
            _registry=registry,
            _state_store=state_store,
            _token_client=token_client,
            _profile_fetcher=profile_fetcher,
            _reconciler=reconciler,
            _session_issuer=session_issuer,
        )

    @provide(scope=Scope.UOW)
    def get_principal(self, request: Request, session_issuer: SessionIssuer) -> Principal:
        """Resolve the Principal from the Bearer token in the Authorization header.

        Raises:
            AuthorizationError: If the token is missing, expired or invalid
        """
        scheme, _, token = request.headers.get("Authorization", "").partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise AuthorizationError("Authorization header required", code="missing_token")

        try:
            payload = session_issuer.validate_access_token(token.strip())
            principal = Principal(
                account_id=AccountId(UUID(payload["sub"])),
                email=payload["email"],
                role=AccountRole(payload["role"]),
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthorizationError("Token has expired", code="token_expired") from e
        except (jwt.InvalidTokenError, KeyError, ValueError) as e:
            raise AuthorizationError("Invalid token", code="invalid_token") from e

        logger.debug("Principal resolved: account_id=%s", principal.account_id)
        return principal
