"""HTTP tests for the /api/v1/auth routes.

The app runs with the real auth domain wiring; provider calls and repositories
are stubbed through the container context.
"""

from dataclasses import dataclass
from datetime import timedelta
from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlparse

import pytest
from dishka import AsyncContainer, from_context, make_async_container
from fastapi.testclient import TestClient

from hsm.application.api.rest.app import create_app
from hsm.application.di import ConfigProvider
from hsm.config import AuthConfig, Config, DatabaseConfig, JwtConfig, OAuthClientConfig
from hsm.domain.auth.error import TokenExchangeError
from hsm.domain.auth.model.account import Account
from hsm.domain.auth.model.linked_identity import LinkedIdentity
from hsm.domain.auth.model.profile import ExternalProfile, ProviderTokens
from hsm.domain.auth.model.value import OAuthProvider
from hsm.domain.auth.port.oauth_client import ProfileFetcher, TokenExchangeClient
from hsm.domain.auth.port.provider_registry import ProviderRegistry
from hsm.domain.auth.port.repository import AccountRepository, LinkedIdentityRepository
from hsm.domain.auth.port.state_store import StateStore
from hsm.domain.auth.service.session import SessionIssuer
from hsm.domain.auth.util.di import AuthProvider
from hsm.domain.shared.uow import UnitOfWork
from hsm.infrastructure.auth.provider_registry import StaticProviderRegistry
from hsm.infrastructure.auth.state_store import InMemoryStateStore
from hsm.util.di.base import Provider
from hsm.util.di.scope import Scope

FRONTEND = "https://app.example.com"


class StubInfraProvider(Provider):
    """Adapters handed in as container context instead of built from config."""

    registry = from_context(provides=ProviderRegistry, scope=Scope.APP)
    state_store = from_context(provides=StateStore, scope=Scope.APP)
    token_client = from_context(provides=TokenExchangeClient, scope=Scope.APP)
    profile_fetcher = from_context(provides=ProfileFetcher, scope=Scope.APP)
    accounts = from_context(provides=AccountRepository, scope=Scope.APP)
    identities = from_context(provides=LinkedIdentityRepository, scope=Scope.APP)
    uow = from_context(provides=UnitOfWork, scope=Scope.APP)


@dataclass
class Harness:
    client: TestClient
    config: Config
    state_store: InMemoryStateStore
    token_client: AsyncMock
    profile_fetcher: AsyncMock
    accounts: AsyncMock
    identities: AsyncMock
    uow: AsyncMock

    def bearer(self, account: Account) -> dict[str, str]:
        token = SessionIssuer(_config=self.config.auth.jwt).create_access_token(account)
        return {"Authorization": f"Bearer {token}"}

    def start_login(self, provider: str, return_url: str | None = None) -> str:
        """Run the initiate step and return the issued state token."""
        params = {"returnUrl": return_url} if return_url else {}
        response = self.client.get(f"/api/v1/auth/{provider}", params=params)
        assert response.status_code == 200
        return parse_qs(urlparse(response.json()["authUrl"]).query)["state"][0]


def make_config() -> Config:
    return Config(
        frontend={"url": FRONTEND},
        database=DatabaseConfig(url="sqlite+aiosqlite:///:memory:", auto_migrate=False),
        auth=AuthConfig(
            jwt=JwtConfig(
                secret="route-test-secret-key-256-bits-x",
                refresh_secret="route-test-refresh-key-256-bits",
            ),
            google=OAuthClientConfig(client_id="google-client", client_secret="g-secret"),
            github=OAuthClientConfig(client_id="github-client", client_secret="gh-secret"),
            apple=OAuthClientConfig(client_id="com.example.web", client_secret="a-secret"),
        ),
    )


def make_account(password_hash: str | None = None) -> Account:
    account = Account.create_from_oauth(
        email="a@x.com", first_name="Ada", last_name="Lovelace", profile_image=None
    )
    account.password_hash = password_hash
    return account


def make_identity(account: Account, provider: OAuthProvider) -> LinkedIdentity:
    return LinkedIdentity.create(
        account.id,
        provider,
        ExternalProfile(external_id="ext-1", email="a@x.com", display_name="Ada Lovelace"),
        ProviderTokens(access_token="provider-at"),
    )


def make_container(config: Config, harness_parts: dict) -> AsyncContainer:
    return make_async_container(
        ConfigProvider(),
        AuthProvider(),
        StubInfraProvider(),
        context={
            Config: config,
            ProviderRegistry: StaticProviderRegistry.from_config(config.auth),
            StateStore: harness_parts["state_store"],
            TokenExchangeClient: harness_parts["token_client"],
            ProfileFetcher: harness_parts["profile_fetcher"],
            AccountRepository: harness_parts["accounts"],
            LinkedIdentityRepository: harness_parts["identities"],
            UnitOfWork: harness_parts["uow"],
        },
        scopes=Scope,  # type: ignore[arg-type]
    )


@pytest.fixture
def harness() -> Harness:
    config = make_config()

    token_client = AsyncMock()
    token_client.exchange.return_value = ProviderTokens(access_token="provider-at", expires_in=3600)
    profile_fetcher = AsyncMock()
    profile_fetcher.fetch.return_value = ExternalProfile(
        external_id="g123", email="a@x.com", display_name="Ada Lovelace"
    )

    accounts = AsyncMock()
    accounts.get.return_value = None
    accounts.get_by_email.return_value = None
    identities = AsyncMock()
    identities.get_by_provider_and_external_id.return_value = None
    identities.get_by_account_and_provider.return_value = None
    identities.list_by_account.return_value = []

    parts = {
        "state_store": InMemoryStateStore(ttl=timedelta(minutes=10)),
        "token_client": token_client,
        "profile_fetcher": profile_fetcher,
        "accounts": accounts,
        "identities": identities,
        "uow": AsyncMock(),
    }
    app = create_app(config, make_container(config, parts))

    return Harness(client=TestClient(app), config=config, **parts)


def redirect_of(response) -> tuple[str, dict[str, str]]:
    assert response.status_code == 302
    location = urlparse(response.headers["location"])
    params = {k: v[0] for k, v in parse_qs(location.query).items()}
    return f"{location.scheme}://{location.netloc}{location.path}", params


class TestProviders:
    def test_lists_all_providers(self, harness: Harness):
        response = harness.client.get("/api/v1/auth/providers")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        enabled = {p["id"]: p["enabled"] for p in body["data"]}
        assert enabled == {
            "google": True,
            "facebook": False,
            "linkedin": False,
            "apple": True,
            "twitter": False,
            "github": True,
            "microsoft": False,
        }


class TestInitiateLogin:
    def test_returns_authorization_url(self, harness: Harness):
        response = harness.client.get("/api/v1/auth/google", params={"returnUrl": "/jobs/42"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        url = urlparse(body["authUrl"])
        assert url.netloc == "accounts.google.com"
        assert len(harness.state_store) == 1

    def test_unknown_provider(self, harness: Harness):
        response = harness.client.get("/api/v1/auth/myspace")

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "code": "invalid_provider",
            "message": "Invalid OAuth provider: myspace",
        }
        assert len(harness.state_store) == 0

    def test_unconfigured_provider(self, harness: Harness):
        response = harness.client.get("/api/v1/auth/microsoft")

        assert response.status_code == 400
        assert response.json()["code"] == "provider_not_configured"
        assert len(harness.state_store) == 0


class TestCallback:
    def test_first_login_redirects_with_session(self, harness: Harness):
        state = harness.start_login("google", return_url="/jobs/42")

        response = harness.client.get(
            "/api/v1/auth/google/callback",
            params={"code": "auth-code", "state": state},
            follow_redirects=False,
        )

        target, params = redirect_of(response)
        assert target == f"{FRONTEND}/auth/callback"
        assert params["is_new_user"] == "true"
        assert params["return_url"] == "/jobs/42"
        assert params["access_token"]
        assert params["refresh_token"]
        harness.accounts.create_with_identity.assert_awaited_once()
        harness.uow.commit.assert_awaited_once()

    def test_failed_commit_sends_no_session(self, harness: Harness):
        harness.uow.commit.side_effect = RuntimeError("database is locked")
        state = harness.start_login("google")

        response = harness.client.get(
            "/api/v1/auth/google/callback",
            params={"code": "auth-code", "state": state},
            follow_redirects=False,
        )

        target, params = redirect_of(response)
        assert target == f"{FRONTEND}/auth/error"
        assert params == {"error": "auth_failed"}

    def test_returning_user(self, harness: Harness):
        account = make_account()
        harness.identities.get_by_provider_and_external_id.return_value = make_identity(
            account, OAuthProvider.GOOGLE
        )
        harness.accounts.get.return_value = account
        state = harness.start_login("google")

        response = harness.client.get(
            "/api/v1/auth/google/callback",
            params={"code": "auth-code", "state": state},
            follow_redirects=False,
        )

        _, params = redirect_of(response)
        assert params["is_new_user"] == "false"
        assert "return_url" not in params
        harness.accounts.create_with_identity.assert_not_called()

    def test_invalid_state(self, harness: Harness):
        response = harness.client.get(
            "/api/v1/auth/google/callback",
            params={"code": "x", "state": "abc"},
            follow_redirects=False,
        )

        target, params = redirect_of(response)
        assert target == f"{FRONTEND}/auth/error"
        assert params == {"error": "invalid_state"}
        harness.token_client.exchange.assert_not_called()
        harness.accounts.get_by_email.assert_not_called()
        harness.accounts.create_with_identity.assert_not_called()
        harness.identities.save.assert_not_called()
        harness.uow.commit.assert_not_called()

    def test_replayed_state(self, harness: Harness):
        state = harness.start_login("google")
        params = {"code": "auth-code", "state": state}

        harness.client.get("/api/v1/auth/google/callback", params=params, follow_redirects=False)
        response = harness.client.get(
            "/api/v1/auth/google/callback", params=params, follow_redirects=False
        )

        _, redirect_params = redirect_of(response)
        assert redirect_params["error"] == "invalid_state"
        assert harness.token_client.exchange.await_count == 1

    def test_state_for_other_provider(self, harness: Harness):
        state = harness.start_login("github")

        response = harness.client.get(
            "/api/v1/auth/google/callback",
            params={"code": "auth-code", "state": state},
            follow_redirects=False,
        )

        _, params = redirect_of(response)
        assert params["error"] == "invalid_state"
        harness.token_client.exchange.assert_not_called()

    def test_provider_error_passed_through(self, harness: Harness):
        response = harness.client.get(
            "/api/v1/auth/google/callback",
            params={"error": "access_denied", "error_description": "User denied access"},
            follow_redirects=False,
        )

        _, params = redirect_of(response)
        assert params == {"error": "access_denied", "description": "User denied access"}

    def test_missing_params(self, harness: Harness):
        response = harness.client.get(
            "/api/v1/auth/google/callback", params={"code": "x"}, follow_redirects=False
        )

        _, params = redirect_of(response)
        assert params["error"] == "missing_params"

    def test_unknown_provider(self, harness: Harness):
        response = harness.client.get(
            "/api/v1/auth/myspace/callback",
            params={"code": "x", "state": "y"},
            follow_redirects=False,
        )

        _, params = redirect_of(response)
        assert params["error"] == "invalid_provider"

    def test_token_exchange_failure(self, harness: Harness):
        harness.token_client.exchange.side_effect = TokenExchangeError(
            "Token exchange failed: 400", body='{"error": "invalid_grant"}'
        )
        state = harness.start_login("google")

        response = harness.client.get(
            "/api/v1/auth/google/callback",
            params={"code": "used", "state": state},
            follow_redirects=False,
        )

        _, params = redirect_of(response)
        assert params == {"error": "token_exchange_failed"}

    def test_missing_email(self, harness: Harness):
        harness.profile_fetcher.fetch.return_value = ExternalProfile(external_id="g123")
        state = harness.start_login("google")

        response = harness.client.get(
            "/api/v1/auth/google/callback",
            params={"code": "c", "state": state},
            follow_redirects=False,
        )

        _, params = redirect_of(response)
        assert params["error"] == "missing_email"

    def test_unexpected_failure_is_generic(self, harness: Harness):
        harness.accounts.get_by_email.side_effect = RuntimeError("connection reset")
        state = harness.start_login("google")

        response = harness.client.get(
            "/api/v1/auth/google/callback",
            params={"code": "c", "state": state},
            follow_redirects=False,
        )

        _, params = redirect_of(response)
        assert params == {"error": "auth_failed"}

    def test_apple_form_post(self, harness: Harness):
        harness.profile_fetcher.fetch.return_value = ExternalProfile(
            external_id="001234.abcd", email="a@x.com", display_name="Ada Lovelace"
        )
        state = harness.start_login("apple")

        response = harness.client.post(
            "/api/v1/auth/apple/callback",
            data={
                "code": "apple-code",
                "state": state,
                "user": '{"name": {"firstName": "Ada", "lastName": "Lovelace"}}',
            },
            follow_redirects=False,
        )

        target, params = redirect_of(response)
        assert target == f"{FRONTEND}/auth/callback"
        assert params["is_new_user"] == "true"
        hint = harness.profile_fetcher.fetch.await_args.kwargs["user_hint"]
        assert hint == {"name": {"firstName": "Ada", "lastName": "Lovelace"}}

    def test_apple_malformed_user_ignored(self, harness: Harness):
        state = harness.start_login("apple")

        response = harness.client.post(
            "/api/v1/auth/apple/callback",
            data={"code": "apple-code", "state": state, "user": "{not json"},
            follow_redirects=False,
        )

        target, _ = redirect_of(response)
        assert target == f"{FRONTEND}/auth/callback"
        assert harness.profile_fetcher.fetch.await_args.kwargs["user_hint"] is None


class TestLinkedAccounts:
    def test_requires_token(self, harness: Harness):
        response = harness.client.get("/api/v1/auth/linked-accounts")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["code"] == "missing_token"

    def test_rejects_garbage_token(self, harness: Harness):
        response = harness.client.get(
            "/api/v1/auth/linked-accounts", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401
        assert response.json()["code"] == "invalid_token"

    def test_lists_identities(self, harness: Harness):
        account = make_account()
        harness.identities.list_by_account.return_value = [
            make_identity(account, OAuthProvider.GOOGLE)
        ]

        response = harness.client.get(
            "/api/v1/auth/linked-accounts", headers=harness.bearer(account)
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data) == 1
        assert data[0]["provider"] == "GOOGLE"
        assert data[0]["email"] == "a@x.com"
        assert data[0]["displayName"] == "Ada Lovelace"
        assert "createdAt" in data[0]
        harness.identities.list_by_account.assert_awaited_once_with(account.id)


class TestLinkAndUnlink:
    def test_link_requires_token(self, harness: Harness):
        response = harness.client.post(
            "/api/v1/auth/link/github", json={"code": "c", "state": "s"}
        )

        assert response.status_code == 401

    def test_link_with_invalid_state(self, harness: Harness):
        account = make_account()

        response = harness.client.post(
            "/api/v1/auth/link/github",
            json={"code": "c", "state": "abc"},
            headers=harness.bearer(account),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_state"
        harness.token_client.exchange.assert_not_called()

    def test_link_identity(self, harness: Harness):
        account = make_account()
        harness.accounts.get.return_value = account
        harness.profile_fetcher.fetch.return_value = ExternalProfile(
            external_id="583231", email="other@x.com"
        )
        state = harness.start_login("github")

        response = harness.client.post(
            "/api/v1/auth/link/github",
            json={"code": "c", "state": state},
            headers=harness.bearer(account),
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Github account linked successfully",
        }
        saved = harness.identities.save.await_args.args[0]
        assert saved.account_id == account.id
        assert saved.provider == OAuthProvider.GITHUB

    def test_link_identity_owned_by_someone_else(self, harness: Harness):
        account = make_account()
        someone_else = make_account()
        harness.accounts.get.return_value = account
        harness.identities.get_by_provider_and_external_id.return_value = make_identity(
            someone_else, OAuthProvider.GITHUB
        )
        state = harness.start_login("github")

        response = harness.client.post(
            "/api/v1/auth/link/github",
            json={"code": "c", "state": state},
            headers=harness.bearer(account),
        )

        assert response.status_code == 409
        assert response.json()["code"] == "already_linked"

    def test_unlink_last_method(self, harness: Harness):
        account = make_account(password_hash=None)
        harness.accounts.get.return_value = account
        harness.identities.list_by_account.return_value = [
            make_identity(account, OAuthProvider.GOOGLE)
        ]

        response = harness.client.delete(
            "/api/v1/auth/link/google", headers=harness.bearer(account)
        )

        assert response.status_code == 409
        assert response.json()["code"] == "last_auth_method"
        harness.identities.delete.assert_not_called()
        harness.uow.commit.assert_not_called()

    def test_unlink_with_password(self, harness: Harness):
        account = make_account(password_hash="$argon2id$hash")
        identity = make_identity(account, OAuthProvider.GOOGLE)
        harness.accounts.get.return_value = account
        harness.identities.list_by_account.return_value = [identity]

        response = harness.client.delete(
            "/api/v1/auth/link/google", headers=harness.bearer(account)
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Google account unlinked successfully"
        harness.identities.delete.assert_awaited_once_with(identity.id)
        harness.uow.commit.assert_awaited_once()

    def test_unlink_not_linked(self, harness: Harness):
        account = make_account(password_hash="hash")
        harness.accounts.get.return_value = account

        response = harness.client.delete(
            "/api/v1/auth/link/apple", headers=harness.bearer(account)
        )

        assert response.status_code == 404
        assert response.json()["code"] == "link_not_found"
