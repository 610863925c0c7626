"""Login commands for the OAuth authentication flow."""

from typing import Any, ClassVar

from hsm.domain.auth.service.auth import AuthService
from hsm.domain.shared.command import Command, CommandHandler, Result
from hsm.domain.shared.uow import UnitOfWork


class InitiateLogin(Command):
    """Command to start an OAuth login flow."""

    __public__: ClassVar[bool] = True

    provider: str
    return_url: str | None = None  # Handed back to the front end after login


class InitiateLoginResult(Result):
    """Result containing authorization URL."""

    authorization_url: str


class InitiateLoginHandler(CommandHandler[InitiateLogin, InitiateLoginResult]):
    """Handler for InitiateLogin command."""

    auth_service: AuthService

    async def run(self, cmd: InitiateLogin) -> InitiateLoginResult:
        authorization_url = await self.auth_service.initiate_login(
            provider_name=cmd.provider,
            return_url=cmd.return_url,
        )
        return InitiateLoginResult(authorization_url=authorization_url)


class CompleteOAuth(Command):
    """Command to complete an OAuth flow with an authorization code."""

    __public__: ClassVar[bool] = True

    provider: str
    code: str
    state: str
    user_payload: dict[str, Any] | None = None  # Apple posts the user's name on first login


class CompleteOAuthResult(Result):
    """Result containing account info and session tokens."""

    account_id: str
    email: str
    role: str
    is_new_account: bool
    access_token: str
    refresh_token: str
    expires_in: int  # Seconds until access token expires
    return_url: str | None = None


class CompleteOAuthHandler(CommandHandler[CompleteOAuth, CompleteOAuthResult]):
    """Handler for CompleteOAuth command."""

    auth_service: AuthService
    uow: UnitOfWork

    async def run(self, cmd: CompleteOAuth) -> CompleteOAuthResult:
        """Exchange the authorization code and resolve the local account.

        Account writes are committed before the session tokens are returned.
        """
        login = await self.auth_service.complete_oauth(
            provider_name=cmd.provider,
            code=cmd.code,
            state=cmd.state,
            user_payload=cmd.user_payload,
        )
        await self.uow.commit()

        return CompleteOAuthResult(
            account_id=str(login.account.id),
            email=login.account.email,
            role=login.account.role.value,
            is_new_account=login.is_new_account,
            access_token=login.session.access_token,
            refresh_token=login.session.refresh_token,
            expires_in=login.session.expires_in,
            return_url=login.return_url,
        )
