"""Commands for linking and unlinking external identities."""

from hsm.domain.auth.model.principal import Principal
from hsm.domain.auth.service.auth import AuthService
from hsm.domain.shared.authorization.gate import authenticated
from hsm.domain.shared.command import Command, CommandHandler, Result
from hsm.domain.shared.uow import UnitOfWork


class LinkAccount(Command):
    """Link a provider identity to the current account."""

    provider: str
    code: str
    state: str


class LinkAccountResult(Result):
    provider: str
    message: str


class LinkAccountHandler(CommandHandler[LinkAccount, LinkAccountResult]):
    __auth__ = authenticated()
    principal: Principal
    auth_service: AuthService
    uow: UnitOfWork

    async def run(self, cmd: LinkAccount) -> LinkAccountResult:
        identity = await self.auth_service.link_account(
            account_id=self.principal.account_id,
            provider_name=cmd.provider,
            code=cmd.code,
            state=cmd.state,
        )
        await self.uow.commit()
        return LinkAccountResult(
            provider=identity.provider.value,
            message=f"{identity.provider.slug.capitalize()} account linked successfully",
        )


class UnlinkAccount(Command):
    """Remove the current account's link to a provider."""

    provider: str


class UnlinkAccountResult(Result):
    provider: str
    message: str


class UnlinkAccountHandler(CommandHandler[UnlinkAccount, UnlinkAccountResult]):
    __auth__ = authenticated()
    principal: Principal
    auth_service: AuthService
    uow: UnitOfWork

    async def run(self, cmd: UnlinkAccount) -> UnlinkAccountResult:
        await self.auth_service.unlink_account(self.principal.account_id, cmd.provider)
        await self.uow.commit()
        provider = cmd.provider.strip().lower()
        return UnlinkAccountResult(
            provider=provider.upper(),
            message=f"{provider.capitalize()} account unlinked successfully",
        )
