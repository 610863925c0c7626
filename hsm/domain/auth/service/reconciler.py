"""Identity reconciler: maps external identities onto local accounts."""

import logging
from dataclasses import dataclass

from hsm.domain.auth.error import (
    AlreadyLinkedError,
    DuplicateAccountError,
    LastAuthMethodError,
    MissingEmailError,
)
from hsm.domain.auth.model.account import Account
from hsm.domain.auth.model.linked_identity import LinkedIdentity
from hsm.domain.auth.model.profile import ExternalProfile, ProviderTokens
from hsm.domain.auth.model.value import AccountId, AccountRole, OAuthProvider, normalize_email
from hsm.domain.auth.port.repository import AccountRepository, LinkedIdentityRepository
from hsm.domain.shared.error import ConflictError, NotFoundError
from hsm.domain.shared.service import Service

logger = logging.getLogger(__name__)

# Attempts at resolving a login before a concurrent-creation conflict is surfaced
MAX_RESOLVE_ATTEMPTS = 3


@dataclass(frozen=True)
class Reconciliation:
    """Outcome of resolving an external identity to a local account."""

    account: Account
    identity: LinkedIdentity
    is_new_account: bool


class IdentityReconciler(Service):
    """Decides whether an external identity maps to an existing link, an
    email-matched account, or a brand-new account, and mutates the identity
    graph accordingly.

    - find_or_create_account: login path (three outcomes, race-safe)
    - link: attach an identity to an authenticated account
    - unlink: detach, keeping at least one way to sign in
    """

    _accounts: AccountRepository
    _identities: LinkedIdentityRepository
    _default_role: AccountRole = AccountRole.CUSTOMER

    async def find_or_create_account(
        self,
        provider: OAuthProvider,
        profile: ExternalProfile,
        tokens: ProviderTokens,
    ) -> Reconciliation:
        """Resolve a login to a local account, creating one if needed.

        Outcomes, evaluated in order:
        1. Existing link: refresh cached tokens, return the linked account
        2. Email match: link the identity to the existing account
        3. No match: create account + identity atomically

        A duplicate-key failure means another request created the same account
        or link concurrently; the resolution is retried so it lands on 1 or 2.

        Raises:
            MissingEmailError: No existing link and the profile has no email
            AlreadyLinkedError: Email-matched account already has another
                identity linked for this provider
        """
        for attempt in range(1, MAX_RESOLVE_ATTEMPTS + 1):
            try:
                return await self._resolve(provider, profile, tokens)
            except DuplicateAccountError:
                logger.info(
                    "Concurrent account creation detected, re-resolving: provider=%s, attempt=%d",
                    provider,
                    attempt,
                )

        raise ConflictError(
            "Could not resolve account after concurrent updates",
            code="account_conflict",
        )

    async def _resolve(
        self,
        provider: OAuthProvider,
        profile: ExternalProfile,
        tokens: ProviderTokens,
    ) -> Reconciliation:
        existing = await self._identities.get_by_provider_and_external_id(
            provider, profile.external_id
        )

        if existing is not None:
            account = await self._accounts.get(existing.account_id)
            if account is None:
                # Orphaned identity - shouldn't happen with CASCADE
                raise RuntimeError(f"Linked identity exists without account: {existing.id}")
            existing.refresh(profile, tokens)
            await self._identities.save(existing)
            return Reconciliation(account=account, identity=existing, is_new_account=False)

        if not profile.email:
            raise MissingEmailError("Email is required for account creation")

        account = await self._accounts.get_by_email(normalize_email(profile.email))
        if account is not None:
            other = await self._identities.get_by_account_and_provider(account.id, provider)
            if other is not None:
                raise AlreadyLinkedError(
                    f"Account already has a different {provider.slug} identity linked"
                )

            identity = LinkedIdentity.create(account.id, provider, profile, tokens)
            await self._identities.save(identity)
            logger.info(
                "Linked identity to existing account by email: account_id=%s, provider=%s",
                account.id,
                provider,
            )
            return Reconciliation(account=account, identity=identity, is_new_account=False)

        first_name, last_name = profile.split_name()
        account = Account.create_from_oauth(
            email=profile.email,
            first_name=first_name,
            last_name=last_name,
            profile_image=profile.avatar_url,
            role=self._default_role,
        )
        identity = LinkedIdentity.create(account.id, provider, profile, tokens)
        await self._accounts.create_with_identity(account, identity)

        logger.info("New account created: account_id=%s, provider=%s", account.id, provider)
        return Reconciliation(account=account, identity=identity, is_new_account=True)

    async def link(
        self,
        account_id: AccountId,
        provider: OAuthProvider,
        profile: ExternalProfile,
        tokens: ProviderTokens,
    ) -> LinkedIdentity:
        """Link an external identity to an existing account.

        Raises:
            NotFoundError: Account does not exist
            AlreadyLinkedError: Identity belongs to a different account
        """
        account = await self._accounts.get(account_id)
        if account is None:
            raise NotFoundError(f"Account not found: {account_id}", code="account_not_found")

        existing = await self._identities.get_by_provider_and_external_id(
            provider, profile.external_id
        )
        if existing is not None and existing.account_id != account_id:
            raise AlreadyLinkedError("This social account is already linked to another user")

        if existing is not None:
            existing.refresh(profile, tokens)
            identity = existing
        else:
            current = await self._identities.get_by_account_and_provider(account_id, provider)
            if current is not None:
                current.relink(profile, tokens)
                identity = current
            else:
                identity = LinkedIdentity.create(account_id, provider, profile, tokens)

        try:
            await self._identities.save(identity)
        except DuplicateAccountError as e:
            raise AlreadyLinkedError(
                "This social account is already linked to another user"
            ) from e

        logger.info("Identity linked: account_id=%s, provider=%s", account_id, provider)
        return identity

    async def unlink(self, account_id: AccountId, provider: OAuthProvider) -> None:
        """Remove the link for a provider.

        Raises:
            NotFoundError: Account or link does not exist
            LastAuthMethodError: Account has no password and no other linked identity
        """
        # Locked so a concurrent unlink cannot pass the same check
        account = await self._accounts.get(account_id, for_update=True)
        if account is None:
            raise NotFoundError(f"Account not found: {account_id}", code="account_not_found")

        identities = await self._identities.list_by_account(account_id)
        target = next((i for i in identities if i.provider == provider), None)
        if target is None:
            raise NotFoundError(
                f"No {provider.slug} account is linked", code="link_not_found"
            )

        others = [i for i in identities if i.provider != provider]
        if not account.has_password and not others:
            raise LastAuthMethodError(
                "Cannot unlink the only login method. Set a password first."
            )

        await self._identities.delete(target.id)
        logger.info("Identity unlinked: account_id=%s, provider=%s", account_id, provider)

    async def list_linked(self, account_id: AccountId) -> list[LinkedIdentity]:
        return await self._identities.list_by_account(account_id)
