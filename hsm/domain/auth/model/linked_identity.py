"""LinkedIdentity entity for the auth domain.

Links an Account to an external identity provider (e.g. Google, GitHub).
"""

from datetime import UTC, datetime
from typing import Any

from hsm.domain.auth.model.profile import ExternalProfile, ProviderTokens
from hsm.domain.auth.model.value import AccountId, LinkedIdentityId, OAuthProvider
from hsm.domain.shared.model.entity import Entity


class LinkedIdentity(Entity):
    """A link between an Account and an external identity.

    Examples:
    - Google: provider=GOOGLE, external_id="109876543210"
    - GitHub: provider=GITHUB, external_id="583231"

    Invariants:
    - `(provider, external_id)` is globally unique
    - `(account_id, provider)` is unique: one identity per provider per account
    - `account_id` and `provider` are immutable after creation
    """

    id: LinkedIdentityId
    account_id: AccountId
    provider: OAuthProvider
    external_id: str
    access_token: str | None = None
    refresh_token: str | None = None
    token_expires_at: datetime | None = None
    email: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None
    profile_url: str | None = None
    raw_data: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def create(
        cls,
        account_id: AccountId,
        provider: OAuthProvider,
        profile: ExternalProfile,
        tokens: ProviderTokens,
    ) -> "LinkedIdentity":
        """Create a new identity link from a provider round-trip."""
        return cls(
            id=LinkedIdentityId.generate(),
            account_id=account_id,
            provider=provider,
            external_id=profile.external_id,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_expires_at=tokens.expires_at,
            email=profile.email,
            display_name=profile.display_name,
            avatar_url=profile.avatar_url,
            profile_url=profile.profile_url,
            raw_data=profile.raw_payload,
            created_at=datetime.now(UTC),
        )

    def refresh(self, profile: ExternalProfile, tokens: ProviderTokens) -> None:
        """Update cached tokens and display metadata after a successful login.

        A refresh token is kept when the provider does not rotate it.
        """
        self.access_token = tokens.access_token
        self.refresh_token = tokens.refresh_token or self.refresh_token
        self.token_expires_at = tokens.expires_at
        self.email = profile.email or self.email
        self.display_name = profile.display_name or self.display_name
        self.avatar_url = profile.avatar_url or self.avatar_url
        self.profile_url = profile.profile_url or self.profile_url
        self.raw_data = profile.raw_payload
        self.updated_at = datetime.now(UTC)

    def relink(self, profile: ExternalProfile, tokens: ProviderTokens) -> None:
        """Point this link at a different external account of the same provider."""
        self.external_id = profile.external_id
        self.access_token = tokens.access_token
        self.refresh_token = tokens.refresh_token
        self.token_expires_at = tokens.expires_at
        self.email = profile.email
        self.display_name = profile.display_name
        self.avatar_url = profile.avatar_url
        self.profile_url = profile.profile_url
        self.raw_data = profile.raw_payload
        self.updated_at = datetime.now(UTC)
