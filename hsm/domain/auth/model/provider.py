"""Provider configuration for external identity providers."""

import hashlib
from base64 import urlsafe_b64encode
from dataclasses import dataclass, field
from urllib.parse import urlencode

from hsm.domain.auth.model.value import OAuthProvider


def code_challenge(verifier: str) -> str:
    """PKCE S256 challenge: unpadded base64url of SHA256(verifier)."""
    digest = hashlib.sha256(verifier.encode()).digest()
    return urlsafe_b64encode(digest).rstrip(b"=").decode()


@dataclass(frozen=True)
class ProviderConfig:
    """Endpoints, credentials and quirks for one identity provider.

    Immutable, built once at startup from configuration.
    """

    provider: OAuthProvider
    authorization_url_base: str
    token_url: str
    userinfo_url: str  # Empty for identity-token providers
    client_id: str
    client_secret: str
    scopes: tuple[str, ...]
    callback_url: str
    authorize_params: dict[str, str] = field(default_factory=dict)
    userinfo_params: dict[str, str] = field(default_factory=dict)
    uses_pkce: bool = False
    uses_identity_token: bool = False  # Claims come from a signed id_token
    user_agent: str | None = None
    jwks_url: str | None = None
    issuer: str | None = None

    @property
    def enabled(self) -> bool:
        return bool(self.client_id)

    def authorization_url(self, state: str) -> str:
        """Generate the provider authorization URL for a correlation token."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.callback_url,
            "scope": " ".join(self.scopes),
            "response_type": "code",
            "state": state,
            **self.authorize_params,
        }
        if self.uses_pkce:
            params["code_challenge"] = code_challenge(state)
            params["code_challenge_method"] = "S256"
        return f"{self.authorization_url_base}?{urlencode(params)}"


@dataclass(frozen=True)
class ProviderCapability:
    """Public description of a provider for login screens."""

    id: str
    name: str
    icon: str
    color: str
    enabled: bool
