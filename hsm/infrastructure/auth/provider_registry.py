"""Provider registry implementation."""

from dataclasses import dataclass, field

from hsm.config import AuthConfig
from hsm.domain.auth.error import InvalidProviderError
from hsm.domain.auth.model.provider import ProviderCapability, ProviderConfig
from hsm.domain.auth.model.value import OAuthProvider
from hsm.domain.auth.port.provider_registry import ProviderRegistry


@dataclass(frozen=True)
class ProviderSpec:
    """Fixed, credential-free description of a provider."""

    name: str
    color: str
    authorization_url: str
    token_url: str
    userinfo_url: str
    scopes: tuple[str, ...]
    authorize_params: dict[str, str] = field(default_factory=dict)
    userinfo_params: dict[str, str] = field(default_factory=dict)
    uses_pkce: bool = False
    uses_identity_token: bool = False
    jwks_url: str | None = None
    issuer: str | None = None


CATALOG: dict[OAuthProvider, ProviderSpec] = {
    OAuthProvider.GOOGLE: ProviderSpec(
        name="Google",
        color="#4285F4",
        authorization_url="https://accounts.google.com/o/oauth2/v2/auth",
        token_url="https://oauth2.googleapis.com/token",
        userinfo_url="https://www.googleapis.com/oauth2/v3/userinfo",
        scopes=("openid", "profile", "email"),
        # Offline access + forced consent so Google always returns a refresh token
        authorize_params={"access_type": "offline", "prompt": "consent"},
    ),
    OAuthProvider.FACEBOOK: ProviderSpec(
        name="Facebook",
        color="#1877F2",
        authorization_url="https://www.facebook.com/v18.0/dialog/oauth",
        token_url="https://graph.facebook.com/v18.0/oauth/access_token",
        userinfo_url="https://graph.facebook.com/v18.0/me",
        scopes=("email", "public_profile"),
        userinfo_params={"fields": "id,email,name,first_name,last_name,picture.type(large)"},
    ),
    OAuthProvider.LINKEDIN: ProviderSpec(
        name="LinkedIn",
        color="#0A66C2",
        authorization_url="https://www.linkedin.com/oauth/v2/authorization",
        token_url="https://www.linkedin.com/oauth/v2/accessToken",
        userinfo_url="https://api.linkedin.com/v2/userinfo",
        scopes=("openid", "profile", "email"),
    ),
    OAuthProvider.APPLE: ProviderSpec(
        name="Apple",
        color="#000000",
        authorization_url="https://appleid.apple.com/auth/authorize",
        token_url="https://appleid.apple.com/auth/token",
        userinfo_url="",
        scopes=("name", "email"),
        # Apple requires form_post when name/email scopes are requested
        authorize_params={"response_mode": "form_post"},
        uses_identity_token=True,
        jwks_url="https://appleid.apple.com/auth/keys",
        issuer="https://appleid.apple.com",
    ),
    OAuthProvider.TWITTER: ProviderSpec(
        name="X (Twitter)",
        color="#1DA1F2",
        authorization_url="https://twitter.com/i/oauth2/authorize",
        token_url="https://api.twitter.com/2/oauth2/token",
        userinfo_url="https://api.twitter.com/2/users/me",
        scopes=("tweet.read", "users.read", "offline.access"),
        userinfo_params={"user.fields": "profile_image_url,username"},
        uses_pkce=True,
    ),
    OAuthProvider.GITHUB: ProviderSpec(
        name="GitHub",
        color="#181717",
        authorization_url="https://github.com/login/oauth/authorize",
        token_url="https://github.com/login/oauth/access_token",
        userinfo_url="https://api.github.com/user",
        scopes=("read:user", "user:email"),
    ),
    OAuthProvider.MICROSOFT: ProviderSpec(
        name="Microsoft",
        color="#00A4EF",
        authorization_url="https://login.microsoftonline.com/common/oauth2/v2.0/authorize",
        token_url="https://login.microsoftonline.com/common/oauth2/v2.0/token",
        userinfo_url="https://graph.microsoft.com/v1.0/me",
        scopes=("openid", "profile", "email", "User.Read"),
    ),
}


class StaticProviderRegistry(ProviderRegistry):
    """Provider registry built once from the catalog and configured credentials.

    Every supported provider has an entry; providers without a client ID are
    present but disabled.
    """

    def __init__(self, configs: dict[OAuthProvider, ProviderConfig]) -> None:
        self._configs = configs

    @classmethod
    def from_config(cls, config: AuthConfig) -> "StaticProviderRegistry":
        configs: dict[OAuthProvider, ProviderConfig] = {}
        base = config.callback_base_url.rstrip("/")

        for provider, spec in CATALOG.items():
            client = config.client(provider.slug)
            configs[provider] = ProviderConfig(
                provider=provider,
                authorization_url_base=spec.authorization_url,
                token_url=spec.token_url,
                userinfo_url=spec.userinfo_url,
                client_id=client.client_id,
                client_secret=client.client_secret,
                scopes=tuple(client.scopes) if client.scopes else spec.scopes,
                callback_url=f"{base}/{provider.slug}/callback",
                authorize_params=dict(spec.authorize_params),
                userinfo_params=dict(spec.userinfo_params),
                uses_pkce=spec.uses_pkce,
                uses_identity_token=spec.uses_identity_token,
                user_agent=config.github_user_agent if provider == OAuthProvider.GITHUB else None,
                jwks_url=spec.jwks_url,
                issuer=spec.issuer,
            )

        return cls(configs)

    def get(self, provider: OAuthProvider) -> ProviderConfig:
        config = self._configs.get(provider)
        if config is None:
            raise InvalidProviderError(f"Invalid OAuth provider: {provider}")
        if not config.enabled:
            raise InvalidProviderError(
                f"{CATALOG[provider].name} login is not configured",
                code="provider_not_configured",
            )
        return config

    def capabilities(self) -> list[ProviderCapability]:
        return [
            ProviderCapability(
                id=provider.slug,
                name=CATALOG[provider].name,
                icon=f"/icons/{provider.slug}.svg",
                color=CATALOG[provider].color,
                enabled=config.enabled,
            )
            for provider, config in self._configs.items()
        ]
