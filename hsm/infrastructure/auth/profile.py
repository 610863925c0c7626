"""Profile fetcher: provider tokens -> canonical ExternalProfile."""

import logging
from dataclasses import replace
from typing import Any

import httpx

from hsm.domain.auth.error import ProfileFetchError
from hsm.domain.auth.model.profile import ExternalProfile, ProviderTokens
from hsm.domain.auth.model.provider import ProviderConfig
from hsm.domain.auth.model.value import OAuthProvider
from hsm.domain.auth.port.oauth_client import ProfileFetcher
from hsm.infrastructure.auth.id_token import IdentityTokenVerifier
from hsm.infrastructure.auth.normalizers import normalize

logger = logging.getLogger(__name__)

GITHUB_EMAILS_URL = "https://api.github.com/user/emails"


class HttpProfileFetcher(ProfileFetcher):
    """ProfileFetcher that calls user-info endpoints, or verifies an id_token
    for providers that put the profile there."""

    def __init__(self, http_client: httpx.AsyncClient, verifier: IdentityTokenVerifier) -> None:
        self._http = http_client
        self._verifier = verifier

    async def fetch(
        self,
        config: ProviderConfig,
        tokens: ProviderTokens,
        user_hint: dict[str, Any] | None = None,
    ) -> ExternalProfile:
        if config.uses_identity_token:
            if not tokens.id_token:
                raise ProfileFetchError(
                    f"{config.provider.slug} did not return an identity token",
                    code="invalid_id_token",
                )
            claims = await self._verifier.verify(config, tokens.id_token)
            payload = {**claims, "user": user_hint} if user_hint else claims
        else:
            payload = await self._get_json(config, config.userinfo_url, tokens, config.userinfo_params)
            if not isinstance(payload, dict):
                raise ProfileFetchError("Profile endpoint returned an unexpected body")

        profile = normalize(config.provider, payload)

        if config.provider == OAuthProvider.GITHUB and not profile.email:
            profile = await self._with_github_email(config, tokens, profile)

        if not profile.external_id:
            logger.error("Profile has no external ID: provider=%s", config.provider)
            raise ProfileFetchError("Provider profile is missing a user ID")

        return profile

    async def _get_json(
        self,
        config: ProviderConfig,
        url: str,
        tokens: ProviderTokens,
        params: dict[str, str] | None = None,
    ) -> Any:
        headers = {
            "Authorization": f"Bearer {tokens.access_token}",
            "Accept": "application/json",
        }
        if config.user_agent:
            headers["User-Agent"] = config.user_agent

        try:
            response = await self._http.get(url, params=params or None, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Profile endpoint unreachable: provider=%s, error=%s", config.provider, e)
            raise ProfileFetchError(
                f"Failed to connect to {config.provider.slug}",
                code="idp_unavailable",
            ) from e

        if not response.is_success:
            logger.error(
                "Profile fetch failed: provider=%s, status=%d, body=%s",
                config.provider,
                response.status_code,
                response.text,
            )
            raise ProfileFetchError(f"Failed to fetch user profile: {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise ProfileFetchError("Profile endpoint returned an invalid body") from e

    async def _with_github_email(
        self,
        config: ProviderConfig,
        tokens: ProviderTokens,
        profile: ExternalProfile,
    ) -> ExternalProfile:
        """GitHub hides private emails from /user; ask /user/emails for the primary one."""
        try:
            emails = await self._get_json(config, GITHUB_EMAILS_URL, tokens)
        except ProfileFetchError:
            logger.warning("Could not fetch GitHub emails, continuing without email")
            return profile

        entries = [e for e in emails if isinstance(e, dict)] if isinstance(emails, list) else []
        chosen = next(
            (e for e in entries if e.get("primary") and e.get("verified")),
            next((e for e in entries if e.get("verified")), None),
        )
        if chosen is None or not chosen.get("email"):
            return profile

        return replace(profile, email=str(chosen["email"]))
