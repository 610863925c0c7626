"""Token exchange client: authorization code -> provider tokens."""

import logging

import httpx

from hsm.domain.auth.error import TokenExchangeError
from hsm.domain.auth.model.profile import ProviderTokens
from hsm.domain.auth.model.provider import ProviderConfig
from hsm.domain.auth.port.oauth_client import TokenExchangeClient

logger = logging.getLogger(__name__)


class HttpTokenExchangeClient(TokenExchangeClient):
    """TokenExchangeClient over a shared httpx client.

    One attempt per code: authorization codes are single-use, so nothing is
    retried.
    """

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client

    async def exchange(
        self,
        config: ProviderConfig,
        code: str,
        state_token: str | None = None,
    ) -> ProviderTokens:
        data = {
            "client_id": config.client_id,
            "client_secret": config.client_secret,
            "code": code,
            "redirect_uri": config.callback_url,
            "grant_type": "authorization_code",
        }
        if config.uses_pkce:
            if not state_token:
                raise TokenExchangeError(f"{config.provider.slug} requires a PKCE code verifier")
            data["code_verifier"] = state_token

        try:
            response = await self._http.post(
                config.token_url,
                data=data,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            logger.error("Token endpoint unreachable: provider=%s, error=%s", config.provider, e)
            raise TokenExchangeError(
                f"Failed to connect to {config.provider.slug}",
                code="idp_unavailable",
            ) from e

        if not response.is_success:
            logger.error(
                "Token exchange failed: provider=%s, status=%d, body=%s",
                config.provider,
                response.status_code,
                response.text,
            )
            raise TokenExchangeError(
                f"Token exchange failed: {response.status_code}",
                body=response.text,
            )

        try:
            token_data = response.json()
        except ValueError as e:
            logger.error(
                "Token endpoint returned non-JSON body: provider=%s, body=%s",
                config.provider,
                response.text,
            )
            raise TokenExchangeError("Token endpoint returned an invalid body", body=response.text) from e

        # GitHub reports failures as 200 with an error member
        if not isinstance(token_data, dict) or token_data.get("error"):
            logger.error(
                "Token exchange rejected: provider=%s, body=%s", config.provider, response.text
            )
            raise TokenExchangeError("Token exchange rejected by provider", body=response.text)

        if not token_data.get("access_token"):
            logger.error(
                "Token response missing access_token: provider=%s", config.provider
            )
            raise TokenExchangeError("Token response missing access_token", body=response.text)

        return ProviderTokens.from_response(token_data)
