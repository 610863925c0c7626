"""Verification of OpenID identity tokens (Apple)."""

import asyncio
import logging
from typing import Any

import jwt
from jwt import PyJWKClient

from hsm.domain.auth.error import ProfileFetchError
from hsm.domain.auth.model.provider import ProviderConfig

logger = logging.getLogger(__name__)


class IdentityTokenVerifier:
    """Verifies id_token signatures against the provider's JWKS.

    Claims are only trusted after signature, issuer, audience and expiry
    checks pass. One PyJWKClient per JWKS URL keeps fetched keys cached.
    """

    def __init__(
        self,
        jwk_clients: dict[str, PyJWKClient] | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._jwk_clients: dict[str, PyJWKClient] = jwk_clients or {}
        self._timeout = timeout

    async def verify(self, config: ProviderConfig, id_token: str) -> dict[str, Any]:
        """Verify an id_token and return its claims.

        Raises:
            ProfileFetchError: code ``idp_unavailable`` if the JWKS endpoint
                cannot be reached, ``invalid_id_token`` if verification fails
        """
        if not config.jwks_url:
            raise ProfileFetchError(
                f"{config.provider.slug} has no JWKS endpoint configured",
                code="invalid_id_token",
            )

        # PyJWKClient fetches keys with blocking urllib
        return await asyncio.to_thread(self._verify_sync, config, id_token)

    def _verify_sync(self, config: ProviderConfig, id_token: str) -> dict[str, Any]:
        client = self._get_jwk_client(config.jwks_url or "")
        try:
            signing_key = client.get_signing_key_from_jwt(id_token)
            return jwt.decode(
                id_token,
                signing_key.key,
                algorithms=["RS256"],
                audience=config.client_id,
                issuer=config.issuer,
                options={"require": ["exp", "iat", "iss", "aud", "sub"]},
            )
        except jwt.PyJWKClientConnectionError as e:
            logger.warning("JWKS fetch failed: provider=%s, error=%s", config.provider, e)
            raise ProfileFetchError(
                f"{config.provider.slug} signing keys unavailable", code="idp_unavailable"
            ) from e
        except (jwt.InvalidTokenError, jwt.PyJWKClientError) as e:
            logger.warning("Identity token rejected: provider=%s, error=%s", config.provider, e)
            raise ProfileFetchError("Identity token verification failed", code="invalid_id_token") from e

    def _get_jwk_client(self, jwks_url: str) -> PyJWKClient:
        client = self._jwk_clients.get(jwks_url)
        if client is None:
            client = PyJWKClient(jwks_url, timeout=self._timeout)
            self._jwk_clients[jwks_url] = client
        return client
