"""Unit tests for IdentityTokenVerifier."""

import time
from unittest.mock import MagicMock

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from hsm.domain.auth.error import ProfileFetchError
from hsm.domain.auth.model.provider import ProviderConfig
from hsm.domain.auth.model.value import OAuthProvider
from hsm.infrastructure.auth.id_token import IdentityTokenVerifier

JWKS_URL = "https://appleid.apple.com/auth/keys"
ISSUER = "https://appleid.apple.com"
CLIENT_ID = "com.example.web"


@pytest.fixture(scope="module")
def signing_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def make_config(jwks_url: str | None = JWKS_URL) -> ProviderConfig:
    return ProviderConfig(
        provider=OAuthProvider.APPLE,
        authorization_url_base="https://appleid.apple.com/auth/authorize",
        token_url="https://appleid.apple.com/auth/token",
        userinfo_url="",
        client_id=CLIENT_ID,
        client_secret="client-secret-jwt",
        scopes=("name", "email"),
        callback_url="https://api.example.com/api/v1/auth/apple/callback",
        uses_identity_token=True,
        jwks_url=jwks_url,
        issuer=ISSUER,
    )


def make_verifier(key: rsa.RSAPrivateKey) -> IdentityTokenVerifier:
    jwk_client = MagicMock()
    jwk_client.get_signing_key_from_jwt.return_value = MagicMock(key=key.public_key())
    return IdentityTokenVerifier(jwk_clients={JWKS_URL: jwk_client})


def sign(key: rsa.RSAPrivateKey, **overrides) -> str:
    now = int(time.time())
    claims = {
        "iss": ISSUER,
        "aud": CLIENT_ID,
        "sub": "001234.abcd",
        "email": "a@privaterelay.appleid.com",
        "iat": now,
        "exp": now + 600,
    }
    claims.update(overrides)
    return jwt.encode(claims, key, algorithm="RS256", headers={"kid": "test-kid"})


class TestVerify:
    @pytest.mark.asyncio
    async def test_valid_token(self, signing_key):
        claims = await make_verifier(signing_key).verify(make_config(), sign(signing_key))

        assert claims["sub"] == "001234.abcd"
        assert claims["email"] == "a@privaterelay.appleid.com"

    @pytest.mark.asyncio
    async def test_wrong_audience(self, signing_key):
        token = sign(signing_key, aud="com.someone.else")

        with pytest.raises(ProfileFetchError) as exc_info:
            await make_verifier(signing_key).verify(make_config(), token)

        assert exc_info.value.code == "invalid_id_token"

    @pytest.mark.asyncio
    async def test_wrong_issuer(self, signing_key):
        token = sign(signing_key, iss="https://evil.example.com")

        with pytest.raises(ProfileFetchError):
            await make_verifier(signing_key).verify(make_config(), token)

    @pytest.mark.asyncio
    async def test_expired(self, signing_key):
        now = int(time.time())
        token = sign(signing_key, iat=now - 1200, exp=now - 600)

        with pytest.raises(ProfileFetchError):
            await make_verifier(signing_key).verify(make_config(), token)

    @pytest.mark.asyncio
    async def test_signed_by_other_key(self, signing_key):
        other = rsa.generate_private_key(public_exponent=65537, key_size=2048)

        with pytest.raises(ProfileFetchError):
            await make_verifier(signing_key).verify(make_config(), sign(other))

    @pytest.mark.asyncio
    async def test_key_lookup_failure(self, signing_key):
        jwk_client = MagicMock()
        jwk_client.get_signing_key_from_jwt.side_effect = jwt.PyJWKClientError("no matching kid")
        verifier = IdentityTokenVerifier(jwk_clients={JWKS_URL: jwk_client})

        with pytest.raises(ProfileFetchError) as exc_info:
            await verifier.verify(make_config(), sign(signing_key))

        assert exc_info.value.code == "invalid_id_token"

    @pytest.mark.asyncio
    async def test_no_jwks_url(self, signing_key):
        with pytest.raises(ProfileFetchError):
            await make_verifier(signing_key).verify(make_config(jwks_url=None), sign(signing_key))

    @pytest.mark.asyncio
    async def test_unreachable_jwks_is_idp_unavailable(self, signing_key):
        jwk_client = MagicMock()
        jwk_client.get_signing_key_from_jwt.side_effect = jwt.PyJWKClientConnectionError("timed out")
        verifier = IdentityTokenVerifier(jwk_clients={JWKS_URL: jwk_client})

        with pytest.raises(ProfileFetchError) as exc_info:
            await verifier.verify(make_config(), sign(signing_key))

        assert exc_info.value.code == "idp_unavailable"


class TestJwkClientTimeout:
    def test_client_uses_configured_timeout(self):
        verifier = IdentityTokenVerifier(timeout=2.5)

        client = verifier._get_jwk_client(JWKS_URL)

        assert client.timeout == 2.5

    def test_client_cached_per_url(self):
        verifier = IdentityTokenVerifier(timeout=2.5)

        assert verifier._get_jwk_client(JWKS_URL) is verifier._get_jwk_client(JWKS_URL)
