"""Session issuer: mints local access and refresh JWTs."""

import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from hsm.config import JwtConfig
from hsm.domain.auth.model.account import Account
from hsm.domain.auth.model.session import SessionTokens
from hsm.domain.shared.error import ConfigurationError
from hsm.domain.shared.service import Service

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"
AUDIENCE = "authenticated"


class SessionIssuer(Service):
    """Service for local session credentials.

    - Access tokens are short-lived JWTs carrying account id, email and role
    - Refresh tokens are longer-lived JWTs carrying only the account id and a
      type marker, signed with a distinct secret
    Both are opaque bearer credentials to the rest of the system. Revocation
    is owned by session management, not here.
    """

    _config: JwtConfig

    def __post_init__(self) -> None:
        if not self._config.secret or not self._config.refresh_secret:
            raise ConfigurationError(
                "JWT secrets are not set (HSM_AUTH__JWT__SECRET, HSM_AUTH__JWT__REFRESH_SECRET)",
                code="jwt_secret_missing",
            )
        if self._config.secret == self._config.refresh_secret:
            raise ConfigurationError(
                "Access and refresh tokens must use distinct secrets", code="jwt_secret_reused"
            )

    def issue(self, account: Account) -> SessionTokens:
        """Mint an access/refresh token pair for an account."""
        return SessionTokens(
            access_token=self.create_access_token(account),
            refresh_token=self.create_refresh_token(account),
            expires_in=self.access_token_expire_seconds,
        )

    def create_access_token(self, account: Account) -> str:
        now = datetime.now(UTC)
        expires_at = now + timedelta(minutes=self._config.access_token_expire_minutes)

        payload = {
            "sub": str(account.id),
            "email": account.email,
            "role": account.role.value,
            "type": ACCESS_TOKEN_TYPE,
            "aud": AUDIENCE,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": secrets.token_hex(16),
        }
        return jwt.encode(payload, self._config.secret, algorithm=self._config.algorithm)

    def create_refresh_token(self, account: Account) -> str:
        now = datetime.now(UTC)
        expires_at = now + timedelta(days=self._config.refresh_token_expire_days)

        payload = {
            "sub": str(account.id),
            "type": REFRESH_TOKEN_TYPE,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": secrets.token_hex(16),
        }
        return jwt.encode(
            payload, self._config.refresh_secret, algorithm=self._config.algorithm
        )

    def validate_access_token(self, token: str) -> dict[str, Any]:
        """Validate and decode an access token.

        Raises:
            jwt.InvalidTokenError: If token is invalid, expired or not an access token
        """
        payload = jwt.decode(
            token,
            self._config.secret,
            algorithms=[self._config.algorithm],
            audience=AUDIENCE,
        )
        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise jwt.InvalidTokenError("Not an access token")
        return payload

    def validate_refresh_token(self, token: str) -> dict[str, Any]:
        """Validate and decode a refresh token.

        Raises:
            jwt.InvalidTokenError: If token is invalid, expired or not a refresh token
        """
        payload = jwt.decode(
            token,
            self._config.refresh_secret,
            algorithms=[self._config.algorithm],
        )
        if payload.get("type") != REFRESH_TOKEN_TYPE:
            raise jwt.InvalidTokenError("Not a refresh token")
        return payload

    @property
    def access_token_expire_seconds(self) -> int:
        return self._config.access_token_expire_minutes * 60
