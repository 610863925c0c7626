"""Identity federation errors.

All of these are terminal for the current request. Authorization codes and
correlation tokens are single-use, so nothing here is retried automatically.
The ``code`` attribute is machine-readable and is what the callback flow puts
in the front-end error redirect.
"""

from hsm.domain.shared.error import ConflictError, DomainError


class OAuthError(DomainError):
    """Base class for federation flow failures (400 responses)."""

    default_code = "auth_failed"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message, code=code or self.default_code)


class InvalidProviderError(OAuthError):
    """Provider is not supported, or supported but not configured."""

    default_code = "invalid_provider"


class InvalidStateError(OAuthError):
    """Correlation token is missing, expired, replayed or for another provider."""

    default_code = "invalid_state"


class MissingParamsError(OAuthError):
    """Callback arrived without a code or state."""

    default_code = "missing_params"


class UpstreamProviderError(OAuthError):
    """The provider redirected back with an OAuth error instead of a code."""

    def __init__(self, error: str, description: str | None = None) -> None:
        super().__init__(description or f"Provider returned error: {error}", code=error)
        self.description = description


class TokenExchangeError(OAuthError):
    """Authorization code could not be exchanged for provider tokens."""

    default_code = "token_exchange_failed"

    def __init__(self, message: str, body: str = "", code: str | None = None) -> None:
        super().__init__(message, code=code)
        self.body = body


class ProfileFetchError(OAuthError):
    """Provider profile could not be fetched, verified or normalized."""

    default_code = "profile_fetch_failed"


class MissingEmailError(OAuthError):
    """No email from the provider and no existing link to fall back on."""

    default_code = "missing_email"


class AlreadyLinkedError(ConflictError):
    """External identity already belongs to a different account."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="already_linked")


class LastAuthMethodError(ConflictError):
    """Unlinking would leave the account without any way to sign in."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="last_auth_method")


class DuplicateAccountError(ConflictError):
    """A unique key (email or provider identity) was taken concurrently.

    Raised by repositories; the reconciler recovers by re-resolving.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, code="duplicate_account")
