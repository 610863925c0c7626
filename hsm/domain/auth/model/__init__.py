"""Auth domain models."""

from .account import Account
from .linked_identity import LinkedIdentity
from .principal import Principal
from .profile import ExternalProfile, ProviderTokens
from .provider import ProviderCapability, ProviderConfig
from .session import SessionTokens
from .state import CorrelationState
from .value import (
    AccountId,
    AccountRole,
    AccountStatus,
    LinkedIdentityId,
    OAuthProvider,
)

__all__ = [
    "Account",
    "AccountId",
    "AccountRole",
    "AccountStatus",
    "CorrelationState",
    "ExternalProfile",
    "LinkedIdentity",
    "LinkedIdentityId",
    "OAuthProvider",
    "Principal",
    "ProviderCapability",
    "ProviderConfig",
    "ProviderTokens",
    "SessionTokens",
]
