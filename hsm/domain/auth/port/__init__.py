"""Auth domain ports."""

from .oauth_client import ProfileFetcher, TokenExchangeClient
from .provider_registry import ProviderRegistry
from .repository import AccountRepository, LinkedIdentityRepository
from .state_store import StateStore

__all__ = [
    "AccountRepository",
    "LinkedIdentityRepository",
    "ProfileFetcher",
    "ProviderRegistry",
    "StateStore",
    "TokenExchangeClient",
]
