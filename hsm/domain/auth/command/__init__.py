"""Auth domain commands."""

from .link import (
    LinkAccount,
    LinkAccountHandler,
    LinkAccountResult,
    UnlinkAccount,
    UnlinkAccountHandler,
    UnlinkAccountResult,
)
from .login import (
    CompleteOAuth,
    CompleteOAuthHandler,
    CompleteOAuthResult,
    InitiateLogin,
    InitiateLoginHandler,
    InitiateLoginResult,
)

__all__ = [
    "CompleteOAuth",
    "CompleteOAuthHandler",
    "CompleteOAuthResult",
    "InitiateLogin",
    "InitiateLoginHandler",
    "InitiateLoginResult",
    "LinkAccount",
    "LinkAccountHandler",
    "LinkAccountResult",
    "UnlinkAccount",
    "UnlinkAccountHandler",
    "UnlinkAccountResult",
]
