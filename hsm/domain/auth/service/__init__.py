"""Auth domain services."""

from .auth import AuthService, OAuthLogin
from .reconciler import IdentityReconciler, Reconciliation
from .session import SessionIssuer

__all__ = [
    "AuthService",
    "IdentityReconciler",
    "OAuthLogin",
    "Reconciliation",
    "SessionIssuer",
]
