"""HTTP rendering of HSMError.

Every failure on the JSON routes has the body
``{"success": false, "code": ..., "message": ...}``. The status follows the
error's class, walking its MRO.
"""

from typing import Any

from fastapi import HTTPException

from hsm.domain.auth.error import OAuthError
from hsm.domain.shared.error import (
    AuthorizationError,
    ConflictError,
    DomainError,
    HSMError,
    InfrastructureError,
    NotFoundError,
)

STATUS_BY_ERROR: dict[type[HSMError], int] = {
    InfrastructureError: 503,
    OAuthError: 400,
    NotFoundError: 404,
    ConflictError: 409,
    AuthorizationError: 403,
    DomainError: 400,
}

# Authorization codes meaning the caller never proved who they are
UNAUTHENTICATED_CODES = frozenset({"missing_token", "invalid_token", "token_expired"})


def status_for(error: HSMError) -> int:
    for cls in type(error).__mro__:
        status = STATUS_BY_ERROR.get(cls)
        if status is not None:
            return status
    return 500


def map_hsm_error(error: HSMError) -> HTTPException:
    body: dict[str, Any] = {"success": False, "code": error.code, "message": error.message}
    if isinstance(error, AuthorizationError) and error.code in UNAUTHENTICATED_CODES:
        return HTTPException(401, detail=body, headers={"WWW-Authenticate": "Bearer"})
    return HTTPException(status_for(error), detail=body)
