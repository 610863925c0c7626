"""Wraps handler run() methods with their __auth__ gate."""

import logging
from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any

from hsm.domain.shared.authorization.gate import Gate
from hsm.domain.shared.error import AuthorizationError, ConfigurationError

logger = logging.getLogger("hsm.authz")

HandlerMethod = Callable[..., Coroutine[Any, Any, Any]]


def wrap_run_with_auth(original_run: HandlerMethod) -> HandlerMethod:
    """Check the handler's gate, then delegate to the original run()."""

    @wraps(original_run)
    async def guarded_run(self: Any, request: Any) -> Any:
        handler_name = type(self).__name__

        if getattr(type(request), "__public__", False):
            return await original_run(self, request)

        gate = getattr(type(self), "__auth__", None)
        if not isinstance(gate, Gate):
            raise ConfigurationError(
                f"{handler_name} declares no __auth__ gate for non-public "
                f"{type(request).__name__}"
            )

        if gate.requires_principal:
            from hsm.domain.auth.model.principal import Principal

            principal = getattr(self, "principal", None)
            if not isinstance(principal, Principal):
                raise AuthorizationError("Authentication required", code="missing_token")
            logger.debug("Gate passed: handler=%s, account_id=%s", handler_name, principal.account_id)

        return await original_run(self, request)

    return guarded_run
