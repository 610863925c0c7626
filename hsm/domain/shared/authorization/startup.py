"""Fail fast at startup when a handler is reachable without an auth gate."""

import logging

from hsm.domain.shared.authorization.gate import Gate
from hsm.domain.shared.command import CommandHandler
from hsm.domain.shared.error import ConfigurationError
from hsm.domain.shared.handler import handled_type
from hsm.domain.shared.query import QueryHandler

logger = logging.getLogger(__name__)


def find_ungated_handlers() -> list[str]:
    """Names of handlers whose DTO is not public and which declare no ``__auth__`` gate."""
    ungated = []
    for handler_cls in (*CommandHandler.__subclasses__(), *QueryHandler.__subclasses__()):
        dto = handled_type(handler_cls)
        if dto is not None and getattr(dto, "__public__", False):
            continue
        if not isinstance(getattr(handler_cls, "__auth__", None), Gate):
            ungated.append(handler_cls.__name__)
    return ungated


def validate_all_handlers() -> None:
    """Raise ConfigurationError naming every ungated handler."""
    ungated = find_ungated_handlers()
    if ungated:
        raise ConfigurationError(
            "Handlers without __auth__ for non-public commands/queries: " + ", ".join(ungated)
        )
    logger.debug(
        "Handler auth gates validated: commands=%d, queries=%d",
        len(CommandHandler.__subclasses__()),
        len(QueryHandler.__subclasses__()),
    )
