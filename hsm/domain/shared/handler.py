"""Machinery shared by command and query handlers.

A handler subclass becomes a keyword-only dataclass whose fields are filled by
the container, and its ``run`` is wrapped so the class's ``__auth__`` gate is
checked before the body executes.
"""

from abc import ABCMeta
from dataclasses import dataclass
from typing import Any, dataclass_transform, get_args, get_origin

from pydantic import BaseModel

from hsm.domain.shared.authorization.guard import wrap_run_with_auth

BASE_HANDLER_NAMES = frozenset({"CommandHandler", "QueryHandler"})


class Result(BaseModel): ...


@dataclass_transform(kw_only_default=True)
class GuardedHandlerMeta(ABCMeta):
    def __new__(mcs, name: str, bases: tuple[type, ...], namespace: dict[str, Any]):
        cls = super().__new__(mcs, name, bases, namespace)
        if not any(isinstance(b, mcs) for b in bases):
            return cls

        cls = dataclass(cls, kw_only=True)
        run = cls.__dict__.get("run")
        if run is not None:
            cls.run = wrap_run_with_auth(run)
        return cls


def handled_type(handler_cls: type) -> type | None:
    """Return the Command or Query class a concrete handler is parameterised with."""
    for base in getattr(handler_cls, "__orig_bases__", ()):
        origin = get_origin(base)
        if getattr(origin, "__name__", None) not in BASE_HANDLER_NAMES:
            continue
        args = get_args(base)
        if args and isinstance(args[0], type):
            return args[0]
    return None
