"""Domain service base class."""

from dataclasses import dataclass
from typing import dataclass_transform


@dataclass_transform(kw_only_default=True)
class _KeywordDataclassMeta(type):
    def __new__(mcs, name: str, bases: tuple, namespace: dict):
        cls = super().__new__(mcs, name, bases, namespace)
        if not any(isinstance(b, mcs) for b in bases):
            return cls
        return dataclass(cls, kw_only=True)


class Service(metaclass=_KeywordDataclassMeta):
    """Stateless unit of domain logic.

    Subclasses become keyword-only dataclasses. Collaborators are declared as
    underscore-prefixed fields and passed by name, e.g.
    ``SessionIssuer(_config=jwt_config)``.
    """
