"""Base marker for domain ports."""

from typing import Protocol


class Port(Protocol):
    """Marker base for all ports (interfaces implemented by infrastructure adapters)."""

    pass
