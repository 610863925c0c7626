"""Base classes for domain entities and aggregates."""

from pydantic import BaseModel, ConfigDict


class Entity(BaseModel):
    """A domain object with identity. Mutable, validated on assignment."""

    model_config = ConfigDict(validate_assignment=True)


class Aggregate(Entity):
    """Root entity of a consistency boundary."""

    pass
