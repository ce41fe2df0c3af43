"""Shared model configuration."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class DomainModel(BaseModel):
    """
    Base class for every persisted entity.

    DESIGN DECISION: Assignments are validated too, so an entity can never
    be mutated into a state its constructor would have rejected
    (e.g. a negative amount).
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
    )
