"""Shared helpers for immutable policy models."""

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps from collaborators are assumed to be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _none_as_empty(value: Any) -> Any:
    # Malformed collections (null in a token payload) grant nothing
    if value is None:
        return ()
    return value


UTCDateTime = Annotated[datetime, AfterValidator(_as_utc)]
"""Datetime normalized to UTC so wall/waiver expiry comparisons never mix naive and aware values."""

IdSet = Annotated[frozenset[str], BeforeValidator(_none_as_empty)]
"""Set of identifiers; ``None`` is read as the empty set."""

IdList = Annotated[list[str], BeforeValidator(_none_as_empty)]


class FrozenModel(BaseModel):
    """Immutable request-scoped snapshot.

    Accepts both snake_case field names and camelCase aliases so session
    payloads can be validated directly.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)
