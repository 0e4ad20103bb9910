"""Base schema with the camelCase wire format used by the frontend."""

from datetime import datetime
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class MessageOut(CamelModel):
    message: str


def to_local_naive(value: datetime) -> datetime:
    """Aware datetimes are converted to server-local wall time; naive ones pass through."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value
