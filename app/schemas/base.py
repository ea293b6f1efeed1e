"""Shared Pydantic configuration for API payloads."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model serialized with camelCase keys and populated by either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Integer primary keys start at 1 and cannot exceed the 32-bit signed range.
MAX_ID = 2**31 - 1
