"""Shared schema configuration."""

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Response model serialized with camelCase keys (``isVerified``, ``userId``)."""

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class EmailInput(BaseModel):
    """Mixin for requests carrying an optional email address."""

    @field_validator("email", mode="before", check_fields=False)
    @classmethod
    def blank_email_is_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value
