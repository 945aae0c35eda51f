"""Base schema with camelCase JSON field names."""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Response model serialized with camelCase keys."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
