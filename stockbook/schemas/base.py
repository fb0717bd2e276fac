"""
Base schema with shared serialization behaviour.
"""

from pydantic import BaseModel, field_serializer


class BaseResponseSchema(BaseModel):
    """
    Base for every response schema.
    Serializes enum fields to their string values.
    """

    @field_serializer("*")
    def serialize_enum(self, v):
        if hasattr(v, "value"):
            return v.value
        return v
