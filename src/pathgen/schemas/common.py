"""Common Pydantic schemas."""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Schema serialized with camelCase keys, accepting either spelling."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: Dict[str, Any] = Field(
        ...,
        examples=[
            {
                "code": "NOT_FOUND",
                "message": "Learning path not found",
                "details": {},
            }
        ],
    )
