"""
Shared schema base classes.
"""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List


class CamelModel(BaseModel):
    """
    Base for every API schema: snake_case attributes, camelCase on the wire.

    populate_by_name lets services build instances with Python names while
    clients send and receive the camelCase aliases.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SuccessResponse(CamelModel):
    success: bool = True


class IdListRequest(CamelModel):
    """Body of the bulk-delete endpoints."""

    ids: List[str] = Field(..., min_length=1, description="Ids to delete")


class IntIdListRequest(CamelModel):
    ids: List[int] = Field(..., min_length=1, description="Ids to delete")


class DeleteResponse(CamelModel):
    success: bool = True
    deleted: int = Field(..., ge=0, description="Number of rows removed")
