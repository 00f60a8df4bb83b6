"""
Shared schema pieces: camelCase wire names, pagination block, message-only responses.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Python attributes in snake_case, JSON in camelCase; either is accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int  # ceil(total / limit)


class MessageResponse(CamelModel):
    message: str


def page_count(total: int, limit: int) -> int:
    return -(-total // limit) if limit else 0
