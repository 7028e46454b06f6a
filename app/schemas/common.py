# app/schemas/common.py

from typing import Generic, Optional, TypeVar
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

T = TypeVar("T")


# ---------------------------------------------------------
# BASE: snake_case in Python, camelCase on the wire
# ---------------------------------------------------------
class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# ---------------------------------------------------------
# SUCCESS ENVELOPE
# ---------------------------------------------------------
class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str = "Success"
    data: Optional[T] = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int
