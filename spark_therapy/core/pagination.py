"""
Page-number pagination for the user listing endpoints.
"""
from typing import Generic, List, Type, TypeVar
import math

from fastapi import Query
from pydantic import BaseModel, computed_field
from sqlalchemy.orm import Query as SQLAlchemyQuery

T = TypeVar("T")


class PageParams:
    """Query-string paging (1-indexed), used as ``Depends()``."""

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number"),
        size: int = Query(20, ge=1, le=100, description="Items per page")
    ):
        self.page = page
        self.size = size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


class PageResponse(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    size: int

    @computed_field
    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.size)

    @computed_field
    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @computed_field
    @property
    def has_prev(self) -> bool:
        return self.page > 1


def paginate(query: SQLAlchemyQuery, params: PageParams, schema: Type[BaseModel]) -> PageResponse:
    """Run ``query`` for one page and serialize each row with ``schema``."""
    rows = query.offset(params.offset).limit(params.size).all()
    return PageResponse(
        items=[schema.model_validate(row) for row in rows],
        total=query.count(),
        page=params.page,
        size=params.size
    )
