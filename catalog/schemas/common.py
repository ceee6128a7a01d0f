# catalog/schemas/common.py
from math import ceil
from pydantic import BaseModel


class Pagination(BaseModel):
    """Pagination block attached to list responses"""
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        return cls(total=total, page=page, limit=limit, total_pages=ceil(total / limit) if limit else 0)
