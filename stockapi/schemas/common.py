from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class MessageResponse(BaseModel):
    message: str


class NamedOption(BaseModel):
    """Dropdown entry for entities picked by name (products, users, ...)."""
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class DocumentOption(BaseModel):
    """Dropdown entry for purchases and sales."""
    id: int
    date: datetime
    total_amount: Decimal


class PageBase(BaseModel):
    """Pagination envelope: {TotalRecords, PageSize, CurrentPage, TotalPages, ...}"""
    total_records: int = Field(..., alias="TotalRecords")
    page_size: int = Field(..., alias="PageSize")
    current_page: int = Field(..., alias="CurrentPage")
    total_pages: int = Field(..., alias="TotalPages")

    model_config = ConfigDict(populate_by_name=True)


def total_pages(total_records: int, page_size: int) -> int:
    return (total_records + page_size - 1) // page_size if page_size else 0
