from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from stockapi.schemas.common import PageBase


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    user_id: Optional[int] = None


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(CategoryBase):
    id: int


class CategoryResponse(CategoryBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CategoryWithProductCount(BaseModel):
    id: int
    name: str
    product_count: int


class CategoryPage(PageBase):
    categories: List[CategoryResponse] = Field(..., alias="Categories")
