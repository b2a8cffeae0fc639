from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SupplierBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    contact: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=255)
    user_id: Optional[int] = None


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(SupplierBase):
    id: int


class SupplierResponse(SupplierBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SupplierWithCounts(SupplierResponse):
    product_count: int
    purchase_count: int
