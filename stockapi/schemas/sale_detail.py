from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SaleDetailBase(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)


class SaleDetailInline(SaleDetailBase):
    """A line item sent together with a new sale."""
    pass


class SaleDetailCreate(SaleDetailBase):
    sale_id: int


class SaleDetailUpdate(SaleDetailCreate):
    id: int


class SaleDetailResponse(SaleDetailBase):
    id: int
    sale_id: int
    sub_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class SaleDetailSummary(BaseModel):
    total_items: int
    total_quantity: int
    total_amount: Decimal
    average_unit_price: Decimal
    sale_id: Optional[int] = None
    product_id: Optional[int] = None
