from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PurchaseDetailBase(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    unit_cost: Decimal = Field(..., ge=0)


class PurchaseDetailInline(PurchaseDetailBase):
    """A line item sent together with a new purchase."""
    pass


class PurchaseDetailCreate(PurchaseDetailBase):
    purchase_id: int


class PurchaseDetailUpdate(PurchaseDetailCreate):
    id: int


class PurchaseDetailResponse(PurchaseDetailBase):
    id: int
    purchase_id: int
    sub_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class PurchaseDetailSummary(BaseModel):
    total_items: int
    total_quantity: int
    total_amount: Decimal
    average_unit_cost: Decimal
    purchase_id: Optional[int] = None
    product_id: Optional[int] = None
