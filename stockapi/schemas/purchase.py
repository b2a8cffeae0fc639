from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from stockapi.schemas.purchase_detail import PurchaseDetailInline, PurchaseDetailResponse


class PurchaseBase(BaseModel):
    supplier_id: int
    user_id: Optional[int] = None
    purchase_date: Optional[datetime] = None


class PurchaseCreate(PurchaseBase):
    details: List[PurchaseDetailInline] = Field(default_factory=list)


class PurchaseUpdate(PurchaseBase):
    id: int


class PurchaseResponse(PurchaseBase):
    id: int
    purchase_date: datetime
    total_amount: Decimal
    details: List[PurchaseDetailResponse] = []

    model_config = ConfigDict(from_attributes=True)


class PurchaseSummary(BaseModel):
    total_purchases: int
    total_amount: Decimal
    average_amount: Decimal
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
