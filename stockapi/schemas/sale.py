from datetime import date as date_type, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from stockapi.schemas.sale_detail import SaleDetailInline, SaleDetailResponse


class SaleBase(BaseModel):
    user_id: Optional[int] = None
    sale_date: Optional[datetime] = None
    discount: Decimal = Field(Decimal("0"), ge=0)
    tax: Decimal = Field(Decimal("0"), ge=0)


class SaleCreate(SaleBase):
    details: List[SaleDetailInline] = Field(default_factory=list)


class SaleUpdate(SaleBase):
    id: int


class SaleResponse(SaleBase):
    id: int
    sale_date: datetime
    total_amount: Decimal
    net_amount: Decimal
    details: List[SaleDetailResponse] = []

    model_config = ConfigDict(from_attributes=True)


class DailySales(BaseModel):
    date: date_type
    total_sales: int
    total_amount: Decimal
    total_net_amount: Decimal
    sales: List[SaleResponse]


class SaleSummary(BaseModel):
    total_sales: int
    total_amount: Decimal
    total_net_amount: Decimal
    total_discount: Decimal
    total_tax: Decimal
    average_amount: Decimal
    average_net_amount: Decimal
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    user_id: Optional[int] = None
