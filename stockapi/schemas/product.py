from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    category_id: Optional[int] = None
    supplier_id: Optional[int] = None
    unit: Optional[str] = Field(None, max_length=50)
    cost_price: Decimal = Field(Decimal("0"), ge=0)
    selling_price: Decimal = Field(Decimal("0"), ge=0)
    description: Optional[str] = None


class ProductCreate(ProductBase):
    stock_level: int = Field(0, ge=0, description="Opening stock")


class ProductUpdate(ProductBase):
    """Stock is owned by purchases/sales; use PUT /{id}/stock for corrections."""
    id: int


class ProductStockUpdate(BaseModel):
    stock_level: int = Field(..., ge=0)


class ProductResponse(ProductBase):
    id: int
    stock_level: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
