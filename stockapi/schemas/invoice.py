from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from stockapi.models.invoice import InvoiceStatus


# ==================== Customers ====================

class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=255)


class CustomerResponse(CustomerCreate):
    id: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ==================== Invoices ====================

class InvoiceBase(BaseModel):
    """
    Amounts left empty are derived from sub_total:
    discount = sub_total * discount% / 100,
    tax = (sub_total - discount) * tax% / 100,
    total = sub_total - discount + tax.
    """
    invoice_number: Optional[str] = Field(None, max_length=30)
    sale_id: Optional[int] = None
    customer_id: int
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    sub_total: Decimal = Field(Decimal("0"), ge=0)
    discount_percentage: Decimal = Field(Decimal("0"), ge=0, le=100)
    discount_amount: Optional[Decimal] = Field(None, ge=0)
    tax_percentage: Decimal = Field(Decimal("0"), ge=0, le=100)
    tax_amount: Optional[Decimal] = Field(None, ge=0)
    total_amount: Optional[Decimal] = None
    status: InvoiceStatus = InvoiceStatus.Pending
    notes: Optional[str] = None


class InvoiceCreate(InvoiceBase):
    pass


class InvoiceUpdate(InvoiceBase):
    id: int


class InvoiceResponse(InvoiceBase):
    id: int
    invoice_number: str
    invoice_date: date
    due_date: date
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class InvoiceSummary(BaseModel):
    total_invoices: int
    total_amount: Decimal
    pending_invoices: int
    paid_invoices: int
    overdue_invoices: int
    pending_amount: Decimal
    paid_amount: Decimal
    overdue_amount: Decimal
