from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from stockapi.common.exceptions import InternalError, InvalidRequestError, NotFoundError, StockAppError
from stockapi.core.dependencies import get_current_user, get_db, require_admin
from stockapi.logger_config import logger
from stockapi.models.invoice import InvoiceStatus
from stockapi.models.user import User
from stockapi.schemas.invoice import (
    CustomerCreate,
    CustomerResponse,
    InvoiceCreate,
    InvoiceResponse,
    InvoiceSummary,
    InvoiceUpdate,
)
from stockapi.services import invoice_service

router = APIRouter()


@router.get("", response_model=List[InvoiceResponse])
def get_invoices(
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    customer_id: Optional[int] = Query(None),
    invoice_status: Optional[InvoiceStatus] = Query(None, alias="status"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return invoice_service.get_invoices(db, from_date, to_date, customer_id, invoice_status)


@router.get("/summary", response_model=InvoiceSummary)
def get_invoice_summary(
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        return invoice_service.get_invoice_summary(db, from_date, to_date)
    except Exception as e:
        logger.error(f"Error building invoice summary: {str(e)}")
        raise InternalError(f"Internal server error: {str(e)}")


# ==================== Customers ====================

@router.get("/customers", response_model=List[CustomerResponse])
def get_customers(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return invoice_service.get_all_customers(db)


@router.post("/customers", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(
    customer_data: CustomerCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return invoice_service.create_customer(db, customer_data)


# ==================== Invoices ====================

@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    invoice = invoice_service.get_invoice_by_id(db, invoice_id)
    if not invoice:
        raise NotFoundError("Invoice not found")
    return invoice


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
def create_invoice(
    invoice_data: InvoiceCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create an invoice. The number (INV-YYYYMMDD-XXXXXXXX), the due date and
    the discount/tax/total amounts are filled in when absent.
    """
    try:
        invoice = invoice_service.create_invoice(db, invoice_data)
        logger.info(f"Invoice {invoice.invoice_number} created by {current_user.username}")
        return invoice
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error creating invoice: {str(e)}")
        raise InternalError(f"Error creating invoice: {str(e)}")


@router.put("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_invoice(
    invoice_id: int,
    invoice_data: InvoiceUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if invoice_id != invoice_data.id:
        raise InvalidRequestError("ID mismatch")

    try:
        if not invoice_service.update_invoice(db, invoice_id, invoice_data):
            raise NotFoundError("Invoice not found")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error updating invoice: {str(e)}")
        raise InternalError(f"Error updating invoice: {str(e)}")


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(
    invoice_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    if not invoice_service.delete_invoice(db, invoice_id):
        raise NotFoundError("Invoice not found")
    logger.info(f"Invoice {invoice_id} deleted by {current_user.username}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
