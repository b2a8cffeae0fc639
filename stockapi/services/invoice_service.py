from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stockapi.common.exceptions import InvalidRequestError, NotFoundError
from stockapi.core.config import settings
from stockapi.logger_config import logger
from stockapi.models.invoice import Customer, Invoice, InvoiceStatus, generate_invoice_number
from stockapi.models.sale import Sale
from stockapi.schemas.invoice import CustomerCreate, InvoiceCreate, InvoiceUpdate

CENT = Decimal("0.01")


# ==================== Customers ====================

def get_all_customers(db: Session) -> List[Customer]:
    return db.query(Customer).order_by(Customer.name).all()


def create_customer(db: Session, data: CustomerCreate) -> Customer:
    customer = Customer(**data.model_dump())
    db.add(customer)

    try:
        db.commit()
        db.refresh(customer)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating customer: {str(e)}")
        raise InvalidRequestError("Failed to create customer.")

    logger.info(f"Customer {customer.id} created: {customer.name}")
    return customer


# ==================== Invoices ====================

def calculate_amounts(
    sub_total: Decimal,
    discount_percentage: Decimal,
    tax_percentage: Decimal,
    discount_amount: Optional[Decimal] = None,
    tax_amount: Optional[Decimal] = None,
    total_amount: Optional[Decimal] = None,
) -> tuple[Decimal, Decimal, Decimal]:
    """
    Fill in whichever amounts were not supplied.
    Tax applies to the discounted sub total.
    """
    if discount_amount is None:
        discount_amount = (sub_total * discount_percentage / 100).quantize(CENT, rounding=ROUND_HALF_UP)
    if tax_amount is None:
        tax_amount = ((sub_total - discount_amount) * tax_percentage / 100).quantize(CENT, rounding=ROUND_HALF_UP)
    if total_amount is None:
        total_amount = sub_total - discount_amount + tax_amount

    return discount_amount, tax_amount, total_amount


def _ensure_references(db: Session, customer_id: int, sale_id: Optional[int]):
    if not db.query(Customer.id).filter(Customer.id == customer_id).first():
        raise NotFoundError(f"Customer with ID {customer_id} not found")
    if sale_id is not None and not db.query(Sale.id).filter(Sale.id == sale_id).first():
        raise NotFoundError(f"Sale with ID {sale_id} not found")


def _apply(invoice: Invoice, data: InvoiceCreate):
    invoice_date = data.invoice_date or invoice.invoice_date or date.today()
    discount_amount, tax_amount, total_amount = calculate_amounts(
        data.sub_total,
        data.discount_percentage,
        data.tax_percentage,
        data.discount_amount,
        data.tax_amount,
        data.total_amount,
    )

    invoice.sale_id = data.sale_id
    invoice.customer_id = data.customer_id
    invoice.invoice_date = invoice_date
    invoice.due_date = data.due_date or invoice_date + timedelta(days=settings.INVOICE_DUE_DAYS)
    invoice.sub_total = data.sub_total
    invoice.discount_percentage = data.discount_percentage
    invoice.discount_amount = discount_amount
    invoice.tax_percentage = data.tax_percentage
    invoice.tax_amount = tax_amount
    invoice.total_amount = total_amount
    invoice.status = data.status
    invoice.notes = data.notes


def get_invoice_by_id(db: Session, invoice_id: int) -> Optional[Invoice]:
    """Get invoice by ID."""
    return db.query(Invoice).filter(Invoice.id == invoice_id).first()


def get_invoices(
    db: Session,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    customer_id: Optional[int] = None,
    status: Optional[InvoiceStatus] = None,
) -> List[Invoice]:
    query = db.query(Invoice)

    if from_date:
        query = query.filter(Invoice.invoice_date >= from_date)
    if to_date:
        query = query.filter(Invoice.invoice_date <= to_date)
    if customer_id is not None:
        query = query.filter(Invoice.customer_id == customer_id)
    if status:
        query = query.filter(Invoice.status == status)
        logger.debug(f"Filtering by status: {status}")

    return query.order_by(Invoice.invoice_date.desc(), Invoice.id.desc()).all()


def create_invoice(db: Session, data: InvoiceCreate) -> Invoice:
    """
    Create an invoice. Number, due date and derived amounts are filled in
    when absent.
    """
    _ensure_references(db, data.customer_id, data.sale_id)

    invoice = Invoice()
    _apply(invoice, data)

    invoice_number = data.invoice_number
    if not invoice_number:
        invoice_number = generate_invoice_number(invoice.invoice_date)
        attempts = 1
        while db.query(Invoice.id).filter(Invoice.invoice_number == invoice_number).first():
            if attempts >= 10:
                logger.error("Failed to generate unique invoice number after 10 attempts")
                raise InvalidRequestError("Failed to generate unique invoice number")
            invoice_number = generate_invoice_number(invoice.invoice_date)
            attempts += 1
    invoice.invoice_number = invoice_number

    db.add(invoice)
    try:
        db.commit()
        db.refresh(invoice)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating invoice: {str(e)}")
        raise InvalidRequestError("Failed to create invoice. Invoice number may already exist.")

    logger.info(
        f"Invoice {invoice.invoice_number} created - Customer: {invoice.customer_id}, "
        f"Total: {invoice.total_amount}, Due: {invoice.due_date}"
    )
    return invoice


def update_invoice(db: Session, invoice_id: int, data: InvoiceUpdate) -> Optional[Invoice]:
    invoice = get_invoice_by_id(db, invoice_id)
    if not invoice:
        return None

    _ensure_references(db, data.customer_id, data.sale_id)

    previous_status = invoice.status
    _apply(invoice, data)
    if data.invoice_number:
        invoice.invoice_number = data.invoice_number

    try:
        db.commit()
        db.refresh(invoice)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating invoice: {str(e)}")
        raise InvalidRequestError("Failed to update invoice.")

    if previous_status != invoice.status:
        logger.info(f"Invoice {invoice.invoice_number} status: {previous_status.value} → {invoice.status.value}")
    return invoice


def delete_invoice(db: Session, invoice_id: int) -> bool:
    invoice = get_invoice_by_id(db, invoice_id)
    if not invoice:
        return False

    db.delete(invoice)
    try:
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting invoice: {str(e)}")
        raise InvalidRequestError("Failed to delete invoice.")


def get_invoice_summary(
    db: Session,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> dict:
    """Counts and amounts per status."""

    def amount_for(status: InvoiceStatus):
        return func.coalesce(
            func.sum(case((Invoice.status == status, Invoice.total_amount), else_=0)), 0
        )

    def count_for(status: InvoiceStatus):
        return func.coalesce(func.sum(case((Invoice.status == status, 1), else_=0)), 0)

    query = db.query(
        func.count(Invoice.id),
        func.coalesce(func.sum(Invoice.total_amount), 0),
        count_for(InvoiceStatus.Pending),
        count_for(InvoiceStatus.Paid),
        count_for(InvoiceStatus.Overdue),
        amount_for(InvoiceStatus.Pending),
        amount_for(InvoiceStatus.Paid),
        amount_for(InvoiceStatus.Overdue),
    )
    if from_date:
        query = query.filter(Invoice.invoice_date >= from_date)
    if to_date:
        query = query.filter(Invoice.invoice_date <= to_date)

    (total, total_amount, pending, paid, overdue,
     pending_amount, paid_amount, overdue_amount) = query.one()

    def money(value) -> Decimal:
        return Decimal(str(value or 0)).quantize(CENT)

    return {
        "total_invoices": total,
        "total_amount": money(total_amount),
        "pending_invoices": int(pending),
        "paid_invoices": int(paid),
        "overdue_invoices": int(overdue),
        "pending_amount": money(pending_amount),
        "paid_amount": money(paid_amount),
        "overdue_amount": money(overdue_amount),
    }
