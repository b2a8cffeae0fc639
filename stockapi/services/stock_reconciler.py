"""
Stock ledger reconciliation.

Keeps Product.stock_level in step with purchase (+) and sale (-) line items
and keeps every parent's total_amount equal to the sum of its line item
subtotals. Purchase and sale details share one implementation; a LineItemKind
describes which tables are involved and which direction stock moves.

Every public mutation runs inside a single transaction:
line item write -> parent total recompute -> stock adjustment -> commit.
Any failure rolls the whole unit back, so a rejected sale line item is never
persisted and stock is never partially adjusted.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, Iterable, Optional

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from stockapi.common.exceptions import (
    InsufficientStockError,
    InternalError,
    InvalidRequestError,
    NotFoundError,
    StockAppError,
)
from stockapi.logger_config import logger
from stockapi.models.product import Product
from stockapi.models.purchase import Purchase, PurchaseDetail
from stockapi.models.sale import Sale, SaleDetail


CENT = Decimal("0.01")


# ==================== Stock primitives ====================

def _current_stock(db: Session, product_id: int) -> int:
    return db.query(Product.stock_level).filter(Product.id == product_id).scalar() or 0


def lock_products(db: Session, product_ids: Iterable[int]) -> Dict[int, Product]:
    """
    Load and row-lock the given products (SELECT ... FOR UPDATE).
    Ids are locked in ascending order so concurrent reconcilers cannot deadlock.
    Raises NotFoundError when any id is missing.
    """
    ids = sorted({pid for pid in product_ids if pid is not None})
    if not ids:
        return {}

    products = (
        db.query(Product)
        .filter(Product.id.in_(ids))
        .order_by(Product.id)
        .with_for_update()
        .all()
    )
    found = {p.id: p for p in products}

    for pid in ids:
        if pid not in found:
            raise NotFoundError(f"Product with ID {pid} not found")

    return found


def increase_stock(db: Session, product_id: int, quantity: int) -> int:
    """stock += quantity. Returns the new stock level."""
    db.query(Product).filter(Product.id == product_id).update(
        {Product.stock_level: Product.stock_level + quantity},
        synchronize_session=False,
    )
    after = _current_stock(db, product_id)
    logger.debug(f"Product {product_id} stock +{quantity}: {after - quantity} → {after}")
    return after


def decrease_stock_floored(db: Session, product_id: int, quantity: int) -> int:
    """stock = max(0, stock - quantity), in a single statement."""
    # the row is locked by the caller, so the pre-update read is stable
    before = _current_stock(db, product_id)
    db.query(Product).filter(Product.id == product_id).update(
        {
            Product.stock_level: case(
                (Product.stock_level >= quantity, Product.stock_level - quantity),
                else_=0,
            )
        },
        synchronize_session=False,
    )
    after = max(0, before - quantity)
    if before < quantity:
        logger.warning(
            f"Product {product_id} stock floored at 0: {before} - {quantity} → {after}"
        )
    else:
        logger.debug(f"Product {product_id} stock -{quantity}: {before} → {after}")
    return after


def decrease_stock_checked(db: Session, product_id: int, quantity: int) -> int:
    """
    stock -= quantity, only when stock >= quantity.

    The check and the write are one conditional UPDATE; zero affected rows
    means the product does not hold enough stock.
    """
    updated = db.query(Product).filter(
        Product.id == product_id,
        Product.stock_level >= quantity,
    ).update(
        {Product.stock_level: Product.stock_level - quantity},
        synchronize_session=False,
    )

    if updated == 0:
        row = db.query(Product.name, Product.stock_level).filter(Product.id == product_id).first()
        if row is None:
            raise NotFoundError(f"Product with ID {product_id} not found")
        logger.warning(
            f"Insufficient stock for product {product_id} ({row.name}): "
            f"available={row.stock_level}, required={quantity}"
        )
        raise InsufficientStockError(row.name, row.stock_level, quantity)

    after = _current_stock(db, product_id)
    logger.debug(f"Product {product_id} stock -{quantity}: {after + quantity} → {after}")
    return after


# ==================== Line item kinds ====================

def compute_net_amount(total_amount, discount, tax) -> Decimal:
    """net = total - discount + tax"""
    return to_money(total_amount) - to_money(discount) + to_money(tax)


def to_money(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_cents(value) -> Decimal:
    return to_money(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _refresh_sale_net_amount(sale: Sale):
    sale.net_amount = compute_net_amount(sale.total_amount, sale.discount, sale.tax)


@dataclass(frozen=True)
class LineItemKind:
    """Describes one family of line items (purchase details or sale details)."""

    name: str
    model: type
    parent_model: type
    parent_fk: str
    amount_attr: str
    # stock effect of an active line item, and its reversal
    apply_stock: Callable[[Session, int, int], int]
    reverse_stock: Callable[[Session, int, int], int]
    after_total: Optional[Callable] = None

    @property
    def parent_column(self):
        return getattr(self.model, self.parent_fk)

    @property
    def label(self) -> str:
        return f"{self.name.capitalize()} detail"

    @property
    def parent_label(self) -> str:
        return self.name.capitalize()


PURCHASE = LineItemKind(
    name="purchase",
    model=PurchaseDetail,
    parent_model=Purchase,
    parent_fk="purchase_id",
    amount_attr="unit_cost",
    apply_stock=increase_stock,
    reverse_stock=decrease_stock_floored,
)

SALE = LineItemKind(
    name="sale",
    model=SaleDetail,
    parent_model=Sale,
    parent_fk="sale_id",
    amount_attr="unit_price",
    apply_stock=decrease_stock_checked,
    reverse_stock=increase_stock,
    after_total=_refresh_sale_net_amount,
)


# ==================== Parent totals ====================

def recompute_parent_total(db: Session, kind: LineItemKind, parent_id: int):
    """
    parent.total_amount = sum of the persisted sibling subtotals.
    Pending line item changes must be flushed first. Does not commit.
    """
    parent = db.query(kind.parent_model).filter(kind.parent_model.id == parent_id).first()
    if not parent:
        raise NotFoundError(f"{kind.parent_label} with ID {parent_id} not found")

    total = (
        db.query(func.coalesce(func.sum(kind.model.sub_total), 0))
        .filter(kind.parent_column == parent_id)
        .scalar()
    )
    previous = parent.total_amount
    parent.total_amount = to_money(total)
    if kind.after_total:
        kind.after_total(parent)

    db.flush()
    logger.debug(f"{kind.parent_label} {parent_id} total: {previous} → {parent.total_amount}")
    return parent


# ==================== Staged operations (caller commits) ====================

def _validate_amounts(quantity: int, unit_amount):
    if quantity is None or quantity <= 0:
        raise InvalidRequestError("Quantity must be greater than 0")
    if unit_amount is None or to_money(unit_amount) < 0:
        raise InvalidRequestError("Unit amount must not be negative")


def _ensure_parent(db: Session, kind: LineItemKind, parent_id: int):
    exists = db.query(kind.parent_model.id).filter(kind.parent_model.id == parent_id).first()
    if not exists:
        raise NotFoundError(f"{kind.parent_label} with ID {parent_id} not found")


def stage_line_item(
    db: Session,
    kind: LineItemKind,
    parent_id: int,
    product_id: int,
    quantity: int,
    unit_amount,
):
    """
    Write one line item and apply its stock effect without committing.
    Used for inline details on purchase/sale creation; the caller recomputes
    the parent total and commits once for the whole parent.
    """
    _validate_amounts(quantity, unit_amount)
    lock_products(db, [product_id])

    item = kind.model(**{
        kind.parent_fk: parent_id,
        "product_id": product_id,
        "quantity": quantity,
        kind.amount_attr: to_cents(unit_amount),
        "sub_total": quantity * to_cents(unit_amount),
    })
    db.add(item)
    db.flush()

    kind.apply_stock(db, product_id, quantity)
    return item


def reverse_parent_line_items(db: Session, kind: LineItemKind, parent_id: int) -> int:
    """
    Undo the stock effect of every line item of a parent, without committing.
    Returns the number of line items reversed.
    """
    items = db.query(kind.model).filter(kind.parent_column == parent_id).all()
    lock_products(db, [item.product_id for item in items])

    for item in items:
        kind.reverse_stock(db, item.product_id, item.quantity)

    return len(items)


# ==================== Line item mutations ====================

def rollback_and_raise(db: Session, action: str, e: Exception):
    db.rollback()
    if isinstance(e, StockAppError):
        logger.warning(f"{action} rejected, rolled back: {e.message}")
        raise e
    if isinstance(e, IntegrityError):
        logger.error(f"Integrity error during {action}: {str(e)}")
        raise InternalError(f"Failed to {action} due to database constraint: {str(e.orig)}")
    if isinstance(e, SQLAlchemyError):
        logger.error(f"Database error during {action}: {str(e)}", exc_info=True)
        raise InternalError(f"Failed to {action}: {str(e)}")
    raise e


def insert_line_item(
    db: Session,
    kind: LineItemKind,
    parent_id: int,
    product_id: int,
    quantity: int,
    unit_amount,
):
    """Insert a line item, recompute its parent total and apply the stock effect."""
    action = f"insert {kind.name} detail"
    try:
        _ensure_parent(db, kind, parent_id)
        item = stage_line_item(db, kind, parent_id, product_id, quantity, unit_amount)
        recompute_parent_total(db, kind, parent_id)

        db.commit()
        db.refresh(item)
    except Exception as e:
        rollback_and_raise(db, action, e)

    logger.info(
        f"{kind.label} {item.id} created - {kind.parent_label}: {parent_id}, "
        f"Product: {product_id}, Qty: {quantity}, SubTotal: {item.sub_total}"
    )
    return item


def update_line_item(
    db: Session,
    kind: LineItemKind,
    line_item_id: int,
    parent_id: int,
    product_id: int,
    quantity: int,
    unit_amount,
):
    """
    Update a line item and reconcile stock.

    Moving to another product reverses the old effect on the old product and
    applies the new one; on the same product only the quantity delta is applied.
    """
    action = f"update {kind.name} detail"
    try:
        _validate_amounts(quantity, unit_amount)

        item = (
            db.query(kind.model)
            .filter(kind.model.id == line_item_id)
            .with_for_update()
            .first()
        )
        if not item:
            raise NotFoundError(f"{kind.label} with ID {line_item_id} not found")

        _ensure_parent(db, kind, parent_id)

        old_parent_id = getattr(item, kind.parent_fk)
        old_product_id = item.product_id
        old_quantity = item.quantity

        lock_products(db, [old_product_id, product_id])

        setattr(item, kind.parent_fk, parent_id)
        item.product_id = product_id
        item.quantity = quantity
        setattr(item, kind.amount_attr, to_cents(unit_amount))
        item.sub_total = quantity * to_cents(unit_amount)
        db.flush()

        recompute_parent_total(db, kind, parent_id)
        if old_parent_id != parent_id:
            recompute_parent_total(db, kind, old_parent_id)

        if old_product_id != product_id:
            kind.reverse_stock(db, old_product_id, old_quantity)
            kind.apply_stock(db, product_id, quantity)
        else:
            delta = quantity - old_quantity
            if delta > 0:
                kind.apply_stock(db, product_id, delta)
            elif delta < 0:
                kind.reverse_stock(db, product_id, -delta)

        db.commit()
        db.refresh(item)
    except Exception as e:
        rollback_and_raise(db, action, e)

    logger.info(
        f"{kind.label} {line_item_id} updated - Product: {old_product_id} → {product_id}, "
        f"Qty: {old_quantity} → {quantity}"
    )
    return item


def delete_line_item(db: Session, kind: LineItemKind, line_item_id: int) -> bool:
    """Delete a line item, recompute its parent total and reverse its stock effect."""
    action = f"delete {kind.name} detail"
    try:
        item = (
            db.query(kind.model)
            .filter(kind.model.id == line_item_id)
            .with_for_update()
            .first()
        )
        if not item:
            raise NotFoundError(f"{kind.label} with ID {line_item_id} not found")

        parent_id = getattr(item, kind.parent_fk)
        product_id = item.product_id
        quantity = item.quantity

        lock_products(db, [product_id])

        db.delete(item)
        db.flush()

        recompute_parent_total(db, kind, parent_id)
        kind.reverse_stock(db, product_id, quantity)

        db.commit()
    except Exception as e:
        rollback_and_raise(db, action, e)

    logger.info(
        f"{kind.label} {line_item_id} deleted - {kind.parent_label}: {parent_id}, "
        f"Product: {product_id}, Qty: {quantity}"
    )
    return True
