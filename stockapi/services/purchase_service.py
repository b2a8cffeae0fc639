"""
Purchases: whole-document create/update/delete plus reporting queries.

A purchase created with inline details is written in one transaction: the
purchase row, every detail, the stock increase per detail and the total.
"""

from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from stockapi.common.exceptions import NotFoundError
from stockapi.logger_config import logger
from stockapi.models.purchase import Purchase
from stockapi.models.supplier import Supplier
from stockapi.models.user import User
from stockapi.schemas.purchase import PurchaseCreate, PurchaseUpdate
from stockapi.services import stock_reconciler
from stockapi.services.stock_reconciler import PURCHASE


def _base_query(db: Session):
    return db.query(Purchase).options(joinedload(Purchase.details))


def _ensure_references(db: Session, supplier_id: int, user_id: Optional[int]):
    if not db.query(Supplier.id).filter(Supplier.id == supplier_id).first():
        raise NotFoundError(f"Supplier with ID {supplier_id} not found")
    if user_id is not None and not db.query(User.id).filter(User.id == user_id).first():
        raise NotFoundError(f"User with ID {user_id} not found")


def get_purchase_by_id(db: Session, purchase_id: int) -> Optional[Purchase]:
    """Get purchase by ID, details included."""
    return _base_query(db).filter(Purchase.id == purchase_id).first()


def get_all_purchases(db: Session) -> List[Purchase]:
    return _base_query(db).order_by(Purchase.purchase_date.desc()).all()


def create_purchase(db: Session, data: PurchaseCreate) -> Purchase:
    logger.info(
        f"Starting purchase creation - Supplier: {data.supplier_id}, Details: {len(data.details)}"
    )
    try:
        _ensure_references(db, data.supplier_id, data.user_id)

        purchase = Purchase(
            supplier_id=data.supplier_id,
            user_id=data.user_id,
            purchase_date=data.purchase_date or datetime.now(),
            total_amount=0,
        )
        db.add(purchase)
        db.flush()

        for detail in data.details:
            stock_reconciler.stage_line_item(
                db,
                PURCHASE,
                parent_id=purchase.id,
                product_id=detail.product_id,
                quantity=detail.quantity,
                unit_amount=detail.unit_cost,
            )

        stock_reconciler.recompute_parent_total(db, PURCHASE, purchase.id)

        db.commit()
        db.refresh(purchase)
    except Exception as e:
        stock_reconciler.rollback_and_raise(db, "create purchase", e)

    logger.info(f"Purchase {purchase.id} created - Total: {purchase.total_amount}")
    return purchase


def update_purchase(db: Session, purchase_id: int, data: PurchaseUpdate) -> Purchase:
    """
    Update supplier, user and date. The total is recomputed from the
    persisted details; line items change through the purchase-details API.
    """
    try:
        purchase = db.query(Purchase).filter(Purchase.id == purchase_id).first()
        if not purchase:
            raise NotFoundError(f"Purchase with ID {purchase_id} not found")

        _ensure_references(db, data.supplier_id, data.user_id)

        purchase.supplier_id = data.supplier_id
        purchase.user_id = data.user_id
        if data.purchase_date is not None:
            purchase.purchase_date = data.purchase_date

        stock_reconciler.recompute_parent_total(db, PURCHASE, purchase_id)

        db.commit()
        db.refresh(purchase)
    except Exception as e:
        stock_reconciler.rollback_and_raise(db, "update purchase", e)

    logger.info(f"Purchase {purchase_id} updated")
    return purchase


def delete_purchase(db: Session, purchase_id: int) -> bool:
    """Reverse the stock of every detail (floored at 0), then delete the purchase and its details."""
    try:
        purchase = db.query(Purchase).filter(Purchase.id == purchase_id).first()
        if not purchase:
            raise NotFoundError(f"Purchase with ID {purchase_id} not found")

        reversed_count = stock_reconciler.reverse_parent_line_items(db, PURCHASE, purchase_id)

        db.delete(purchase)
        db.commit()
    except Exception as e:
        stock_reconciler.rollback_and_raise(db, "delete purchase", e)

    logger.info(f"Purchase {purchase_id} deleted - {reversed_count} detail(s) reversed")
    return True


# ==================== Queries ====================

def get_top_purchases(db: Session, n: int = 5) -> List[Purchase]:
    return _base_query(db).order_by(Purchase.purchase_date.desc()).limit(n).all()


def filter_purchases(
    db: Session,
    purchase_id: Optional[int] = None,
    supplier_id: Optional[int] = None,
    user_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> List[Purchase]:
    query = _base_query(db)

    if purchase_id is not None:
        query = query.filter(Purchase.id == purchase_id)
    if supplier_id is not None:
        query = query.filter(Purchase.supplier_id == supplier_id)
    if user_id is not None:
        query = query.filter(Purchase.user_id == user_id)
    if start_date:
        query = query.filter(Purchase.purchase_date >= start_date)
        logger.debug(f"Filtering by start_date: {start_date}")
    if end_date:
        query = query.filter(Purchase.purchase_date <= end_date)
        logger.debug(f"Filtering by end_date: {end_date}")

    return query.order_by(Purchase.purchase_date.desc()).all()


def get_purchases_by_supplier(db: Session, supplier_id: int) -> List[Purchase]:
    return filter_purchases(db, supplier_id=supplier_id)


def get_purchases_by_user(db: Session, user_id: int) -> List[Purchase]:
    return filter_purchases(db, user_id=user_id)


def get_recent_purchases(db: Session, days: int = 7) -> List[Purchase]:
    return filter_purchases(db, start_date=datetime.now() - timedelta(days=days))


def get_purchase_summary(
    db: Session,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> dict:
    query = db.query(
        func.count(Purchase.id),
        func.coalesce(func.sum(Purchase.total_amount), 0),
        func.coalesce(func.avg(Purchase.total_amount), 0),
    )
    if start_date:
        query = query.filter(Purchase.purchase_date >= start_date)
    if end_date:
        query = query.filter(Purchase.purchase_date <= end_date)

    count, total, average = query.one()

    return {
        "total_purchases": count,
        "total_amount": stock_reconciler.to_money(total),
        "average_amount": round(stock_reconciler.to_money(average), 2),
        "start_date": start_date,
        "end_date": end_date,
    }


def get_purchase_options(db: Session) -> List[dict]:
    rows = db.query(Purchase.id, Purchase.purchase_date, Purchase.total_amount).order_by(Purchase.id.desc()).all()
    return [
        {"id": row.id, "date": row.purchase_date, "total_amount": row.total_amount}
        for row in rows
    ]
