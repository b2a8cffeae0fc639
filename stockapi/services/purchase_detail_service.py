from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from stockapi.logger_config import logger
from stockapi.models.purchase import PurchaseDetail
from stockapi.schemas.purchase_detail import PurchaseDetailCreate, PurchaseDetailUpdate
from stockapi.services import stock_reconciler
from stockapi.services.stock_reconciler import PURCHASE


def get_purchase_detail_by_id(db: Session, purchase_detail_id: int) -> Optional[PurchaseDetail]:
    """Get purchase detail by ID."""
    return db.query(PurchaseDetail).filter(PurchaseDetail.id == purchase_detail_id).first()


def get_all_purchase_details(db: Session) -> List[PurchaseDetail]:
    """All purchase details, newest first."""
    return db.query(PurchaseDetail).order_by(PurchaseDetail.id.desc()).all()


def create_purchase_detail(db: Session, data: PurchaseDetailCreate) -> PurchaseDetail:
    return stock_reconciler.insert_line_item(
        db,
        PURCHASE,
        parent_id=data.purchase_id,
        product_id=data.product_id,
        quantity=data.quantity,
        unit_amount=data.unit_cost,
    )


def update_purchase_detail(db: Session, purchase_detail_id: int, data: PurchaseDetailUpdate) -> PurchaseDetail:
    return stock_reconciler.update_line_item(
        db,
        PURCHASE,
        line_item_id=purchase_detail_id,
        parent_id=data.purchase_id,
        product_id=data.product_id,
        quantity=data.quantity,
        unit_amount=data.unit_cost,
    )


def delete_purchase_detail(db: Session, purchase_detail_id: int) -> bool:
    return stock_reconciler.delete_line_item(db, PURCHASE, purchase_detail_id)


# ==================== Queries ====================

def get_top_purchase_details(db: Session, n: int = 5) -> List[PurchaseDetail]:
    return db.query(PurchaseDetail).order_by(PurchaseDetail.id.desc()).limit(n).all()


def filter_purchase_details(
    db: Session,
    purchase_detail_id: Optional[int] = None,
    purchase_id: Optional[int] = None,
    product_id: Optional[int] = None,
    min_quantity: Optional[int] = None,
    max_quantity: Optional[int] = None,
) -> List[PurchaseDetail]:
    query = db.query(PurchaseDetail)

    if purchase_detail_id is not None:
        query = query.filter(PurchaseDetail.id == purchase_detail_id)
    if purchase_id is not None:
        query = query.filter(PurchaseDetail.purchase_id == purchase_id)
    if product_id is not None:
        query = query.filter(PurchaseDetail.product_id == product_id)
    if min_quantity is not None:
        query = query.filter(PurchaseDetail.quantity >= min_quantity)
        logger.debug(f"Filtering by min_quantity: {min_quantity}")
    if max_quantity is not None:
        query = query.filter(PurchaseDetail.quantity <= max_quantity)
        logger.debug(f"Filtering by max_quantity: {max_quantity}")

    return query.order_by(PurchaseDetail.id.desc()).all()


def get_details_by_purchase(db: Session, purchase_id: int) -> List[PurchaseDetail]:
    return (
        db.query(PurchaseDetail)
        .filter(PurchaseDetail.purchase_id == purchase_id)
        .order_by(PurchaseDetail.id)
        .all()
    )


def get_details_by_product(db: Session, product_id: int) -> List[PurchaseDetail]:
    return (
        db.query(PurchaseDetail)
        .filter(PurchaseDetail.product_id == product_id)
        .order_by(PurchaseDetail.id.desc())
        .all()
    )


def get_purchase_detail_summary(
    db: Session,
    purchase_id: Optional[int] = None,
    product_id: Optional[int] = None,
) -> dict:
    query = db.query(
        func.count(PurchaseDetail.id),
        func.coalesce(func.sum(PurchaseDetail.quantity), 0),
        func.coalesce(func.sum(PurchaseDetail.sub_total), 0),
        func.coalesce(func.avg(PurchaseDetail.unit_cost), 0),
    )
    if purchase_id is not None:
        query = query.filter(PurchaseDetail.purchase_id == purchase_id)
    if product_id is not None:
        query = query.filter(PurchaseDetail.product_id == product_id)

    total_items, total_quantity, total_amount, average_unit_cost = query.one()

    return {
        "total_items": total_items,
        "total_quantity": int(total_quantity),
        "total_amount": stock_reconciler.to_money(total_amount),
        "average_unit_cost": round(stock_reconciler.to_money(average_unit_cost), 2),
        "purchase_id": purchase_id,
        "product_id": product_id,
    }
