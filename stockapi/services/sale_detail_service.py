from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from stockapi.logger_config import logger
from stockapi.models.sale import SaleDetail
from stockapi.schemas.sale_detail import SaleDetailCreate, SaleDetailUpdate
from stockapi.services import stock_reconciler
from stockapi.services.stock_reconciler import SALE


def get_sale_detail_by_id(db: Session, sale_detail_id: int) -> Optional[SaleDetail]:
    """Get sale detail by ID."""
    return db.query(SaleDetail).filter(SaleDetail.id == sale_detail_id).first()


def get_all_sale_details(db: Session) -> List[SaleDetail]:
    """All sale details, newest first."""
    return db.query(SaleDetail).order_by(SaleDetail.id.desc()).all()


def create_sale_detail(db: Session, data: SaleDetailCreate) -> SaleDetail:
    """Raises InsufficientStockError (nothing persisted) when the product cannot cover the quantity."""
    return stock_reconciler.insert_line_item(
        db,
        SALE,
        parent_id=data.sale_id,
        product_id=data.product_id,
        quantity=data.quantity,
        unit_amount=data.unit_price,
    )


def update_sale_detail(db: Session, sale_detail_id: int, data: SaleDetailUpdate) -> SaleDetail:
    """Only an increase in quantity, or a switch to another product, is checked against stock."""
    return stock_reconciler.update_line_item(
        db,
        SALE,
        line_item_id=sale_detail_id,
        parent_id=data.sale_id,
        product_id=data.product_id,
        quantity=data.quantity,
        unit_amount=data.unit_price,
    )


def delete_sale_detail(db: Session, sale_detail_id: int) -> bool:
    return stock_reconciler.delete_line_item(db, SALE, sale_detail_id)


# ==================== Queries ====================

def get_top_sale_details(db: Session, n: int = 5) -> List[SaleDetail]:
    return db.query(SaleDetail).order_by(SaleDetail.id.desc()).limit(n).all()


def filter_sale_details(
    db: Session,
    sale_detail_id: Optional[int] = None,
    sale_id: Optional[int] = None,
    product_id: Optional[int] = None,
    min_quantity: Optional[int] = None,
    max_quantity: Optional[int] = None,
) -> List[SaleDetail]:
    query = db.query(SaleDetail)

    if sale_detail_id is not None:
        query = query.filter(SaleDetail.id == sale_detail_id)
    if sale_id is not None:
        query = query.filter(SaleDetail.sale_id == sale_id)
    if product_id is not None:
        query = query.filter(SaleDetail.product_id == product_id)
    if min_quantity is not None:
        query = query.filter(SaleDetail.quantity >= min_quantity)
        logger.debug(f"Filtering by min_quantity: {min_quantity}")
    if max_quantity is not None:
        query = query.filter(SaleDetail.quantity <= max_quantity)
        logger.debug(f"Filtering by max_quantity: {max_quantity}")

    return query.order_by(SaleDetail.id.desc()).all()


def get_details_by_sale(db: Session, sale_id: int) -> List[SaleDetail]:
    return (
        db.query(SaleDetail)
        .filter(SaleDetail.sale_id == sale_id)
        .order_by(SaleDetail.id)
        .all()
    )


def get_details_by_product(db: Session, product_id: int) -> List[SaleDetail]:
    return (
        db.query(SaleDetail)
        .filter(SaleDetail.product_id == product_id)
        .order_by(SaleDetail.id.desc())
        .all()
    )


def get_sale_detail_summary(
    db: Session,
    sale_id: Optional[int] = None,
    product_id: Optional[int] = None,
) -> dict:
    query = db.query(
        func.count(SaleDetail.id),
        func.coalesce(func.sum(SaleDetail.quantity), 0),
        func.coalesce(func.sum(SaleDetail.sub_total), 0),
        func.coalesce(func.avg(SaleDetail.unit_price), 0),
    )
    if sale_id is not None:
        query = query.filter(SaleDetail.sale_id == sale_id)
    if product_id is not None:
        query = query.filter(SaleDetail.product_id == product_id)

    total_items, total_quantity, total_amount, average_unit_price = query.one()

    return {
        "total_items": total_items,
        "total_quantity": int(total_quantity),
        "total_amount": stock_reconciler.to_money(total_amount),
        "average_unit_price": round(stock_reconciler.to_money(average_unit_price), 2),
        "sale_id": sale_id,
        "product_id": product_id,
    }
