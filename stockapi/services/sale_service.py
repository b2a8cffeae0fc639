from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from stockapi.common.exceptions import ConflictError, NotFoundError
from stockapi.logger_config import logger
from stockapi.models.invoice import Invoice
from stockapi.models.sale import Sale
from stockapi.models.user import User
from stockapi.schemas.sale import SaleCreate, SaleUpdate
from stockapi.services import stock_reconciler
from stockapi.services.stock_reconciler import SALE


def _base_query(db: Session):
    return db.query(Sale).options(joinedload(Sale.details))


def _ensure_user(db: Session, user_id: Optional[int]):
    if user_id is not None and not db.query(User.id).filter(User.id == user_id).first():
        raise NotFoundError(f"User with ID {user_id} not found")


def get_sale_by_id(db: Session, sale_id: int) -> Optional[Sale]:
    """Get sale by ID, details included."""
    return _base_query(db).filter(Sale.id == sale_id).first()


def get_all_sales(db: Session) -> List[Sale]:
    return _base_query(db).order_by(Sale.sale_date.desc()).all()


def create_sale(db: Session, data: SaleCreate) -> Sale:
    """
    Create a sale with its inline details. Each detail decrements stock with a
    conditional update; one insufficient product rejects the whole sale.
    """
    logger.info(f"Starting sale creation - User: {data.user_id}, Details: {len(data.details)}")
    try:
        _ensure_user(db, data.user_id)

        sale = Sale(
            user_id=data.user_id,
            sale_date=data.sale_date or datetime.now(),
            discount=data.discount,
            tax=data.tax,
            total_amount=0,
            net_amount=0,
        )
        db.add(sale)
        db.flush()

        for detail in data.details:
            stock_reconciler.stage_line_item(
                db,
                SALE,
                parent_id=sale.id,
                product_id=detail.product_id,
                quantity=detail.quantity,
                unit_amount=detail.unit_price,
            )

        stock_reconciler.recompute_parent_total(db, SALE, sale.id)

        db.commit()
        db.refresh(sale)
    except Exception as e:
        stock_reconciler.rollback_and_raise(db, "create sale", e)

    logger.info(f"Sale {sale.id} created - Total: {sale.total_amount}, Net: {sale.net_amount}")
    return sale


def update_sale(db: Session, sale_id: int, data: SaleUpdate) -> Sale:
    """Update header fields; total and net are recomputed from persisted details."""
    try:
        sale = db.query(Sale).filter(Sale.id == sale_id).first()
        if not sale:
            raise NotFoundError(f"Sale with ID {sale_id} not found")

        _ensure_user(db, data.user_id)

        sale.user_id = data.user_id
        if data.sale_date is not None:
            sale.sale_date = data.sale_date
        sale.discount = data.discount
        sale.tax = data.tax

        stock_reconciler.recompute_parent_total(db, SALE, sale_id)

        db.commit()
        db.refresh(sale)
    except Exception as e:
        stock_reconciler.rollback_and_raise(db, "update sale", e)

    logger.info(f"Sale {sale_id} updated - Net: {sale.net_amount}")
    return sale


def delete_sale(db: Session, sale_id: int) -> bool:
    """Give the sold quantities back to stock, then delete the sale and its details."""
    try:
        sale = db.query(Sale).filter(Sale.id == sale_id).first()
        if not sale:
            raise NotFoundError(f"Sale with ID {sale_id} not found")

        if db.query(Invoice.id).filter(Invoice.sale_id == sale_id).first():
            raise ConflictError("Cannot delete sale that has invoices")

        restored = stock_reconciler.reverse_parent_line_items(db, SALE, sale_id)

        db.delete(sale)
        db.commit()
    except Exception as e:
        stock_reconciler.rollback_and_raise(db, "delete sale", e)

    logger.info(f"Sale {sale_id} deleted - {restored} detail(s) restored to stock")
    return True


# ==================== Queries ====================

def get_top_sales(db: Session, n: int = 5) -> List[Sale]:
    return _base_query(db).order_by(Sale.sale_date.desc()).limit(n).all()


def filter_sales(
    db: Session,
    sale_id: Optional[int] = None,
    user_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    min_amount: Optional[Decimal] = None,
    max_amount: Optional[Decimal] = None,
) -> List[Sale]:
    query = _base_query(db)

    if sale_id is not None:
        query = query.filter(Sale.id == sale_id)
    if user_id is not None:
        query = query.filter(Sale.user_id == user_id)
    if start_date:
        query = query.filter(Sale.sale_date >= start_date)
        logger.debug(f"Filtering by start_date: {start_date}")
    if end_date:
        query = query.filter(Sale.sale_date <= end_date)
        logger.debug(f"Filtering by end_date: {end_date}")
    if min_amount is not None:
        query = query.filter(Sale.total_amount >= min_amount)
    if max_amount is not None:
        query = query.filter(Sale.total_amount <= max_amount)

    return query.order_by(Sale.sale_date.desc()).all()


def get_sales_by_user(db: Session, user_id: int) -> List[Sale]:
    return filter_sales(db, user_id=user_id)


def get_recent_sales(db: Session, days: int = 7) -> List[Sale]:
    return filter_sales(db, start_date=datetime.now() - timedelta(days=days))


def get_sales_by_date_range(db: Session, start_date: datetime, end_date: datetime) -> List[Sale]:
    return filter_sales(db, start_date=start_date, end_date=end_date)


def get_daily_sales(db: Session, day: Optional[date] = None) -> dict:
    target = day or date.today()
    start = datetime.combine(target, time.min)
    sales = (
        _base_query(db)
        .filter(Sale.sale_date >= start, Sale.sale_date < start + timedelta(days=1))
        .order_by(Sale.sale_date.desc())
        .all()
    )

    return {
        "date": target,
        "total_sales": len(sales),
        "total_amount": sum((stock_reconciler.to_money(s.total_amount) for s in sales), Decimal("0")),
        "total_net_amount": sum((stock_reconciler.to_money(s.net_amount) for s in sales), Decimal("0")),
        "sales": sales,
    }


def get_sale_summary(
    db: Session,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    user_id: Optional[int] = None,
) -> dict:
    query = db.query(
        func.count(Sale.id),
        func.coalesce(func.sum(Sale.total_amount), 0),
        func.coalesce(func.sum(Sale.net_amount), 0),
        func.coalesce(func.sum(Sale.discount), 0),
        func.coalesce(func.sum(Sale.tax), 0),
        func.coalesce(func.avg(Sale.total_amount), 0),
        func.coalesce(func.avg(Sale.net_amount), 0),
    )
    if start_date:
        query = query.filter(Sale.sale_date >= start_date)
    if end_date:
        query = query.filter(Sale.sale_date <= end_date)
    if user_id is not None:
        query = query.filter(Sale.user_id == user_id)

    count, total, net, discount, tax, average, average_net = query.one()
    money = stock_reconciler.to_money

    return {
        "total_sales": count,
        "total_amount": money(total),
        "total_net_amount": money(net),
        "total_discount": money(discount),
        "total_tax": money(tax),
        "average_amount": round(money(average), 2),
        "average_net_amount": round(money(average_net), 2),
        "start_date": start_date,
        "end_date": end_date,
        "user_id": user_id,
    }


def get_sale_options(db: Session) -> List[dict]:
    rows = db.query(Sale.id, Sale.sale_date, Sale.total_amount).order_by(Sale.id.desc()).all()
    return [
        {"id": row.id, "date": row.sale_date, "total_amount": row.total_amount}
        for row in rows
    ]
