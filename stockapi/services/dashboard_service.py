from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from stockapi.common.exceptions import InvalidRequestError
from stockapi.core.config import settings
from stockapi.logger_config import logger
from stockapi.models.category import Category
from stockapi.models.product import Product
from stockapi.models.purchase import Purchase
from stockapi.models.sale import Sale
from stockapi.models.supplier import Supplier
from stockapi.models.user import User

DAY_FORMAT = "%Y-%m-%d"


class DashboardService:
    """
    Read-only aggregation for the dashboard: counts, totals, per-day
    activity with zero-filled days and top-N lists.
    """

    def __init__(self, db: Session):
        self.db = db

    # ==================== Helpers ====================

    @staticmethod
    def zero_filled_days(start: date, end: date) -> Dict[str, int]:
        days = {}
        cursor = start
        while cursor <= end:
            days[cursor.strftime(DAY_FORMAT)] = 0
            cursor += timedelta(days=1)
        return days

    @staticmethod
    def count_per_day(timestamps: Iterable[Optional[datetime]], start: date, end: date) -> Dict[str, int]:
        """Bucket timestamps by calendar day; every day of the range is present."""
        days = DashboardService.zero_filled_days(start, end)
        for ts in timestamps:
            if ts is None:
                continue
            key = ts.strftime(DAY_FORMAT)
            if key in days:
                days[key] += 1
        return days

    def _sum(self, column, *criteria) -> Decimal:
        value = self.db.query(func.coalesce(func.sum(column), 0)).filter(*criteria).scalar()
        return Decimal(str(value or 0))

    # ==================== Summary ====================

    def get_summary(self, start: Optional[date] = None, end: Optional[date] = None) -> dict:
        end_date = end or date.today()
        start_date = start or end_date - timedelta(days=29)
        if end_date < start_date:
            raise InvalidRequestError("End date must be greater than or equal to start date.")

        range_start = datetime.combine(start_date, time.min)
        range_end = datetime.combine(end_date + timedelta(days=1), time.min)
        logger.debug(f"Dashboard summary for {start_date} → {end_date}")

        db = self.db
        total_purchase_amount = self._sum(Purchase.total_amount)
        total_sale_amount = self._sum(Sale.total_amount)

        products_by_category = {
            (name or "Unknown"): count
            for name, count in (
                db.query(Category.name, func.count(Product.id))
                .select_from(Product)
                .outerjoin(Category, Product.category_id == Category.id)
                .group_by(Category.name)
                .all()
            )
        }

        product_days = db.query(Product.created_at).filter(
            Product.created_at >= range_start, Product.created_at < range_end
        )
        sale_days = db.query(Sale.sale_date).filter(
            Sale.sale_date >= range_start, Sale.sale_date < range_end
        )
        purchase_days = db.query(Purchase.purchase_date).filter(
            Purchase.purchase_date >= range_start, Purchase.purchase_date < range_end
        )

        return {
            "total_products": db.query(func.count(Product.id)).scalar(),
            "total_categories": db.query(func.count(Category.id)).scalar(),
            "total_suppliers": db.query(func.count(Supplier.id)).scalar(),
            "total_users": db.query(func.count(User.id)).scalar(),
            "total_purchases": db.query(func.count(Purchase.id)).scalar(),
            "total_sales": db.query(func.count(Sale.id)).scalar(),
            "total_purchase_amount": total_purchase_amount,
            "total_sale_amount": total_sale_amount,
            "net_profit": total_sale_amount - total_purchase_amount,
            "products_by_category": products_by_category,
            "products_per_day": self.count_per_day((r[0] for r in product_days), start_date, end_date),
            "sales_per_day": self.count_per_day((r[0] for r in sale_days), start_date, end_date),
            "purchases_per_day": self.count_per_day((r[0] for r in purchase_days), start_date, end_date),
            "top_products": self.get_top_products(),
            "top_suppliers": self.get_top_suppliers(),
            "recent_activities": self.get_recent_activities(),
        }

    def get_top_products(self, n: int = 10) -> List[dict]:
        rows = (
            self.db.query(Product, Category.name)
            .outerjoin(Category, Product.category_id == Category.id)
            .order_by(Product.stock_level.desc(), Product.id)
            .limit(n)
            .all()
        )
        return [
            {
                "product_id": product.id,
                "product_name": product.name or "Unknown",
                "stock_quantity": product.stock_level or 0,
                "price": product.selling_price or Decimal("0"),
                "category_name": category_name or "Unknown",
            }
            for product, category_name in rows
        ]

    def get_top_suppliers(self, n: int = 10) -> List[dict]:
        total = func.coalesce(func.sum(Purchase.total_amount), 0).label("total_amount")
        rows = (
            self.db.query(
                Purchase.supplier_id,
                Supplier.name,
                func.count(Purchase.id).label("purchase_count"),
                total,
            )
            .outerjoin(Supplier, Purchase.supplier_id == Supplier.id)
            .group_by(Purchase.supplier_id, Supplier.name)
            .order_by(total.desc())
            .limit(n)
            .all()
        )
        return [
            {
                "supplier_id": row.supplier_id,
                "supplier_name": row.name or "Unknown",
                "purchase_count": row.purchase_count,
                "total_amount": Decimal(str(row.total_amount or 0)),
            }
            for row in rows
        ]

    def get_recent_activities(self, n: int = 10) -> List[dict]:
        """Latest 5 purchases, sales and products merged, newest first."""
        activities = []

        purchases = (
            self.db.query(Purchase, Supplier.name)
            .outerjoin(Supplier, Purchase.supplier_id == Supplier.id)
            .order_by(Purchase.purchase_date.desc())
            .limit(5)
            .all()
        )
        for purchase, supplier_name in purchases:
            activities.append({
                "type": "Purchase",
                "description": f"Purchase from {supplier_name or 'Unknown Supplier'}",
                "date": purchase.purchase_date,
                "amount": purchase.total_amount,
            })

        for sale in self.db.query(Sale).order_by(Sale.sale_date.desc()).limit(5).all():
            activities.append({
                "type": "Sale",
                "description": "New sale recorded",
                "date": sale.sale_date,
                "amount": sale.total_amount,
            })

        for product in self.db.query(Product).order_by(Product.created_at.desc()).limit(5).all():
            activities.append({
                "type": "Product",
                "description": f"New product added: {product.name}",
                "date": product.created_at or datetime.min,
                "amount": product.selling_price,
            })

        activities.sort(key=lambda a: _naive(a["date"]), reverse=True)
        return activities[:n]

    # ==================== Quick stats ====================

    def get_quick_stats(self) -> dict:
        today = datetime.combine(date.today(), time.min)
        tomorrow = today + timedelta(days=1)
        month_start = today.replace(day=1)
        next_month = (month_start + timedelta(days=32)).replace(day=1)

        return {
            "today_sales": self._sum(Sale.total_amount, Sale.sale_date >= today, Sale.sale_date < tomorrow),
            "today_purchases": self._sum(
                Purchase.total_amount, Purchase.purchase_date >= today, Purchase.purchase_date < tomorrow
            ),
            "this_month_sales": self._sum(
                Sale.total_amount, Sale.sale_date >= month_start, Sale.sale_date < next_month
            ),
            "this_month_purchases": self._sum(
                Purchase.total_amount, Purchase.purchase_date >= month_start, Purchase.purchase_date < next_month
            ),
            "low_stock_products": self.db.query(func.count(Product.id))
            .filter(Product.stock_level < settings.LOW_STOCK_THRESHOLD)
            .scalar(),
            "total_categories": self.db.query(func.count(Category.id)).scalar(),
            "total_suppliers": self.db.query(func.count(Supplier.id)).scalar(),
            "total_users": self.db.query(func.count(User.id)).scalar(),
        }


def _naive(value: datetime) -> datetime:
    # created_at may come back timezone-aware from server defaults
    return value.replace(tzinfo=None) if value.tzinfo else value
