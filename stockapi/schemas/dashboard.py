from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel


class TopProduct(BaseModel):
    product_id: int
    product_name: str
    stock_quantity: int
    price: Decimal
    category_name: str


class TopSupplier(BaseModel):
    supplier_id: int
    supplier_name: str
    purchase_count: int
    total_amount: Decimal


class RecentActivity(BaseModel):
    type: str
    description: str
    date: datetime
    amount: Optional[Decimal] = None


class DashboardSummary(BaseModel):
    total_products: int
    total_categories: int
    total_suppliers: int
    total_users: int
    total_purchases: int
    total_sales: int
    total_purchase_amount: Decimal
    total_sale_amount: Decimal
    net_profit: Decimal

    products_by_category: Dict[str, int]
    # zero-filled, keyed YYYY-MM-DD
    products_per_day: Dict[str, int]
    sales_per_day: Dict[str, int]
    purchases_per_day: Dict[str, int]

    top_products: List[TopProduct]
    top_suppliers: List[TopSupplier]
    recent_activities: List[RecentActivity]


class QuickStats(BaseModel):
    today_sales: Decimal
    today_purchases: Decimal
    this_month_sales: Decimal
    this_month_purchases: Decimal
    low_stock_products: int
    total_categories: int
    total_suppliers: int
    total_users: int
