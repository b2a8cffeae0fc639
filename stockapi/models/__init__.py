# stockapi/models/__init__.py
from .user import User, UserRole
from .category import Category
from .supplier import Supplier
from .product import Product
from .purchase import Purchase, PurchaseDetail
from .sale import Sale, SaleDetail
from .invoice import Customer, Invoice, InvoiceStatus
