"""
Demo data. Purchases and sales go through the services so stock levels
always match the recorded line items.
"""
import random
from datetime import datetime, timedelta
from decimal import Decimal

from faker import Faker

from stockapi.common.exceptions import InsufficientStockError
from stockapi.core.database import Base, SessionLocal, engine
from stockapi.models import (
    Category,
    Customer,
    Invoice,
    Product,
    Purchase,
    PurchaseDetail,
    Sale,
    SaleDetail,
    Supplier,
    User,
    UserRole,
)
from stockapi.schemas.category import CategoryCreate
from stockapi.schemas.invoice import CustomerCreate, InvoiceCreate
from stockapi.schemas.product import ProductCreate
from stockapi.schemas.purchase import PurchaseCreate
from stockapi.schemas.purchase_detail import PurchaseDetailInline
from stockapi.schemas.sale import SaleCreate
from stockapi.schemas.sale_detail import SaleDetailInline
from stockapi.schemas.supplier import SupplierCreate
from stockapi.services import (
    category_service,
    invoice_service,
    product_service,
    purchase_service,
    sale_service,
    supplier_service,
    user_service,
)

fake = Faker()


def money(low: float, high: float) -> Decimal:
    return Decimal(str(round(random.uniform(low, high), 2)))


def clear(db):
    print("🔄 Clearing existing data...")
    for model in (Invoice, Customer, SaleDetail, Sale, PurchaseDetail, Purchase,
                  Product, Supplier, Category, User):
        db.query(model).delete()
    db.commit()
    print("✅ Data cleared.")


def seed(db):
    print("🔄 Creating users...")
    admin = user_service.create_user(db, "admin", "admin123", UserRole.Admin, email="admin@example.com")
    staff = [
        user_service.create_user(
            db,
            fake.unique.user_name()[:50],
            "staff123",
            UserRole.Staff,
            email=fake.email(),
            phone=''.join(filter(str.isdigit, fake.phone_number()))[:20],
            address=fake.address().replace('\n', ', '),
        )
        for _ in range(3)
    ]
    users = [admin] + staff
    print(f"✅ Seeded {len(users)} users")

    print("🔄 Creating categories and suppliers...")
    categories = [
        category_service.create_category(db, CategoryCreate(name=name, user_id=admin.id))
        for name in ("Electronics", "Hardware", "Stationery", "Groceries", "Cleaning")
    ]
    suppliers = [
        supplier_service.create_supplier(db, SupplierCreate(
            name=fake.company()[:100],
            contact=fake.phone_number()[:100],
            address=fake.address().replace('\n', ', ')[:255],
            user_id=random.choice(users).id,
        ))
        for _ in range(random.randint(8, 12))
    ]
    print(f"✅ Seeded {len(categories)} categories")
    print(f"✅ Seeded {len(suppliers)} suppliers")

    print("🔄 Creating products...")
    products = []
    for _ in range(25):
        cost = money(5, 200)
        products.append(product_service.create_product(db, ProductCreate(
            name=fake.unique.word().capitalize(),
            category_id=random.choice(categories).id,
            supplier_id=random.choice(suppliers).id,
            unit=random.choice(["pcs", "box", "kg", "pack"]),
            cost_price=cost,
            selling_price=(cost * Decimal("1.3")).quantize(Decimal("0.01")),
            stock_level=random.randint(0, 20),
            description=fake.sentence(),
        )))
    print(f"✅ Seeded {len(products)} products")

    print("🔄 Creating purchases...")
    for _ in range(30):
        chosen = random.sample(products, k=random.randint(1, 4))
        purchase_service.create_purchase(db, PurchaseCreate(
            supplier_id=random.choice(suppliers).id,
            user_id=random.choice(users).id,
            purchase_date=datetime.now() - timedelta(days=random.randint(0, 29)),
            details=[
                PurchaseDetailInline(
                    product_id=p.id,
                    quantity=random.randint(5, 50),
                    unit_cost=p.cost_price,
                )
                for p in chosen
            ],
        ))
    print("✅ Seeded 30 purchases")

    print("🔄 Creating sales...")
    sales = []
    for _ in range(40):
        chosen = random.sample(products, k=random.randint(1, 3))
        try:
            sales.append(sale_service.create_sale(db, SaleCreate(
                user_id=random.choice(users).id,
                sale_date=datetime.now() - timedelta(days=random.randint(0, 29)),
                discount=money(0, 10),
                tax=money(0, 15),
                details=[
                    SaleDetailInline(
                        product_id=p.id,
                        quantity=random.randint(1, 10),
                        unit_price=p.selling_price,
                    )
                    for p in chosen
                ],
            )))
        except InsufficientStockError as e:
            print(f"⚠️ Sale skipped: {e.message}")
    print(f"✅ Seeded {len(sales)} sales")

    print("🔄 Creating customers and invoices...")
    customers = [
        invoice_service.create_customer(db, CustomerCreate(
            name=fake.name(),
            email=fake.email(),
            phone=''.join(filter(str.isdigit, fake.phone_number()))[:20],
            address=fake.address().replace('\n', ', '),
        ))
        for _ in range(10)
    ]
    for sale in random.sample(sales, k=min(15, len(sales))):
        invoice_service.create_invoice(db, InvoiceCreate(
            sale_id=sale.id,
            customer_id=random.choice(customers).id,
            invoice_date=sale.sale_date.date(),
            sub_total=sale.total_amount,
            discount_percentage=Decimal(random.choice([0, 5, 10])),
            tax_percentage=Decimal(random.choice([0, 8, 16])),
        ))
    print(f"✅ Seeded {len(customers)} customers and invoices")


if __name__ == '__main__':
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        clear(db)
        seed(db)
        print("🎉 Seeding completed.")
    except Exception as e:
        db.rollback()
        print(f"❌ Seeding failed: {e}")
        raise
    finally:
        db.close()
