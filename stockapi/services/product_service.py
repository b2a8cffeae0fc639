from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stockapi.common.exceptions import ConflictError, InvalidRequestError, NotFoundError
from stockapi.core.config import settings
from stockapi.logger_config import logger
from stockapi.models.category import Category
from stockapi.models.product import Product
from stockapi.models.purchase import PurchaseDetail
from stockapi.models.sale import SaleDetail
from stockapi.models.supplier import Supplier
from stockapi.schemas.product import ProductCreate, ProductUpdate


def get_product_by_id(db: Session, product_id: int) -> Optional[Product]:
    """Get product by ID."""
    return db.query(Product).filter(Product.id == product_id).first()


def get_all_products(db: Session) -> List[Product]:
    return db.query(Product).order_by(Product.id).all()


def _ensure_references(db: Session, category_id: Optional[int], supplier_id: Optional[int]):
    if category_id is not None and not db.query(Category.id).filter(Category.id == category_id).first():
        raise NotFoundError(f"Category with ID {category_id} not found")
    if supplier_id is not None and not db.query(Supplier.id).filter(Supplier.id == supplier_id).first():
        raise NotFoundError(f"Supplier with ID {supplier_id} not found")


def create_product(db: Session, data: ProductCreate) -> Product:
    """Create a product. stock_level is the opening stock and defaults to 0."""
    _ensure_references(db, data.category_id, data.supplier_id)

    product = Product(**data.model_dump())
    db.add(product)

    try:
        db.commit()
        db.refresh(product)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating product: {str(e)}")
        raise InvalidRequestError("Failed to create product.")

    logger.info(f"Product {product.id} created: {product.name} (opening stock {product.stock_level})")
    return product


def update_product(db: Session, product_id: int, data: ProductUpdate) -> Optional[Product]:
    """Update product information. Stock is left untouched."""
    product = get_product_by_id(db, product_id)
    if not product:
        return None

    _ensure_references(db, data.category_id, data.supplier_id)

    for field, value in data.model_dump(exclude={"id"}).items():
        setattr(product, field, value)

    try:
        db.commit()
        db.refresh(product)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating product: {str(e)}")
        raise InvalidRequestError("Failed to update product.")

    return product


def set_product_stock(db: Session, product_id: int, stock_level: int) -> Product:
    """Manual stock correction on a locked row."""
    if stock_level < 0:
        raise InvalidRequestError("Stock level cannot be negative")

    product = (
        db.query(Product)
        .filter(Product.id == product_id)
        .with_for_update()
        .first()
    )
    if not product:
        raise NotFoundError(f"Product with ID {product_id} not found")

    before = product.stock_level
    product.stock_level = stock_level

    try:
        db.commit()
        db.refresh(product)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error correcting stock of product {product_id}: {str(e)}")
        raise InvalidRequestError("Failed to update stock level.")

    logger.info(f"Product {product_id} stock corrected: {before} → {stock_level}")
    return product


def delete_product(db: Session, product_id: int) -> bool:
    """Delete a product that no purchase or sale detail references."""
    product = get_product_by_id(db, product_id)
    if not product:
        return False

    has_purchases = db.query(PurchaseDetail.id).filter(PurchaseDetail.product_id == product_id).first()
    has_sales = db.query(SaleDetail.id).filter(SaleDetail.product_id == product_id).first()
    if has_purchases or has_sales:
        raise ConflictError(
            "Cannot delete product that has purchase or sale details. Please remove them first."
        )

    db.delete(product)
    try:
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting product: {str(e)}")
        raise InvalidRequestError("Failed to delete product.")


# ==================== Queries ====================

def get_top_products(db: Session, n: int = 5) -> List[Product]:
    return db.query(Product).order_by(Product.stock_level.desc()).limit(n).all()


def filter_products(
    db: Session,
    product_id: Optional[int] = None,
    product_name: Optional[str] = None,
    category_id: Optional[int] = None,
    supplier_id: Optional[int] = None,
) -> List[Product]:
    query = db.query(Product)

    if product_id is not None:
        query = query.filter(Product.id == product_id)
    if product_name:
        query = query.filter(Product.name.ilike(f"%{product_name}%"))
        logger.debug(f"Searching products with term: {product_name}")
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if supplier_id is not None:
        query = query.filter(Product.supplier_id == supplier_id)

    return query.order_by(Product.id).all()


def get_products_by_category(db: Session, category_id: int) -> List[Product]:
    return filter_products(db, category_id=category_id)


def get_products_by_supplier(db: Session, supplier_id: int) -> List[Product]:
    return filter_products(db, supplier_id=supplier_id)


def get_low_stock_products(db: Session, threshold: Optional[int] = None) -> List[Product]:
    """Products with stock strictly below the threshold, lowest first."""
    limit = settings.LOW_STOCK_THRESHOLD if threshold is None else threshold
    return (
        db.query(Product)
        .filter(Product.stock_level < limit)
        .order_by(Product.stock_level, Product.id)
        .all()
    )


def get_product_options(db: Session) -> List[dict]:
    rows = db.query(Product.id, Product.name).order_by(Product.name).all()
    return [{"id": row.id, "name": row.name} for row in rows]
