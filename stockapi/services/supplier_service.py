from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stockapi.common.exceptions import ConflictError, InvalidRequestError, NotFoundError
from stockapi.logger_config import logger
from stockapi.models.product import Product
from stockapi.models.purchase import Purchase
from stockapi.models.supplier import Supplier
from stockapi.models.user import User
from stockapi.schemas.supplier import SupplierCreate, SupplierUpdate


def get_supplier_by_id(db: Session, supplier_id: int) -> Optional[Supplier]:
    """Get supplier by ID."""
    return db.query(Supplier).filter(Supplier.id == supplier_id).first()


def get_all_suppliers(db: Session) -> List[Supplier]:
    return db.query(Supplier).order_by(Supplier.id).all()


def _ensure_user(db: Session, user_id: Optional[int]):
    if user_id is not None and not db.query(User.id).filter(User.id == user_id).first():
        raise NotFoundError(f"User with ID {user_id} not found")


def create_supplier(db: Session, data: SupplierCreate) -> Supplier:
    """Create a new supplier."""
    _ensure_user(db, data.user_id)

    supplier = Supplier(**data.model_dump())
    db.add(supplier)

    try:
        db.commit()
        db.refresh(supplier)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating supplier: {str(e)}")
        raise InvalidRequestError("Failed to create supplier.")

    logger.info(f"Supplier {supplier.id} created: {supplier.name}")
    return supplier


def update_supplier(db: Session, supplier_id: int, data: SupplierUpdate) -> Optional[Supplier]:
    supplier = get_supplier_by_id(db, supplier_id)
    if not supplier:
        return None

    _ensure_user(db, data.user_id)

    for field, value in data.model_dump(exclude={"id"}).items():
        setattr(supplier, field, value)

    try:
        db.commit()
        db.refresh(supplier)
        return supplier
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating supplier: {str(e)}")
        raise InvalidRequestError("Failed to update supplier.")


def delete_supplier(db: Session, supplier_id: int) -> bool:
    """Delete a supplier that has no products and no purchases."""
    supplier = get_supplier_by_id(db, supplier_id)
    if not supplier:
        return False

    if db.query(Product.id).filter(Product.supplier_id == supplier_id).first():
        raise ConflictError("Cannot delete supplier that has products. Please remove or reassign products first.")
    if db.query(Purchase.id).filter(Purchase.supplier_id == supplier_id).first():
        raise ConflictError("Cannot delete supplier that has purchases.")

    db.delete(supplier)
    try:
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting supplier: {str(e)}")
        raise InvalidRequestError("Failed to delete supplier.")


# ==================== Queries ====================

def get_top_suppliers(db: Session, n: int = 5) -> List[Supplier]:
    return db.query(Supplier).order_by(Supplier.id).limit(n).all()


def filter_suppliers(
    db: Session,
    supplier_id: Optional[int] = None,
    supplier_name: Optional[str] = None,
    contact: Optional[str] = None,
    user_id: Optional[int] = None,
) -> List[Supplier]:
    query = db.query(Supplier)

    if supplier_id is not None:
        query = query.filter(Supplier.id == supplier_id)
    if supplier_name:
        query = query.filter(Supplier.name.ilike(f"%{supplier_name}%"))
    if contact:
        query = query.filter(Supplier.contact.ilike(f"%{contact}%"))
    if user_id is not None:
        query = query.filter(Supplier.user_id == user_id)

    return query.order_by(Supplier.id).all()


def get_suppliers_by_user(db: Session, user_id: int) -> List[Supplier]:
    return filter_suppliers(db, user_id=user_id)


def search_suppliers(db: Session, search_term: str) -> List[Supplier]:
    """Match the term against name, contact and address."""
    if not search_term or not search_term.strip():
        raise InvalidRequestError("Search term is required.")

    term = f"%{search_term.strip()}%"
    logger.debug(f"Searching suppliers with term: {search_term}")
    return (
        db.query(Supplier)
        .filter(
            or_(
                Supplier.name.ilike(term),
                Supplier.contact.ilike(term),
                Supplier.address.ilike(term),
            )
        )
        .order_by(Supplier.id)
        .all()
    )


def get_suppliers_with_counts(db: Session) -> List[dict]:
    product_counts = (
        db.query(Product.supplier_id, func.count(Product.id).label("count"))
        .group_by(Product.supplier_id)
        .subquery()
    )
    purchase_counts = (
        db.query(Purchase.supplier_id, func.count(Purchase.id).label("count"))
        .group_by(Purchase.supplier_id)
        .subquery()
    )

    rows = (
        db.query(
            Supplier,
            func.coalesce(product_counts.c.count, 0),
            func.coalesce(purchase_counts.c.count, 0),
        )
        .outerjoin(product_counts, product_counts.c.supplier_id == Supplier.id)
        .outerjoin(purchase_counts, purchase_counts.c.supplier_id == Supplier.id)
        .order_by(Supplier.id)
        .all()
    )

    return [
        {
            "id": supplier.id,
            "name": supplier.name,
            "contact": supplier.contact,
            "address": supplier.address,
            "user_id": supplier.user_id,
            "created_at": supplier.created_at,
            "updated_at": supplier.updated_at,
            "product_count": product_count,
            "purchase_count": purchase_count,
        }
        for supplier, product_count, purchase_count in rows
    ]


def get_supplier_options(db: Session) -> List[dict]:
    rows = db.query(Supplier.id, Supplier.name).order_by(Supplier.name).all()
    return [{"id": row.id, "name": row.name} for row in rows]
