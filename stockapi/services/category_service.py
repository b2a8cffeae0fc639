from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stockapi.common.exceptions import ConflictError, InvalidRequestError
from stockapi.logger_config import logger
from stockapi.models.category import Category
from stockapi.models.product import Product
from stockapi.schemas.category import CategoryCreate, CategoryUpdate


def get_category_by_id(db: Session, category_id: int) -> Optional[Category]:
    """Get category by ID."""
    return db.query(Category).filter(Category.id == category_id).first()


def get_categories_page(
    db: Session,
    page_number: int = 1,
    page_size: int = 5,
) -> tuple[List[Category], int]:
    """One page of categories ordered by id, plus the total count."""
    query = db.query(Category)

    total = query.count()
    categories = (
        query.order_by(Category.id)
        .offset((page_number - 1) * page_size)
        .limit(page_size)
        .all()
    )

    return categories, total


def create_category(db: Session, data: CategoryCreate) -> Category:
    """Create a new category."""
    category = Category(name=data.name, user_id=data.user_id)
    db.add(category)

    try:
        db.commit()
        db.refresh(category)
        return category
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating category: {str(e)}")
        raise InvalidRequestError("Failed to create category.")


def update_category(db: Session, category_id: int, data: CategoryUpdate) -> Optional[Category]:
    """Update category information."""
    category = get_category_by_id(db, category_id)
    if not category:
        return None

    category.name = data.name
    category.user_id = data.user_id

    try:
        db.commit()
        db.refresh(category)
        return category
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating category: {str(e)}")
        raise InvalidRequestError("Failed to update category.")


def delete_category(db: Session, category_id: int) -> bool:
    """Delete a category."""
    category = get_category_by_id(db, category_id)
    if not category:
        return False

    # Check if category has products
    if db.query(Product.id).filter(Product.category_id == category_id).first():
        raise ConflictError("Cannot delete category that has products. Please remove or reassign products first.")

    db.delete(category)
    try:
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting category: {str(e)}")
        raise InvalidRequestError("Failed to delete category.")


def filter_categories(
    db: Session,
    category_name: Optional[str] = None,
    user_id: Optional[int] = None,
) -> List[Category]:
    query = db.query(Category)

    if category_name:
        query = query.filter(Category.name.ilike(f"%{category_name}%"))
    if user_id is not None:
        query = query.filter(Category.user_id == user_id)

    return query.order_by(Category.id).all()


def get_top_categories(db: Session, n: int = 5) -> List[Category]:
    return db.query(Category).order_by(Category.id).limit(n).all()


def get_categories_with_product_count(db: Session) -> List[dict]:
    rows = (
        db.query(Category.id, Category.name, func.count(Product.id).label("product_count"))
        .outerjoin(Product, Product.category_id == Category.id)
        .group_by(Category.id, Category.name)
        .order_by(Category.id)
        .all()
    )
    return [
        {"id": row.id, "name": row.name, "product_count": row.product_count}
        for row in rows
    ]


def get_category_options(db: Session) -> List[dict]:
    rows = db.query(Category.id, Category.name).order_by(Category.name).all()
    return [{"id": row.id, "name": row.name} for row in rows]
