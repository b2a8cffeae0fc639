from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from stockapi.common.exceptions import InternalError, InvalidRequestError, NotFoundError, StockAppError
from stockapi.core.config import settings
from stockapi.core.dependencies import get_current_user, get_db, require_admin
from stockapi.logger_config import logger
from stockapi.models.user import User
from stockapi.schemas.category import (
    CategoryCreate,
    CategoryPage,
    CategoryResponse,
    CategoryUpdate,
    CategoryWithProductCount,
)
from stockapi.schemas.common import total_pages
from stockapi.services import category_service

router = APIRouter()


@router.get("", response_model=CategoryPage)
def get_categories(
    page_number: int = Query(1, ge=1, alias="pageNumber"),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100, alias="pageSize"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Paginated categories.
    Returns {TotalRecords, PageSize, CurrentPage, TotalPages, Categories}.
    """
    try:
        categories, total = category_service.get_categories_page(db, page_number, page_size)

        return CategoryPage(
            total_records=total,
            page_size=page_size,
            current_page=page_number,
            total_pages=total_pages(total, page_size),
            categories=[CategoryResponse.model_validate(c) for c in categories],
        )
    except Exception as e:
        logger.error(f"Error fetching categories: {str(e)}")
        raise InternalError(f"Failed to fetch categories: {str(e)}")


@router.get("/filter", response_model=List[CategoryResponse])
def filter_categories(
    category_name: Optional[str] = Query(None),
    user_id: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return category_service.filter_categories(db, category_name, user_id)


@router.get("/top", response_model=List[CategoryResponse])
def get_top_categories(
    n: int = Query(5, ge=1),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return category_service.get_top_categories(db, n)


@router.get("/with-product-count", response_model=List[CategoryWithProductCount])
def get_categories_with_product_count(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return category_service.get_categories_with_product_count(db)


@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(
    category_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    category = category_service.get_category_by_id(db, category_id)
    if not category:
        raise NotFoundError("Category not found")
    return category


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    category_data: CategoryCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        category = category_service.create_category(db, category_data)
        logger.info(f"Category {category.name} created by {current_user.username}")
        return category
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error creating category: {str(e)}")
        raise InternalError(f"Failed to create category: {str(e)}")


@router.put("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_category(
    category_id: int,
    category_data: CategoryUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if category_id != category_data.id:
        raise InvalidRequestError("ID mismatch")

    try:
        category = category_service.update_category(db, category_id, category_data)
        if not category:
            raise NotFoundError("Category not found")

        logger.info(f"Category {category_id} updated by {current_user.username}")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error updating category: {str(e)}")
        raise InternalError(f"Failed to update category: {str(e)}")


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Delete a category.
    Only admins can delete categories; categories with products are kept.
    """
    try:
        if not category_service.delete_category(db, category_id):
            raise NotFoundError("Category not found")

        logger.info(f"Category {category_id} deleted by {current_user.username}")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error deleting category: {str(e)}")
        raise InternalError(f"Failed to delete category: {str(e)}")
