from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from stockapi.common.exceptions import InternalError, InvalidRequestError, NotFoundError, StockAppError
from stockapi.core.dependencies import get_current_user, get_db, require_admin
from stockapi.logger_config import logger
from stockapi.models.user import User
from stockapi.schemas.common import NamedOption
from stockapi.schemas.product import ProductCreate, ProductResponse, ProductStockUpdate, ProductUpdate
from stockapi.services import product_service
from stockapi.services.category_service import get_category_options
from stockapi.services.supplier_service import get_supplier_options

router = APIRouter()


@router.get("", response_model=List[ProductResponse])
def get_products(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return product_service.get_all_products(db)


@router.get("/top", response_model=List[ProductResponse])
def get_top_products(
    n: int = Query(5, ge=1),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """n products with the highest stock level."""
    return product_service.get_top_products(db, n)


@router.get("/filter", response_model=List[ProductResponse])
def filter_products(
    product_id: Optional[int] = Query(None),
    product_name: Optional[str] = Query(None),
    category_id: Optional[int] = Query(None),
    supplier_id: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return product_service.filter_products(
        db,
        product_id=product_id,
        product_name=product_name,
        category_id=category_id,
        supplier_id=supplier_id,
    )


@router.get("/by-category/{category_id}", response_model=List[ProductResponse])
def get_products_by_category(
    category_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return product_service.get_products_by_category(db, category_id)


@router.get("/by-supplier/{supplier_id}", response_model=List[ProductResponse])
def get_products_by_supplier(
    supplier_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return product_service.get_products_by_supplier(db, supplier_id)


@router.get("/low-stock", response_model=List[ProductResponse])
def get_low_stock_products(
    threshold: Optional[int] = Query(None, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Products below the threshold (LOW_STOCK_THRESHOLD when omitted)."""
    return product_service.get_low_stock_products(db, threshold)


@router.get("/dropdown/categories", response_model=List[NamedOption])
def get_category_dropdown(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_category_options(db)


@router.get("/dropdown/suppliers", response_model=List[NamedOption])
def get_supplier_dropdown(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_supplier_options(db)


# ==================== CRUD ====================

@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    product = product_service.get_product_by_id(db, product_id)
    if not product:
        raise NotFoundError("Product not found")
    return product


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    product_data: ProductCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        product = product_service.create_product(db, product_data)
        logger.info(f"Product {product.name} created by {current_user.username}")
        return product
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error creating product: {str(e)}")
        raise InternalError(f"Failed to create product: {str(e)}")


@router.put("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_product(
    product_id: int,
    product_data: ProductUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if product_id != product_data.id:
        raise InvalidRequestError("ID mismatch")

    try:
        product = product_service.update_product(db, product_id, product_data)
        if not product:
            raise NotFoundError("Product not found")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error updating product: {str(e)}")
        raise InternalError(f"Failed to update product: {str(e)}")


@router.put("/{product_id}/stock", response_model=ProductResponse)
def update_product_stock(
    product_id: int,
    stock_data: ProductStockUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Manual stock correction (stock count, write-off)."""
    product = product_service.set_product_stock(db, product_id, stock_data.stock_level)
    logger.info(f"Stock of product {product_id} set to {stock_data.stock_level} by {current_user.username}")
    return product


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a product that is not used by any purchase or sale. Requires Admin."""
    try:
        if not product_service.delete_product(db, product_id):
            raise NotFoundError("Product not found")
        logger.info(f"Product {product_id} deleted by {current_user.username}")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error deleting product: {str(e)}")
        raise InternalError(f"Failed to delete product: {str(e)}")
