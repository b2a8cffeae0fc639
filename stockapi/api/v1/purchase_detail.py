from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from stockapi.common.exceptions import InternalError, InvalidRequestError, NotFoundError, StockAppError
from stockapi.core.dependencies import get_current_user, get_db, require_admin
from stockapi.logger_config import logger
from stockapi.models.user import User
from stockapi.schemas.common import DocumentOption, NamedOption
from stockapi.schemas.purchase_detail import (
    PurchaseDetailCreate,
    PurchaseDetailResponse,
    PurchaseDetailSummary,
    PurchaseDetailUpdate,
)
from stockapi.services import purchase_detail_service, purchase_service
from stockapi.services.product_service import get_product_options

router = APIRouter()


@router.get("", response_model=List[PurchaseDetailResponse])
def get_purchase_details(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """All purchase details, newest first."""
    return purchase_detail_service.get_all_purchase_details(db)


@router.get("/top", response_model=List[PurchaseDetailResponse])
def get_top_purchase_details(
    n: int = Query(5, ge=1),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return purchase_detail_service.get_top_purchase_details(db, n)


@router.get("/filter", response_model=List[PurchaseDetailResponse])
def filter_purchase_details(
    purchase_detail_id: Optional[int] = Query(None),
    purchase_id: Optional[int] = Query(None),
    product_id: Optional[int] = Query(None),
    min_quantity: Optional[int] = Query(None, ge=0),
    max_quantity: Optional[int] = Query(None, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return purchase_detail_service.filter_purchase_details(
        db,
        purchase_detail_id=purchase_detail_id,
        purchase_id=purchase_id,
        product_id=product_id,
        min_quantity=min_quantity,
        max_quantity=max_quantity,
    )


@router.get("/by-purchase/{purchase_id}", response_model=List[PurchaseDetailResponse])
def get_details_by_purchase(
    purchase_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    details = purchase_detail_service.get_details_by_purchase(db, purchase_id)
    if not details:
        raise NotFoundError(f"No details found for purchase {purchase_id}")
    return details


@router.get("/by-product/{product_id}", response_model=List[PurchaseDetailResponse])
def get_details_by_product(
    product_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    details = purchase_detail_service.get_details_by_product(db, product_id)
    if not details:
        raise NotFoundError(f"No purchase details found for product {product_id}")
    return details


@router.get("/summary", response_model=PurchaseDetailSummary)
def get_purchase_detail_summary(
    purchase_id: Optional[int] = Query(None),
    product_id: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return purchase_detail_service.get_purchase_detail_summary(db, purchase_id, product_id)


# ==================== Dropdowns ====================

@router.get("/dropdown/products", response_model=List[NamedOption])
def get_product_dropdown(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_product_options(db)


@router.get("/dropdown/purchases", response_model=List[DocumentOption])
def get_purchase_dropdown(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return purchase_service.get_purchase_options(db)


# ==================== CRUD ====================

@router.get("/{purchase_detail_id}", response_model=PurchaseDetailResponse)
def get_purchase_detail(
    purchase_detail_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    detail = purchase_detail_service.get_purchase_detail_by_id(db, purchase_detail_id)
    if not detail:
        raise NotFoundError("Purchase detail not found")
    return detail


@router.post("", response_model=PurchaseDetailResponse, status_code=status.HTTP_201_CREATED)
def create_purchase_detail(
    detail_data: PurchaseDetailCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Add a line item to a purchase. The purchase total and the product's
    stock are updated in the same transaction.
    """
    try:
        detail = purchase_detail_service.create_purchase_detail(db, detail_data)
        logger.info(f"Purchase detail {detail.id} created by {current_user.username}")
        return detail
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error creating purchase detail: {str(e)}")
        raise InternalError(f"Failed to create purchase detail: {str(e)}")


@router.put("/{purchase_detail_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_purchase_detail(
    purchase_detail_id: int,
    detail_data: PurchaseDetailUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if purchase_detail_id != detail_data.id:
        raise InvalidRequestError("ID mismatch")

    try:
        purchase_detail_service.update_purchase_detail(db, purchase_detail_id, detail_data)
        logger.info(f"Purchase detail {purchase_detail_id} updated by {current_user.username}")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error updating purchase detail: {str(e)}")
        raise InternalError(f"Failed to update purchase detail: {str(e)}")


@router.delete("/{purchase_detail_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_purchase_detail(
    purchase_detail_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a line item. Requires Admin."""
    try:
        purchase_detail_service.delete_purchase_detail(db, purchase_detail_id)
        logger.info(f"Purchase detail {purchase_detail_id} deleted by {current_user.username}")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error deleting purchase detail: {str(e)}")
        raise InternalError(f"Failed to delete purchase detail: {str(e)}")
