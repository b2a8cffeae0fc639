from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from stockapi.common.exceptions import InternalError, InvalidRequestError, NotFoundError, StockAppError
from stockapi.core.dependencies import get_current_user, get_db, require_admin
from stockapi.logger_config import logger
from stockapi.models.user import User
from stockapi.schemas.common import DocumentOption, NamedOption
from stockapi.schemas.sale_detail import (
    SaleDetailCreate,
    SaleDetailResponse,
    SaleDetailSummary,
    SaleDetailUpdate,
)
from stockapi.services import sale_detail_service, sale_service
from stockapi.services.product_service import get_product_options

router = APIRouter()


@router.get("", response_model=List[SaleDetailResponse])
def get_sale_details(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """All sale details, newest first."""
    return sale_detail_service.get_all_sale_details(db)


@router.get("/top", response_model=List[SaleDetailResponse])
def get_top_sale_details(
    n: int = Query(5, ge=1),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return sale_detail_service.get_top_sale_details(db, n)


@router.get("/filter", response_model=List[SaleDetailResponse])
def filter_sale_details(
    sale_detail_id: Optional[int] = Query(None),
    sale_id: Optional[int] = Query(None),
    product_id: Optional[int] = Query(None),
    min_quantity: Optional[int] = Query(None, ge=0),
    max_quantity: Optional[int] = Query(None, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return sale_detail_service.filter_sale_details(
        db,
        sale_detail_id=sale_detail_id,
        sale_id=sale_id,
        product_id=product_id,
        min_quantity=min_quantity,
        max_quantity=max_quantity,
    )


@router.get("/by-sale/{sale_id}", response_model=List[SaleDetailResponse])
def get_details_by_sale(
    sale_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    details = sale_detail_service.get_details_by_sale(db, sale_id)
    if not details:
        raise NotFoundError(f"No details found for sale {sale_id}")
    return details


@router.get("/by-product/{product_id}", response_model=List[SaleDetailResponse])
def get_details_by_product(
    product_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    details = sale_detail_service.get_details_by_product(db, product_id)
    if not details:
        raise NotFoundError(f"No sale details found for product {product_id}")
    return details


@router.get("/summary", response_model=SaleDetailSummary)
def get_sale_detail_summary(
    sale_id: Optional[int] = Query(None),
    product_id: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return sale_detail_service.get_sale_detail_summary(db, sale_id, product_id)


# ==================== Dropdowns ====================

@router.get("/dropdown/products", response_model=List[NamedOption])
def get_product_dropdown(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_product_options(db)


@router.get("/dropdown/sales", response_model=List[DocumentOption])
def get_sale_dropdown(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return sale_service.get_sale_options(db)


# ==================== CRUD ====================

@router.get("/{sale_detail_id}", response_model=SaleDetailResponse)
def get_sale_detail(
    sale_detail_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    detail = sale_detail_service.get_sale_detail_by_id(db, sale_detail_id)
    if not detail:
        raise NotFoundError("Sale detail not found")
    return detail


@router.post("", response_model=SaleDetailResponse, status_code=status.HTTP_201_CREATED)
def create_sale_detail(
    detail_data: SaleDetailCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Add a line item to a sale. Fails with 400 when the product does not
    hold enough stock; nothing is written in that case.
    """
    try:
        detail = sale_detail_service.create_sale_detail(db, detail_data)
        logger.info(f"Sale detail {detail.id} created by {current_user.username}")
        return detail
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error creating sale detail: {str(e)}")
        raise InternalError(f"Failed to create sale detail: {str(e)}")


@router.put("/{sale_detail_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_sale_detail(
    sale_detail_id: int,
    detail_data: SaleDetailUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if sale_detail_id != detail_data.id:
        raise InvalidRequestError("ID mismatch")

    try:
        sale_detail_service.update_sale_detail(db, sale_detail_id, detail_data)
        logger.info(f"Sale detail {sale_detail_id} updated by {current_user.username}")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error updating sale detail: {str(e)}")
        raise InternalError(f"Failed to update sale detail: {str(e)}")


@router.delete("/{sale_detail_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sale_detail(
    sale_detail_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a line item. Requires Admin."""
    try:
        sale_detail_service.delete_sale_detail(db, sale_detail_id)
        logger.info(f"Sale detail {sale_detail_id} deleted by {current_user.username}")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error deleting sale detail: {str(e)}")
        raise InternalError(f"Failed to delete sale detail: {str(e)}")
