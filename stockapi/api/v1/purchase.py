from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from stockapi.common.exceptions import InternalError, InvalidRequestError, NotFoundError, StockAppError
from stockapi.core.dependencies import get_current_user, get_db, require_admin
from stockapi.logger_config import logger
from stockapi.models.user import User
from stockapi.schemas.common import NamedOption
from stockapi.schemas.purchase import PurchaseCreate, PurchaseResponse, PurchaseSummary, PurchaseUpdate
from stockapi.services import purchase_service
from stockapi.services.supplier_service import get_supplier_options
from stockapi.services.user_service import get_user_options

router = APIRouter()


@router.get("", response_model=List[PurchaseResponse])
def get_purchases(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return purchase_service.get_all_purchases(db)


@router.get("/top", response_model=List[PurchaseResponse])
def get_top_purchases(
    n: int = Query(5, ge=1),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Latest n purchases."""
    return purchase_service.get_top_purchases(db, n)


@router.get("/filter", response_model=List[PurchaseResponse])
def filter_purchases(
    purchase_id: Optional[int] = Query(None),
    supplier_id: Optional[int] = Query(None),
    user_id: Optional[int] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return purchase_service.filter_purchases(
        db,
        purchase_id=purchase_id,
        supplier_id=supplier_id,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/by-supplier/{supplier_id}", response_model=List[PurchaseResponse])
def get_purchases_by_supplier(
    supplier_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return purchase_service.get_purchases_by_supplier(db, supplier_id)


@router.get("/by-user/{user_id}", response_model=List[PurchaseResponse])
def get_purchases_by_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return purchase_service.get_purchases_by_user(db, user_id)


@router.get("/recent", response_model=List[PurchaseResponse])
def get_recent_purchases(
    days: int = Query(7, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return purchase_service.get_recent_purchases(db, days)


@router.get("/summary", response_model=PurchaseSummary)
def get_purchase_summary(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return purchase_service.get_purchase_summary(db, start_date, end_date)


# ==================== Dropdowns ====================

@router.get("/dropdown/suppliers", response_model=List[NamedOption])
def get_supplier_dropdown(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_supplier_options(db)


@router.get("/dropdown/users", response_model=List[NamedOption])
def get_user_dropdown(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_user_options(db)


# ==================== CRUD ====================

@router.get("/{purchase_id}", response_model=PurchaseResponse)
def get_purchase(
    purchase_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    purchase = purchase_service.get_purchase_by_id(db, purchase_id)
    if not purchase:
        raise NotFoundError("Purchase not found")
    return purchase


@router.post("", response_model=PurchaseResponse, status_code=status.HTTP_201_CREATED)
def create_purchase(
    purchase_data: PurchaseCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create a purchase, optionally with its details. Each detail adds its
    quantity to the product's stock; the total is the sum of the subtotals.
    """
    try:
        purchase = purchase_service.create_purchase(db, purchase_data)
        logger.info(f"Purchase {purchase.id} created by {current_user.username}")
        return purchase
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error creating purchase: {str(e)}")
        raise InternalError(f"Failed to create purchase: {str(e)}")


@router.put("/{purchase_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_purchase(
    purchase_id: int,
    purchase_data: PurchaseUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if purchase_id != purchase_data.id:
        raise InvalidRequestError("ID mismatch")

    try:
        purchase_service.update_purchase(db, purchase_id, purchase_data)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error updating purchase: {str(e)}")
        raise InternalError(f"Failed to update purchase: {str(e)}")


@router.delete("/{purchase_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_purchase(
    purchase_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a purchase and take its quantities back out of stock. Requires Admin."""
    try:
        purchase_service.delete_purchase(db, purchase_id)
        logger.info(f"Purchase {purchase_id} deleted by {current_user.username}")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error deleting purchase: {str(e)}")
        raise InternalError(f"Failed to delete purchase: {str(e)}")
