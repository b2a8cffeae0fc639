from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from stockapi.common.exceptions import InternalError, InvalidRequestError, NotFoundError, StockAppError
from stockapi.core.dependencies import get_current_user, get_db, require_admin
from stockapi.logger_config import logger
from stockapi.models.user import User
from stockapi.schemas.common import NamedOption
from stockapi.schemas.sale import DailySales, SaleCreate, SaleResponse, SaleSummary, SaleUpdate
from stockapi.services import sale_service
from stockapi.services.user_service import get_user_options

router = APIRouter()


@router.get("", response_model=List[SaleResponse])
def get_sales(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return sale_service.get_all_sales(db)


@router.get("/top", response_model=List[SaleResponse])
def get_top_sales(
    n: int = Query(5, ge=1),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Latest n sales."""
    return sale_service.get_top_sales(db, n)


@router.get("/filter", response_model=List[SaleResponse])
def filter_sales(
    sale_id: Optional[int] = Query(None),
    user_id: Optional[int] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    min_amount: Optional[Decimal] = Query(None, ge=0),
    max_amount: Optional[Decimal] = Query(None, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return sale_service.filter_sales(
        db,
        sale_id=sale_id,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
        min_amount=min_amount,
        max_amount=max_amount,
    )


@router.get("/by-user/{user_id}", response_model=List[SaleResponse])
def get_sales_by_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return sale_service.get_sales_by_user(db, user_id)


@router.get("/recent", response_model=List[SaleResponse])
def get_recent_sales(
    days: int = Query(7, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return sale_service.get_recent_sales(db, days)


@router.get("/daily", response_model=DailySales)
def get_daily_sales(
    day: Optional[date] = Query(None, alias="date"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Sales of one calendar day (today by default) with their totals."""
    return sale_service.get_daily_sales(db, day)


@router.get("/by-date-range", response_model=List[SaleResponse])
def get_sales_by_date_range(
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if end_date < start_date:
        raise InvalidRequestError("End date must be greater than or equal to start date.")
    return sale_service.get_sales_by_date_range(db, start_date, end_date)


@router.get("/summary", response_model=SaleSummary)
def get_sale_summary(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    user_id: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return sale_service.get_sale_summary(db, start_date, end_date, user_id)


@router.get("/dropdown/users", response_model=List[NamedOption])
def get_user_dropdown(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_user_options(db)


# ==================== CRUD ====================

@router.get("/{sale_id}", response_model=SaleResponse)
def get_sale(
    sale_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    sale = sale_service.get_sale_by_id(db, sale_id)
    if not sale:
        raise NotFoundError("Sale not found")
    return sale


@router.post("", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
def create_sale(
    sale_data: SaleCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create a sale with its details. All details are checked against stock;
    if any product is short, nothing is written.
    """
    try:
        sale = sale_service.create_sale(db, sale_data)
        logger.info(f"Sale {sale.id} created by {current_user.username}")
        return sale
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error creating sale: {str(e)}")
        raise InternalError(f"Failed to create sale: {str(e)}")


@router.put("/{sale_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_sale(
    sale_id: int,
    sale_data: SaleUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if sale_id != sale_data.id:
        raise InvalidRequestError("ID mismatch")

    try:
        sale_service.update_sale(db, sale_id, sale_data)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error updating sale: {str(e)}")
        raise InternalError(f"Failed to update sale: {str(e)}")


@router.delete("/{sale_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sale(
    sale_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a sale and return its quantities to stock. Requires Admin."""
    try:
        sale_service.delete_sale(db, sale_id)
        logger.info(f"Sale {sale_id} deleted by {current_user.username}")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error deleting sale: {str(e)}")
        raise InternalError(f"Failed to delete sale: {str(e)}")
