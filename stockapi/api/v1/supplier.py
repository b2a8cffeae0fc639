from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from stockapi.common.exceptions import InternalError, InvalidRequestError, NotFoundError, StockAppError
from stockapi.core.dependencies import get_current_user, get_db, require_admin
from stockapi.logger_config import logger
from stockapi.models.user import User
from stockapi.schemas.common import NamedOption
from stockapi.schemas.supplier import SupplierCreate, SupplierResponse, SupplierUpdate, SupplierWithCounts
from stockapi.services import supplier_service
from stockapi.services.user_service import get_user_options

router = APIRouter()


@router.get("", response_model=List[SupplierResponse])
def get_suppliers(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return supplier_service.get_all_suppliers(db)


@router.get("/top", response_model=List[SupplierResponse])
def get_top_suppliers(
    n: int = Query(5, ge=1),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return supplier_service.get_top_suppliers(db, n)


@router.get("/filter", response_model=List[SupplierResponse])
def filter_suppliers(
    supplier_id: Optional[int] = Query(None),
    supplier_name: Optional[str] = Query(None),
    contact: Optional[str] = Query(None),
    user_id: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return supplier_service.filter_suppliers(
        db,
        supplier_id=supplier_id,
        supplier_name=supplier_name,
        contact=contact,
        user_id=user_id,
    )


@router.get("/by-user/{user_id}", response_model=List[SupplierResponse])
def get_suppliers_by_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return supplier_service.get_suppliers_by_user(db, user_id)


@router.get("/search", response_model=List[SupplierResponse])
def search_suppliers(
    search_term: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Search name, contact and address. A blank term is rejected with 400."""
    return supplier_service.search_suppliers(db, search_term or "")


@router.get("/with-counts", response_model=List[SupplierWithCounts])
def get_suppliers_with_counts(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return supplier_service.get_suppliers_with_counts(db)


@router.get("/dropdown/users", response_model=List[NamedOption])
def get_user_dropdown(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_user_options(db)


# ==================== CRUD ====================

@router.get("/{supplier_id}", response_model=SupplierResponse)
def get_supplier(
    supplier_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    supplier = supplier_service.get_supplier_by_id(db, supplier_id)
    if not supplier:
        raise NotFoundError("Supplier not found")
    return supplier


@router.post("", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
def create_supplier(
    supplier_data: SupplierCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        supplier = supplier_service.create_supplier(db, supplier_data)
        logger.info(f"Supplier {supplier.name} created by {current_user.username}")
        return supplier
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error creating supplier: {str(e)}")
        raise InternalError(f"Failed to create supplier: {str(e)}")


@router.put("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_supplier(
    supplier_id: int,
    supplier_data: SupplierUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if supplier_id != supplier_data.id:
        raise InvalidRequestError("ID mismatch")

    try:
        if not supplier_service.update_supplier(db, supplier_id, supplier_data):
            raise NotFoundError("Supplier not found")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error updating supplier: {str(e)}")
        raise InternalError(f"Failed to update supplier: {str(e)}")


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_supplier(
    supplier_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Only admins can delete suppliers; suppliers with products or purchases are kept."""
    try:
        if not supplier_service.delete_supplier(db, supplier_id):
            raise NotFoundError("Supplier not found")
        logger.info(f"Supplier {supplier_id} deleted by {current_user.username}")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error deleting supplier: {str(e)}")
        raise InternalError(f"Failed to delete supplier: {str(e)}")
