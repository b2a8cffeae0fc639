from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from stockapi.common.exceptions import InternalError, InvalidRequestError, NotFoundError, StockAppError
from stockapi.core.config import settings
from stockapi.core.dependencies import get_current_user, get_db, require_admin
from stockapi.logger_config import logger
from stockapi.models.user import User, UserRole
from stockapi.schemas.common import total_pages
from stockapi.schemas.user import UserCreate, UserPage, UserResponse, UserUpdate
from stockapi.services import user_service

router = APIRouter()


@router.get("", response_model=UserPage)
def get_users(
    page_number: int = Query(1, ge=1, alias="pageNumber"),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100, alias="pageSize"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Paginated users.
    Returns {TotalRecords, PageSize, CurrentPage, TotalPages, Users}.
    """
    try:
        users, total = user_service.get_users_page(db, page_number, page_size)

        return UserPage(
            total_records=total,
            page_size=page_size,
            current_page=page_number,
            total_pages=total_pages(total, page_size),
            users=[UserResponse.model_validate(u) for u in users],
        )
    except Exception as e:
        logger.error(f"Error fetching users: {str(e)}")
        raise InternalError(f"Failed to fetch users: {str(e)}")


@router.get("/filter", response_model=List[UserResponse])
def filter_users(
    username: Optional[str] = Query(None),
    role: Optional[UserRole] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return user_service.filter_users(db, username, role)


@router.get("/top", response_model=List[UserResponse])
def get_top_users(
    n: int = Query(2, ge=1),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return user_service.get_top_users(db, n)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    user = user_service.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a user with any role. The password is stored as a bcrypt hash."""
    try:
        user = user_service.create_user_from_schema(db, user_data)
        logger.info(f"User {user.username} created by {current_user.username}")
        return user
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error creating user: {str(e)}")
        raise InternalError(f"Failed to create user: {str(e)}")


@router.put("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_user(
    user_id: int,
    user_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if user_id != user_data.id:
        raise InvalidRequestError("ID mismatch")

    try:
        if not user_service.update_user(db, user_id, user_data):
            raise NotFoundError("User not found")
        logger.info(f"User {user_id} updated by {current_user.username}")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error updating user: {str(e)}")
        raise InternalError(f"Failed to update user: {str(e)}")


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        if not user_service.delete_user(db, user_id):
            raise NotFoundError("User not found")
        logger.info(f"User {user_id} deleted by {current_user.username}")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error deleting user: {str(e)}")
        raise InternalError(f"Failed to delete user: {str(e)}")
