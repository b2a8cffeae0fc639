from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from stockapi.common.exceptions import InternalError, StockAppError
from stockapi.core.dependencies import get_current_user, get_db
from stockapi.core.security import create_access_token
from stockapi.logger_config import logger
from stockapi.models.user import User, UserRole
from stockapi.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from stockapi.schemas.user import UserResponse
from stockapi.services.user_service import authenticate_user, create_user

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    register_data: RegisterRequest,
    db: Session = Depends(get_db)
):
    """
    Self-registration. New accounts always get the Customer role;
    a taken username is rejected with 400.
    """
    try:
        user = create_user(
            db=db,
            username=register_data.username,
            password=register_data.password,
            role=UserRole.Customer,
            email=register_data.email,
            phone=register_data.phone,
            address=register_data.address,
        )
        logger.info(f"User {user.username} registered successfully")
        return user
    except StockAppError:
        raise
    except Exception as e:
        logger.error(f"Error during registration: {str(e)}")
        raise InternalError(f"An error occurred during registration: {str(e)}")


@router.post("/login", response_model=TokenResponse)
def login(
    login_data: LoginRequest,
    db: Session = Depends(get_db)
):
    """Exchange username and password for a bearer token."""
    user = authenticate_user(db, login_data.username, login_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = create_access_token(
        data={"sub": str(user.id), "username": user.username, "role": user.role.value}
    )
    logger.info(f"User {user.username} logged in")

    return TokenResponse(
        token=token,
        username=user.username,
        role=user.role.value,
        message="Login successful",
    )


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user
