from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stockapi.common.exceptions import ConflictError, InvalidRequestError
from stockapi.core.security import get_password_hash, verify_password
from stockapi.logger_config import logger
from stockapi.models.purchase import Purchase
from stockapi.models.sale import Sale
from stockapi.models.user import User, UserRole
from stockapi.schemas.user import UserCreate, UserUpdate


def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    """Get user by database ID."""
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    """Get user by username."""
    return db.query(User).filter(User.username == username).first()


def get_users_page(
    db: Session,
    page_number: int = 1,
    page_size: int = 5,
) -> tuple[List[User], int]:
    """One page of users ordered by id, plus the total count."""
    query = db.query(User)

    total = query.count()
    users = (
        query.order_by(User.id)
        .offset((page_number - 1) * page_size)
        .limit(page_size)
        .all()
    )

    return users, total


def create_user(
    db: Session,
    username: str,
    password: str,
    role: UserRole,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    address: Optional[str] = None,
) -> User:
    """Create a new user with a bcrypt-hashed password."""
    if get_user_by_username(db, username):
        raise InvalidRequestError("Username already exists")

    user = User(
        username=username,
        password_hash=get_password_hash(password),
        email=email,
        phone=phone,
        address=address,
        role=role,
    )
    db.add(user)

    try:
        db.commit()
        db.refresh(user)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating user: {str(e)}")
        raise InvalidRequestError("Failed to create user. Username may already exist.")

    logger.info(f"User {user.id} created: {user.username} ({user.role.value})")
    return user


def create_user_from_schema(db: Session, data: UserCreate) -> User:
    return create_user(
        db,
        username=data.username,
        password=data.password,
        role=data.role,
        email=data.email,
        phone=data.phone,
        address=data.address,
    )


def update_user(db: Session, user_id: int, data: UserUpdate) -> Optional[User]:
    """Update user information; the password is re-hashed only when one is given."""
    user = get_user_by_id(db, user_id)
    if not user:
        return None

    existing_user = get_user_by_username(db, data.username)
    if existing_user and existing_user.id != user_id:
        raise InvalidRequestError("Username is already taken by another user")

    user.username = data.username
    user.email = data.email
    user.phone = data.phone
    user.address = data.address
    user.role = data.role

    if data.password and not verify_password(data.password, user.password_hash):
        user.password_hash = get_password_hash(data.password)
        logger.info(f"Password changed for user {user_id}")

    try:
        db.commit()
        db.refresh(user)
        return user
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating user: {str(e)}")
        raise InvalidRequestError("Failed to update user.")


def delete_user(db: Session, user_id: int) -> bool:
    """Delete a user that owns no purchases or sales."""
    user = get_user_by_id(db, user_id)
    if not user:
        return False

    if db.query(Purchase.id).filter(Purchase.user_id == user_id).first() or \
            db.query(Sale.id).filter(Sale.user_id == user_id).first():
        raise ConflictError("Cannot delete user that has purchases or sales.")

    db.delete(user)
    try:
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting user: {str(e)}")
        raise InvalidRequestError("Failed to delete user.")


def filter_users(
    db: Session,
    username: Optional[str] = None,
    role: Optional[UserRole] = None,
) -> List[User]:
    query = db.query(User)

    if username:
        query = query.filter(User.username.ilike(f"%{username}%"))
    if role:
        query = query.filter(User.role == role)

    return query.order_by(User.id).all()


def get_top_users(db: Session, n: int = 2) -> List[User]:
    return db.query(User).order_by(User.id).limit(n).all()


def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
    """Return the user when the credentials match, otherwise None."""
    user = get_user_by_username(db, username)
    if not user or not verify_password(password, user.password_hash):
        logger.warning(f"Failed login attempt for username: {username}")
        return None
    return user


def get_user_options(db: Session) -> List[dict]:
    rows = db.query(User.id, User.username).order_by(User.username).all()
    return [{"id": row.id, "name": row.username} for row in rows]
