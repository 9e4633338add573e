from sqlalchemy.orm import Session

from app.db.models.user import User as UserModel


def get_user_by_email(db: Session, email: str) -> UserModel | None:
    """Get a user by email."""
    return db.query(UserModel).filter(UserModel.email == email).first()


def get_user_by_id(db: Session, user_id: int) -> UserModel | None:
    """Get a user by ID."""
    return db.query(UserModel).filter(UserModel.id == user_id).first()


def create_user(
    db: Session,
    email: str,
    password_hash: str,
    role_id: int,
    display_name: str | None = None,
    phone: str | None = None,
) -> UserModel:
    """Create a new user in the database. Pure data access - no business logic."""
    db_user = UserModel(
        email=email,
        display_name=display_name,
        phone=phone,
        password_hash=password_hash,
        role_id=role_id,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def get_all_users_paginated(
    db: Session, page: int = 1, page_size: int = 100
) -> tuple[list[UserModel], int]:
    """
    Get all users with pagination, sorted by email for stable pagination.

    Returns:
        Tuple of (list of users, total count)
    """
    query = db.query(UserModel)
    total = query.count()
    skip = (page - 1) * page_size
    users = query.order_by(UserModel.email).offset(skip).limit(page_size).all()
    return users, total
