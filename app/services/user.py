from sqlalchemy.orm import Session

import app.repositories.role as role_repo
import app.repositories.user as user_repo
from app.db.models.user import User as UserModel
from app.errors import DomainValidationError, DuplicateResourceError, ForbiddenError, NotFoundError
from app.schemas.user import UserCreate
from app.core.security import validate_password, get_password_hash


def create_user(db: Session, user_data: UserCreate) -> UserModel:
    """
    Create a new user with business logic validation.

    - Validates email uniqueness
    - Validates password requirements
    - Validates role_id exists (if provided)
    - Defaults to "tenant" role if role_id not provided
    """
    existing_user = user_repo.get_user_by_email(db, user_data.email)
    if existing_user:
        raise DuplicateResourceError("Email already registered")

    is_valid, error_message = validate_password(user_data.password)
    if not is_valid:
        raise DomainValidationError(error_message)

    if user_data.role_id is None:
        role = role_repo.get_role_by_name(db, "tenant")
        if not role:
            raise NotFoundError("Tenant role not found")
    else:
        role = role_repo.get_role_by_id(db, user_data.role_id)
        if not role:
            raise NotFoundError(f"Role with id {user_data.role_id} not found")

    password_hash = get_password_hash(user_data.password)

    return user_repo.create_user(
        db,
        email=user_data.email,
        password_hash=password_hash,
        role_id=role.id,
        display_name=user_data.display_name,
        phone=user_data.phone,
    )


def get_user(db: Session, user_id: int, current_user: UserModel) -> UserModel:
    """
    Get a user by ID with authorization checks.

    - Admin can get any user
    - Landlord and Tenant can only get themselves
    """
    user = user_repo.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    if current_user.role.name != "admin" and current_user.id != user_id:
        raise ForbiddenError("You can only access your own user information")

    return user


def get_all_users(
    db: Session, page: int = 1, page_size: int = 100
) -> tuple[list[UserModel], int]:
    """Get all users with pagination. Admin only; checked at the router."""
    return user_repo.get_all_users_paginated(db, page=page, page_size=page_size)
