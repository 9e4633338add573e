from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, require_roles
from app.db.models.user import User as UserModel
from app.services.user import create_user, get_user, get_all_users
from app.schemas.user import UserCreate, User
from app.schemas.pagination import PaginatedResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=User, status_code=status.HTTP_201_CREATED)
def create_new_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """
    Create a new user. Only admin users can create users.

    If role_id is not provided, the user will be assigned the "tenant" role by default.
    """
    user = create_user(db, user_data)
    return User.model_validate(user)


@router.get("", response_model=PaginatedResponse[User])
def get_all_users_paginated(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(100, ge=1, le=1000, description="Number of items per page"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Get all users with pagination. Only admin users can access this endpoint."""
    users, total = get_all_users(db, page=page, page_size=page_size)
    return PaginatedResponse(
        items=[User.model_validate(user) for user in users],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{user_id}", response_model=User)
def get_user_by_id(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    """
    Get a user by ID.

    - Admin can get any user
    - Landlord and Tenant can only get themselves
    """
    user = get_user(db, user_id, current_user)
    return User.model_validate(user)
