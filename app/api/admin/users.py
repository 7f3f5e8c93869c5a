"""Admin user management: list, create, update and delete accounts."""

import logging
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.api.v1.auth import apply_profile_update, ensure_email_available, require_admin
from app.core.database import get_db
from app.core.security import hash_password
from app.models.user import User
from app.schemas.auth import CurrentUser, UserCreate, UserOut, UserRole, UsersPage, UserStatus, UserUpdate
from app.schemas.common import ApiResponse, PageMeta
from app.schemas.files import SortOrder

logger = logging.getLogger(__name__)

router = APIRouter()

USER_SORT_COLUMNS = {
    "created_at": User.created_at,
    "name": User.name,
    "email": User.email,
    "last_login": User.last_login,
}


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("", response_model=ApiResponse[UsersPage])
def list_users(
    db: Annotated[Session, Depends(get_db)],
    search: str | None = None,
    role: UserRole | None = None,
    status_filter: Annotated[UserStatus | None, Query(alias="status")] = None,
    sort_by: Literal["created_at", "name", "email", "last_login"] = "created_at",
    sort_order: SortOrder = "desc",
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 10,
) -> ApiResponse[UsersPage]:
    query = db.query(User)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
    if role:
        query = query.filter(User.role == role)
    if status_filter:
        query = query.filter(User.status == status_filter)
    total = query.count()
    column = USER_SORT_COLUMNS[sort_by]
    order = (column.desc(), User.id.desc()) if sort_order == "desc" else (column.asc(), User.id.asc())
    users = query.order_by(*order).offset((page - 1) * page_size).limit(page_size).all()
    meta = PageMeta.build(total, page, page_size)
    return ApiResponse(
        data=UsersPage(users=[UserOut.model_validate(u) for u in users], **meta.model_dump())
    )


@router.get("/{user_id}", response_model=ApiResponse[UserOut])
def get_user(
    user_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[UserOut]:
    return ApiResponse(data=UserOut.model_validate(_get_user_or_404(db, user_id)))


@router.post("", response_model=ApiResponse[UserOut], status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[CurrentUser, Depends(require_admin)],
) -> ApiResponse[UserOut]:
    ensure_email_available(db, body.email)
    user = User(
        name=body.name,
        email=body.email,
        password_hash=hash_password(body.password),
        role=body.role,
        status=body.status,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Admin id=%s created user id=%s role=%s", admin.id, user.id, user.role)
    return ApiResponse(message="User created successfully", data=UserOut.model_validate(user))


@router.patch("/{user_id}", response_model=ApiResponse[UserOut])
def update_user(
    user_id: int,
    body: UserUpdate,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[UserOut]:
    """Update name, email, avatar, role or status. Passwords are not changed here."""
    user = apply_profile_update(db, _get_user_or_404(db, user_id), body)
    return ApiResponse(message="User updated successfully", data=UserOut.model_validate(user))


@router.delete("/{user_id}", response_model=ApiResponse[None])
def delete_user(
    user_id: int,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[CurrentUser, Depends(require_admin)],
) -> ApiResponse[None]:
    """Delete a user together with their files, charts, events and notifications."""
    if user_id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account",
        )
    user = _get_user_or_404(db, user_id)
    db.delete(user)
    db.commit()
    logger.info("Admin id=%s deleted user id=%s", admin.id, user_id)
    return ApiResponse(message="User deleted successfully")
