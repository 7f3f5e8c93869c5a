"""The signed-in admin's own profile."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.auth import apply_profile_update, require_admin
from app.core.database import get_db
from app.models.user import User
from app.schemas.auth import CurrentUser, ProfileUpdate, UserOut
from app.schemas.common import ApiResponse

router = APIRouter()


@router.get("", response_model=ApiResponse[UserOut])
def get_profile(
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[CurrentUser, Depends(require_admin)],
) -> ApiResponse[UserOut]:
    return ApiResponse(data=UserOut.model_validate(db.get(User, admin.id)))


@router.put("", response_model=ApiResponse[UserOut])
def update_profile(
    body: ProfileUpdate,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[CurrentUser, Depends(require_admin)],
) -> ApiResponse[UserOut]:
    user = apply_profile_update(db, db.get(User, admin.id), body)
    return ApiResponse(message="Profile updated successfully", data=UserOut.model_validate(user))
