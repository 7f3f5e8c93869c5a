"""Registration, JWT login, profile routes and auth dependencies (get_current_user, require_admin)."""

import logging
from datetime import datetime, timezone
from typing import Annotated

import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import create_access_token, hash_password, user_id_from_token, verify_password
from app.models.user import User
from app.schemas.auth import (
    AuthPayload,
    CurrentUser,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    UserOut,
)
from app.schemas.common import ApiResponse
from app.services.analytics import record_event
from app.services.notifications import create_system_notification

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser:
    """Dependency: require valid Bearer JWT for an active user. 401 if missing or invalid, 403 if inactive."""
    if credentials is None:
        raise _unauthorized("Not authorized, no token")
    try:
        user_id = user_id_from_token(credentials.credentials)
    except jwt.PyJWTError:
        raise _unauthorized("Invalid or expired token")
    user = db.get(User, user_id)
    if user is None:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return CurrentUser.model_validate(user)


def require_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency: require authenticated user with role 'admin'. Raises 403 for non-admin."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


def ensure_email_available(db: Session, email: str, exclude_user_id: int | None = None) -> None:
    """Raise 409 when another account already uses the e-mail (case-insensitive)."""
    query = db.query(User.id).filter(User.email == email.lower())
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    if query.first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already exists with this email",
        )


def apply_profile_update(db: Session, user: User, body: ProfileUpdate) -> User:
    """Apply name/email/avatar (and role/status for admin updates) from a partial body."""
    changes = body.model_dump(exclude_unset=True)
    if changes.get("email") and changes["email"] != user.email:
        ensure_email_available(db, changes["email"], exclude_user_id=user.id)
    for field, value in changes.items():
        if value is None and field != "avatar":
            continue
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


@router.post("/register", response_model=ApiResponse[AuthPayload], status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[AuthPayload]:
    """Create an account with role 'user' and return a JWT for it."""
    if body.password != body.password_confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Passwords do not match",
        )
    ensure_email_available(db, body.email)

    user = User(
        name=body.name,
        email=body.email,
        password_hash=hash_password(body.password),
        role="user",
        status="active",
    )
    db.add(user)
    db.flush()
    create_system_notification(
        db,
        title="New User Registration",
        message=f"{user.name} ({user.email}) has registered.",
        type="user",
        metadata={"user_id": user.id},
    )
    db.commit()
    db.refresh(user)
    logger.info("Registered user id=%s", user.id)

    token = create_access_token(user.id, user.role)
    return ApiResponse(
        message="User registered successfully",
        data=AuthPayload(token=token, user=UserOut.model_validate(user)),
    )


@router.post("/login", response_model=ApiResponse[AuthPayload])
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[AuthPayload]:
    """
    Authenticate with e-mail and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <token>
    """
    user = db.query(User).filter(User.email == body.email).first()
    if user is None or not verify_password(body.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    user.last_login = datetime.now(timezone.utc)
    record_event(db, user.id, "login")
    db.commit()
    db.refresh(user)

    token = create_access_token(user.id, user.role)
    return ApiResponse(
        message="Login successful",
        data=AuthPayload(token=token, user=UserOut.model_validate(user)),
    )


@router.get("/me", response_model=ApiResponse[UserOut])
def me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[UserOut]:
    user = db.get(User, current_user.id)
    return ApiResponse(data=UserOut.model_validate(user))


@router.patch("/me", response_model=ApiResponse[UserOut])
def update_me(
    body: ProfileUpdate,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[UserOut]:
    user = apply_profile_update(db, db.get(User, current_user.id), body)
    return ApiResponse(message="Profile updated successfully", data=UserOut.model_validate(user))


@router.post("/logout", response_model=ApiResponse[None])
def logout(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[None]:
    """Tokens are stateless; the client discards its token. Records a logout event."""
    record_event(db, current_user.id, "logout")
    db.commit()
    return ApiResponse(message="Logged out successfully")
