"""Request/response schemas for auth and user endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.core.security import NAME_MAX_LEN, PASSWORD_MAX_LEN, PASSWORD_MIN_LEN

UserRole = Literal["user", "admin"]
UserStatus = Literal["active", "inactive"]


def _normalize_email(value: str) -> str:
    return value.strip().lower()


def _normalize_name(value: str) -> str:
    name = value.strip()
    if not name:
        raise ValueError("name must be non-empty")
    return name


class RegisterRequest(BaseModel):
    """Self-registration. The account is always created with role 'user'."""

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LEN)
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    password_confirm: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _normalize_name(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class UserOut(BaseModel):
    """Public view of a user (never includes the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str
    status: str
    avatar: str | None = None
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserSummary(BaseModel):
    """Short user reference embedded in file listings and activity feeds."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


class AuthPayload(BaseModel):
    """Token plus user returned by register and login."""

    token: str = Field(..., description="JWT access token; send as 'Authorization: Bearer <token>'.")
    token_type: str = Field(default="bearer")
    user: UserOut


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""

    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LEN)
    email: EmailStr | None = None
    avatar: str | None = Field(default=None, max_length=1024)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        return None if v is None else _normalize_name(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        return None if v is None else _normalize_email(v)


class UserCreate(BaseModel):
    """Admin-created account."""

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LEN)
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    role: UserRole = "user"
    status: UserStatus = "active"

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _normalize_name(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class UserUpdate(ProfileUpdate):
    """Admin update of any user; passwords are not changed through this route."""

    role: UserRole | None = None
    status: UserStatus | None = None


class CurrentUser(BaseModel):
    """Authenticated user (id, name, email, role) for dependency injection."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str
    status: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class UsersPage(BaseModel):
    """Paginated user list for the admin console."""

    users: list[UserOut]
    total: int
    page: int
    page_size: int
    total_pages: int
