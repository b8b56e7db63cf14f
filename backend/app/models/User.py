import re
from datetime import datetime

from pydantic import EmailStr, field_validator
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from ..core.database import as_utc, utcnow

# ==========================================
# SQLModel (Database Entity)
# ==========================================
class User(SQLModel, table=True):
    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True, nullable=False)
    password_hash: str = Field(nullable=False)  # Never leaves the store layer
    name: str | None = Field(default=None, nullable=True)
    bio: str | None = Field(default=None, nullable=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

# ==========================================
# Pydantic Models (DTOs)
# ==========================================

def _normalize_email(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value

# Properties to receive via API on registration
class RegisterRequest(SQLModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    name: str | None = Field(default=None, min_length=1, max_length=100)
    bio: str | None = Field(default=None, max_length=500)

    normalize_email = field_validator("email", mode="before")(_normalize_email)

    @field_validator("password")
    @classmethod
    def check_password_strength(cls, value: str) -> str:
        if not re.search(r"[a-z]", value):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"[A-Z]", value):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"\d", value):
            raise ValueError("Password must contain at least one number")
        return value

# Properties to receive via API on login
class LoginRequest(SQLModel):
    email: EmailStr
    password: str = Field(min_length=1)

    normalize_email = field_validator("email", mode="before")(_normalize_email)

# Partial profile update: only fields present in the request are applied
class ProfileUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    bio: str | None = Field(default=None, max_length=500)
    email: EmailStr | None = None

    normalize_email = field_validator("email", mode="before")(_normalize_email)

    @field_validator("email")
    @classmethod
    def email_not_null(cls, value):
        if value is None:
            raise ValueError("Email cannot be null")
        return value

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)

    def apply_to(self, user: User) -> User:
        for field, value in self.changes().items():
            setattr(user, field, value)
        return user

# Properties to return via API (no password hash)
class UserResponse(SQLModel):
    id: int
    email: str
    name: str | None = None
    bio: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    utc_timestamps = field_validator("created_at", "updated_at", mode="before")(as_utc)

class ProfileResponse(SQLModel):
    message: str
    user: UserResponse

class MessageResponse(SQLModel):
    message: str
